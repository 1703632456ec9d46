from django.urls import path
from . import views

urlpatterns = [
    path("flip/", views.flip_coin, name="coinflip_flip"),
]
