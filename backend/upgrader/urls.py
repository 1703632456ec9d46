from django.urls import path
from . import views

urlpatterns = [
    path("upgrade/", views.upgrade, name="upgrader_upgrade"),
    path("chance/", views.chance, name="upgrader_chance"),
]
