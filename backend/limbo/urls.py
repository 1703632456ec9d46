from django.urls import path
from . import views

urlpatterns = [
    path("play/", views.play, name="limbo_play"),
    path("start/", views.start_round, name="limbo_start"),
    path("roll/", views.roll, name="limbo_roll"),
    path("cashout/", views.cash_out, name="limbo_cashout"),
]
