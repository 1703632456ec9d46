from django.urls import path
from . import views

urlpatterns = [
    path("start/", views.start_game, name="mines_start"),
    path("reveal/", views.reveal_tile, name="mines_reveal"),
    path("cashout/", views.cash_out, name="mines_cashout"),
    path("status/", views.game_status, name="mines_status"),
]
