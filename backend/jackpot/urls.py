from django.urls import path
from . import views

urlpatterns = [
    path("round/", views.current_round, name="jackpot_round"),
    path("winners/", views.recent_winners, name="jackpot_winners"),
]
