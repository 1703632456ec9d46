from django.urls import path
from . import views

urlpatterns = [
    path("history/", views.WagerHistoryView.as_view(), name="wager_history"),
    path("stats/", views.wager_stats, name="wager_stats"),
    path("recent/", views.recent_wagers, name="wager_recent"),
    path("leaderboard/", views.leaderboard, name="wager_leaderboard"),
    path("verify/", views.verify, name="wager_verify"),
]
