from django.urls import path
from . import views

urlpatterns = [
    path("csrf/", views.csrf),
    path("register/", views.register_view, name="register"),
    path("login/", views.login_view, name="login"),
    path("logout/", views.logout_view, name="logout"),
    path("profile/", views.profile_view, name="profile"),
    path("stats/", views.stats_view, name="account_stats"),

    path("referral/apply/", views.apply_referral, name="referral_apply"),
    path("referral/", views.referral_dashboard, name="referral_dashboard"),
    path("referral/leaderboard/", views.referral_top, name="referral_leaderboard"),
]
