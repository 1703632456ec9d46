# accounts/stats.py
from django.utils import timezone

from .models import User, level_for_wagered


def record_game(user_id, amount, won: bool, profit) -> User:
    """Per-user totals and level; call inside the settlement transaction."""
    user = User.objects.select_for_update().get(pk=user_id)
    user.total_wagered += amount
    user.games_played += 1
    if won:
        user.games_won += 1
        if profit > user.highest_win:
            user.highest_win = profit
    else:
        user.games_lost += 1
    user.total_profit += profit
    user.last_wager_at = timezone.now()
    user.level = max(user.level, level_for_wagered(user.total_wagered))
    user.save(update_fields=[
        "total_wagered", "games_played", "games_won", "games_lost",
        "total_profit", "highest_win", "last_wager_at", "level",
    ])
    return user


def account_stats(user) -> dict:
    played = user.games_played
    return {
        "username": user.username,
        "user_uid": user.user_uid,
        "level": user.level,
        "total_wagered": str(user.total_wagered),
        "games_played": played,
        "games_won": user.games_won,
        "games_lost": user.games_lost,
        "win_rate": round(user.games_won / played * 100, 2) if played else 0,
        "total_profit": str(user.total_profit),
        "highest_win": str(user.highest_win),
        "last_wager_at": user.last_wager_at.isoformat() if user.last_wager_at else None,
    }
