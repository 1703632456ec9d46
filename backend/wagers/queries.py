# wagers/queries.py
from datetime import timedelta
from decimal import Decimal

from django.db.models import Count, Max, Min, Q, Sum
from django.utils import timezone

from .models import Wager

D0 = Decimal("0.00")
TIMEFRAMES = ("all", "today", "week", "month")


def settled(qs=None):
    qs = Wager.objects.all() if qs is None else qs
    return qs.filter(outcome__in=(Wager.WIN, Wager.LOSS))


def _win_rate(wins, games) -> str:
    return f"{wins / games * 100:.2f}" if games else "0.00"


def user_stats(user) -> dict:
    qs = settled(Wager.objects.filter(user=user))
    totals = qs.aggregate(
        total_wagered=Sum("amount"),
        total_games=Count("id"),
        total_wins=Count("id", filter=Q(outcome=Wager.WIN)),
        total_losses=Count("id", filter=Q(outcome=Wager.LOSS)),
        total_profit=Sum("profit"),
        biggest_win=Max("profit", filter=Q(outcome=Wager.WIN)),
        biggest_loss=Min("profit", filter=Q(outcome=Wager.LOSS)),
    )
    breakdown = (
        qs.values("game_type")
        .annotate(
            total_wagered=Sum("amount"),
            total_games=Count("id"),
            wins=Count("id", filter=Q(outcome=Wager.WIN)),
            losses=Count("id", filter=Q(outcome=Wager.LOSS)),
            profit=Sum("profit"),
        )
        .order_by("game_type")
    )
    return {
        "username": user.username,
        "total_wagered": str(totals["total_wagered"] or D0),
        "total_games": totals["total_games"],
        "total_wins": totals["total_wins"],
        "total_losses": totals["total_losses"],
        "win_rate": _win_rate(totals["total_wins"], totals["total_games"]),
        "total_profit": str(totals["total_profit"] or D0),
        "biggest_win": str(totals["biggest_win"] or D0),
        "biggest_loss": str(totals["biggest_loss"] or D0),
        "game_breakdown": [
            {
                "game_type": row["game_type"],
                "total_wagered": str(row["total_wagered"]),
                "total_games": row["total_games"],
                "wins": row["wins"],
                "losses": row["losses"],
                "win_rate": _win_rate(row["wins"], row["total_games"]),
                "profit": str(row["profit"]),
            }
            for row in breakdown
        ],
    }


def timeframe_start(timeframe, now=None):
    now = timezone.localtime(now or timezone.now())
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if timeframe == "today":
        return midnight
    if timeframe == "week":
        return midnight - timedelta(days=midnight.weekday())
    if timeframe == "month":
        return midnight.replace(day=1)
    return None


def leaderboard(timeframe="all", limit=10) -> dict:
    qs = settled()
    start = timeframe_start(timeframe)
    if start is not None:
        qs = qs.filter(created_at__gte=start)

    rows = qs.values("user_id", "user__username").annotate(
        total_wagered=Sum("amount"),
        total_games=Count("id"),
        total_profit=Sum("profit"),
    )

    def board(order):
        return [
            {
                "user_id": row["user_id"],
                "username": row["user__username"],
                "total_wagered": str(row["total_wagered"]),
                "total_games": row["total_games"],
                "total_profit": str(row["total_profit"]),
            }
            for row in rows.order_by(order, "user_id")[:limit]
        ]

    return {
        "timeframe": timeframe,
        "wagering": board("-total_wagered"),
        "profit": board("-total_profit"),
    }
