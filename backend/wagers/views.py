# wagers/views.py
from django.conf import settings
from rest_framework import generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from engine import fairness
from engine.errors import InvalidInput
from .models import Wager
from .serializers import RecentWagerSerializer, VerifySerializer, WagerSerializer
from . import queries


class HistoryPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "limit"
    max_page_size = 100


class WagerHistoryView(generics.ListAPIView):
    serializer_class = WagerSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = HistoryPagination

    def get_queryset(self):
        qs = Wager.objects.filter(user=self.request.user).select_related("user")
        game_type = self.request.query_params.get("gameType")
        if game_type in dict(Wager.GAME_CHOICES):
            qs = qs.filter(game_type=game_type)
        return qs


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def wager_stats(request):
    return Response(queries.user_stats(request.user))


def _limit(request, default):
    try:
        return max(1, min(int(request.query_params.get("limit", default)), 100))
    except ValueError:
        raise InvalidInput("Invalid limit")


@api_view(["GET"])
@permission_classes([AllowAny])
def recent_wagers(request):
    wagers = queries.settled().select_related("user")[:_limit(request, 20)]
    return Response(RecentWagerSerializer(wagers, many=True).data)


@api_view(["GET"])
@permission_classes([AllowAny])
def leaderboard(request):
    timeframe = request.query_params.get("timeframe", "all")
    if timeframe not in queries.TIMEFRAMES:
        raise InvalidInput("Invalid timeframe")
    return Response(queries.leaderboard(timeframe, _limit(request, 10)))


@api_view(["POST"])
@permission_classes([AllowAny])
def verify(request):
    """
    Recompute an outcome from revealed seeds. With ``wager_id`` the seeds
    and config come from that settled wager.
    """
    wager_id = request.data.get("wager_id")
    if wager_id is not None:
        try:
            wager = Wager.objects.filter(pk=int(wager_id)).first()
        except (TypeError, ValueError):
            raise InvalidInput("Invalid wager id")
        if wager is None or wager.is_pending or not wager.server_seed:
            raise InvalidInput("Wager not found or not settled yet")
        data = {
            "game_type": wager.game_type,
            "server_seed": wager.server_seed,
            "client_seed": wager.client_seed,
            "nonce": wager.nonce,
            "config": verification_config(wager),
        }
    else:
        serializer = VerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

    try:
        outcome = fairness.resolve(
            data["game_type"], data["config"], data["server_seed"], data["client_seed"], data["nonce"]
        )
    except (KeyError, ValueError, ArithmeticError):
        raise InvalidInput("Incomplete game configuration")

    response = {
        "game_type": data["game_type"],
        "server_seed_hash": fairness.sha256_hex(data["server_seed"]),
        "outcome": {k: (str(v) if not isinstance(v, (bool, int, list, str)) else v) for k, v in outcome.items()},
    }
    if wager_id is not None:
        response["matches"] = bool(wager.result_hash) and outcome["result_hash"] == wager.result_hash
    return Response(response)


def verification_config(wager) -> dict:
    data = wager.game_data or {}
    config = dict(data.get("config") or {})
    for key in ("choice", "bet_type", "bet_value", "multiplier", "house_edge", "total_pot"):
        if key in data:
            config[key] = data[key]
    if wager.game_type == Wager.GAME_LIMBO:
        config.setdefault("house_edge", str(settings.LIMBO_HOUSE_EDGE))
    if wager.game_type == Wager.GAME_COINFLIP:
        config.setdefault("win_chance", str(settings.COINFLIP_WIN_CHANCE))
    return config
