from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from wagers.models import Wager
from wagers.serializers import WagerSerializer
from .pool import get_pool


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def current_round(request):
    return Response(get_pool().snapshot())


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def recent_winners(request):
    wins = (
        Wager.objects.filter(game_type=Wager.GAME_JACKPOT, outcome=Wager.WIN)
        .select_related("user")[:10]
    )
    return Response(WagerSerializer(wins, many=True).data)
