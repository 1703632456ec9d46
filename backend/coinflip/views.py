from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .game import CoinflipController


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def flip_coin(request):
    result = CoinflipController().place_stake(
        request.user.id, request.data.get("bet_amount"), request.data
    )
    return Response(result)
