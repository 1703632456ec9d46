from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .game import LimboController


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def play(request):
    result = LimboController().play(request.user.id, request.data.get("bet_amount"), request.data)
    return Response(result)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def start_round(request):
    result = LimboController().place_stake(
        request.user.id, request.data.get("bet_amount"), request.data
    )
    return Response(result)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def roll(request):
    return Response(LimboController().advance(request.user.id, request.data))


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def cash_out(request):
    return Response(LimboController().settle(request.user.id, request.data))
