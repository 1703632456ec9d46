# mines/views.py
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .game import MinesController


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def start_game(request):
    result = MinesController().place_stake(
        request.user.id, request.data.get("bet_amount"), request.data
    )
    return Response(result)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def reveal_tile(request):
    return Response(MinesController().advance(request.user.id, request.data))


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def cash_out(request):
    return Response(MinesController().settle(request.user.id, request.data))


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def game_status(request):
    state = MinesController().state(request.user.id)
    return Response({"active": state is not None, "session": state})
