from decimal import Decimal

from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from engine import fairness
from engine.controller import parse_multiplier
from .game import UpgraderController, MIN_MULTIPLIER, MAX_MULTIPLIER


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def upgrade(request):
    result = UpgraderController().place_stake(
        request.user.id, request.data.get("bet_amount"), request.data
    )
    return Response(result)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def chance(request):
    multiplier = parse_multiplier(
        request.query_params.get("multiplier", "2.00"), MIN_MULTIPLIER, MAX_MULTIPLIER
    )
    return Response({
        "multiplier": str(multiplier),
        "chance": str(fairness.upgrader_chance(multiplier, Decimal(settings.UPGRADER_HOUSE_EDGE))),
    })
