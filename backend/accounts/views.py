import logging

from django.contrib.auth import authenticate, login, logout
from django.middleware.csrf import get_token
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from engine.errors import InvalidInput
from .referrals import apply_referral_code, referral_leaderboard, referral_stats
from .serializers import AccountSerializer, ReferralCodeSerializer, RegisterSerializer
from .stats import account_stats

logger = logging.getLogger(__name__)


@api_view(["GET"])
@permission_classes([AllowAny])
def csrf(request):
    return Response({"csrfToken": get_token(request)})


@api_view(["POST"])
@permission_classes([AllowAny])
def register_view(request):
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()

    ref_code = serializer.validated_data.get("referral_code")
    if ref_code:
        try:
            apply_referral_code(user.id, ref_code)
        except InvalidInput as e:
            logger.info(f"Referral code ignored for new user {user.id}: {e}")

    login(request, user)
    user.refresh_from_db()
    return Response(AccountSerializer(user).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([AllowAny])
def login_view(request):
    user = authenticate(username=request.data.get("username"), password=request.data.get("password"))
    if user:
        login(request, user)
        return Response(AccountSerializer(user).data)

    return Response({"error": "Invalid credentials"}, status=400)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def logout_view(request):
    logout(request)
    return Response({"message": "Logged out successfully"})


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def profile_view(request):
    return Response(AccountSerializer(request.user).data)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def stats_view(request):
    return Response(account_stats(request.user))


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def apply_referral(request):
    serializer = ReferralCodeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    referrer = apply_referral_code(request.user.id, serializer.validated_data["code"])
    return Response({"success": True, "referrer": referrer.username})


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def referral_dashboard(request):
    return Response(referral_stats(request.user))


@api_view(["GET"])
@permission_classes([AllowAny])
def referral_top(request):
    return Response(referral_leaderboard())
