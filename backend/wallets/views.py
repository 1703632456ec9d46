# wallets/views.py
from rest_framework import generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import Wallet, WalletTransaction
from .serializers import (
    WalletSerializer,
    WalletTransactionSerializer,
    WithdrawalSerializer,
    WithdrawalOut,
)
from . import services, wagering


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def balance(request):
    wallet, _ = Wallet.objects.get_or_create(user=request.user)
    return Response(WalletSerializer(wallet).data)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def wagering_status(request):
    wallet, _ = Wallet.objects.get_or_create(user=request.user)
    return Response(wagering.status(wallet).as_dict())


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def withdraw(request):
    serializer = WithdrawalSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    withdrawal = services.request_withdrawal(
        request.user.id,
        serializer.validated_data["amount"],
        serializer.validated_data["method"],
        serializer.validated_data["address"],
    )
    return Response(WithdrawalOut(withdrawal).data, status=201)


class TransactionListView(generics.ListAPIView):
    serializer_class = WalletTransactionSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return WalletTransaction.objects.filter(user=self.request.user).order_by("-created_at")[:100]
