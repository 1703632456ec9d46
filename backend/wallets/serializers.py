from decimal import Decimal
from rest_framework import serializers
from .models import Wallet, WalletTransaction, Withdrawal


class WithdrawalSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=Decimal('0.01'))
    method = serializers.ChoiceField(choices=[c[0] for c in Withdrawal.METHOD_CHOICES])
    address = serializers.CharField(max_length=128)


class WalletTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletTransaction
        fields = ['id', 'amount', 'tx_type', 'reference', 'meta', 'created_at']


class WalletSerializer(serializers.ModelSerializer):
    class Meta:
        model = Wallet
        fields = ['balance', 'unwagered_amount', 'updated_at']


class WithdrawalOut(serializers.ModelSerializer):
    class Meta:
        model = Withdrawal
        fields = ['id', 'amount', 'method', 'address', 'status', 'created_at']
