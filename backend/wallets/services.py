import logging
import uuid
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from engine.errors import InsufficientBalance, InvalidInput
from .models import Wallet, WalletTransaction, Withdrawal
from . import wagering

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


# ======================================================
# INTERNAL
# ======================================================
def _get_wallet_for_update(user_id):
    wallet, _ = Wallet.objects.select_for_update().get_or_create(user_id=user_id)
    return wallet


def _new_reference(prefix):
    return f"{prefix}-{uuid.uuid4().hex}"


def _as_money(amount) -> Decimal:
    return Decimal(str(amount)).quantize(CENT)


# ======================================================
# BALANCE STORE
# ======================================================
def get_balance(user_id) -> Decimal:
    wallet, _ = Wallet.objects.get_or_create(user_id=user_id)
    return wallet.balance


@transaction.atomic
def debit(user_id, amount: Decimal, reference: str = None, meta: dict = None) -> Decimal:
    """
    Conditional decrement: succeeds only while balance >= amount.
    Returns the new balance.
    """
    amount = _as_money(amount)
    if amount <= 0:
        raise InvalidInput("Invalid amount")

    _get_wallet_for_update(user_id)

    updated = Wallet.objects.filter(
        user_id=user_id, balance__gte=amount
    ).update(balance=F("balance") - amount, updated_at=timezone.now())

    if not updated:
        raise InsufficientBalance()

    WalletTransaction.objects.create(
        user_id=user_id,
        amount=amount,
        tx_type=WalletTransaction.DEBIT,
        reference=reference or _new_reference("DEBIT"),
        meta=meta or {},
    )

    return Wallet.objects.values_list("balance", flat=True).get(user_id=user_id)


@transaction.atomic
def credit(user_id, amount: Decimal, reference: str = None, meta: dict = None) -> Decimal:
    amount = _as_money(amount)
    if amount < 0:
        raise InvalidInput("Invalid amount")

    _get_wallet_for_update(user_id)

    if amount > 0:
        Wallet.objects.filter(user_id=user_id).update(
            balance=F("balance") + amount, updated_at=timezone.now()
        )
        WalletTransaction.objects.create(
            user_id=user_id,
            amount=amount,
            tx_type=WalletTransaction.CREDIT,
            reference=reference or _new_reference("CREDIT"),
            meta=meta or {},
        )

    return Wallet.objects.values_list("balance", flat=True).get(user_id=user_id)


def adjust_balance(user_id, delta: Decimal, reference: str = None, meta: dict = None) -> Decimal:
    """Signed wrapper over debit/credit, fails with InsufficientBalance on overdraw."""
    delta = _as_money(delta)
    if delta < 0:
        return debit(user_id, -delta, reference=reference, meta=meta)
    return credit(user_id, delta, reference=reference, meta=meta)


# ======================================================
# DEPOSITS / WITHDRAWALS
# ======================================================
@transaction.atomic
def credit_deposit(user_id, amount: Decimal, reference: str, meta: dict = None) -> Decimal:
    """
    Entry point for the payment collaborator once a deposit is confirmed.
    Idempotent per reference.
    """
    amount = _as_money(amount)
    if amount <= 0:
        raise InvalidInput("Deposit amount must be positive")

    wallet = _get_wallet_for_update(user_id)

    if WalletTransaction.objects.filter(reference=reference).exists():
        logger.info(f"Deposit {reference} already credited, ignoring")
        return wallet.balance

    wallet.balance = F("balance") + amount
    wagering.record_deposit(wallet, amount)
    wallet.save(update_fields=[
        "balance", "total_deposited", "unwagered_amount", "updated_at",
    ])

    WalletTransaction.objects.create(
        user_id=user_id,
        amount=amount,
        tx_type=WalletTransaction.CREDIT,
        reference=reference,
        meta={"reason": "deposit", **(meta or {})},
    )
    logger.info(f"Deposit {reference}: {amount} credited to user {user_id}")

    wallet.refresh_from_db(fields=["balance"])
    return wallet.balance


@transaction.atomic
def request_withdrawal(user_id, amount: Decimal, method: str, address: str) -> Withdrawal:
    amount = _as_money(amount)
    if amount <= 0:
        raise InvalidInput("Withdrawal amount must be positive")

    wallet = _get_wallet_for_update(user_id)
    req = wagering.status(wallet)
    if not req.can_withdraw:
        raise InvalidInput(f"Wager {req.remaining} more before withdrawing")

    reference = _new_reference("WITHDRAW")
    debit(user_id, amount, reference=reference, meta={"reason": "withdrawal", "method": method})

    withdrawal = Withdrawal.objects.create(
        user_id=user_id,
        amount=amount,
        method=method,
        address=address,
        reference=reference,
    )
    logger.info(f"Withdrawal {withdrawal.id} requested by user {user_id}: {amount} {method}")
    return withdrawal
