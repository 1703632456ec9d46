# engine/settlement.py
"""
Money side of every game: take the stake, pay out, refund.

Each operation runs in a single database transaction, so a failure at any
step leaves no partial money effect behind. Notifications are the
caller's job and happen after commit.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.conf import settings
from django.db import DatabaseError, transaction

from accounts import referrals, stats
from wagers import ledger
from wagers.models import Wager
from wallets import services as wallet_services
from wallets import wagering
from wallets.models import Wallet
from .errors import AlreadySettled, InvalidInput, PersistenceFailure
from .fairness import q2

logger = logging.getLogger(__name__)

D0 = Decimal("0.00")


def parse_amount(raw) -> Decimal:
    try:
        amount = Decimal(str(raw))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInput("Invalid bet amount")
    if not amount.is_finite() or amount <= 0:
        raise InvalidInput("Bet amount must be positive")
    # bound first, quantize overflows on huge values
    if amount > settings.MAX_BET:
        raise InvalidInput(f"Maximum bet is {settings.MAX_BET}")
    if amount != amount.quantize(Decimal("0.01")):
        raise InvalidInput("Bet amount has too many decimal places")
    return amount


def stake_reference(wager: Wager, suffix: str) -> str:
    return f"WAGER-{wager.reference.hex}-{suffix}"


@dataclass
class StakeReceipt:
    wager: Wager
    new_balance: Decimal

    @property
    def wager_id(self):
        return self.wager.id


@dataclass
class Settlement:
    wager_id: int
    user_id: int
    username: str
    game_type: str
    outcome: str
    amount: Decimal
    payout: Decimal
    profit: Decimal
    multiplier: Decimal
    new_balance: Decimal
    server_seed: str = ""
    client_seed: str = ""
    nonce: int = 0
    result_hash: str = ""
    referral_reward: Optional[Decimal] = None
    wagering_met: bool = False

    @property
    def won(self) -> bool:
        return self.outcome == Wager.WIN

    def as_payload(self) -> dict:
        return {
            "wager_id": self.wager_id,
            "game_type": self.game_type,
            "outcome": self.outcome,
            "amount": str(self.amount),
            "payout": str(self.payout),
            "profit": str(self.profit),
            "multiplier": str(self.multiplier),
            "new_balance": str(self.new_balance),
            "server_seed": self.server_seed,
            "client_seed": self.client_seed,
            "nonce": self.nonce,
            "result_hash": self.result_hash,
        }


def open_stake(user_id, game_type, amount, *, seeds=None, game_data=None) -> StakeReceipt:
    """Debit the stake and record a pending wager, atomically."""
    amount = parse_amount(amount)
    wager = Wager()
    try:
        with transaction.atomic():
            new_balance = wallet_services.debit(
                user_id,
                amount,
                reference=stake_reference(wager, "STAKE"),
                meta={"reason": "stake", "game_type": game_type},
            )
            ledger.create_pending(
                user_id, game_type, amount, seeds=seeds, game_data=game_data, wager=wager
            )
    except DatabaseError as e:
        logger.error(f"Stake for user {user_id} on {game_type} failed: {e}")
        raise PersistenceFailure() from e

    logger.info(f"User {user_id} staked {amount} on {game_type} (wager {wager.id})")
    return StakeReceipt(wager=wager, new_balance=new_balance)


def settle_wager(
    wager_id,
    *,
    won: bool,
    multiplier: Decimal,
    payout: Optional[Decimal] = None,
    result_hash: str = "",
    server_seed: str = "",
    game_data: Optional[dict] = None,
) -> Settlement:
    """
    Credit the payout, close the ledger entry, count the stake towards
    wagering, update stats and pay the referrer.

    ``payout`` overrides stake * multiplier when the amount is known
    exactly (jackpot pot). ``server_seed`` reveals a seed that was kept
    off the wager while it was pending (jackpot rounds).
    """
    try:
        with transaction.atomic():
            wager = Wager.objects.select_for_update().select_related("user").get(pk=wager_id)
            if not wager.is_pending:
                raise AlreadySettled()

            if won:
                multiplier = Decimal(multiplier)
                payout = q2(wager.amount * multiplier) if payout is None else q2(payout)
                outcome = Wager.WIN
            else:
                multiplier = D0
                payout = D0
                outcome = Wager.LOSS
            profit = payout - wager.amount

            if payout > 0:
                new_balance = wallet_services.credit(
                    wager.user_id,
                    payout,
                    reference=stake_reference(wager, "PAYOUT"),
                    meta={"reason": "payout", "game_type": wager.game_type, "wager_id": wager.id},
                )
            else:
                new_balance = wallet_services.get_balance(wager.user_id)

            ledger.settle(
                wager.id,
                outcome,
                profit,
                multiplier,
                result_hash=result_hash,
                server_seed=server_seed,
                game_data={**wager.game_data, **(game_data or {})},
            )
            if server_seed:
                wager.server_seed = server_seed

            wallet = Wallet.objects.select_for_update().get(user_id=wager.user_id)
            met = wagering.record_wager(wallet, wager.amount)
            wallet.save(update_fields=[
                "unwagered_amount", "total_deposited", "total_wagered_since_deposit",
            ])

            stats.record_game(wager.user_id, wager.amount, won, profit)
            reward = referrals.reward_referrer(wager)
    except DatabaseError as e:
        logger.error(f"Settlement of wager {wager_id} failed: {e}")
        raise PersistenceFailure() from e

    logger.info(
        f"Wager {wager.id} settled {outcome}: stake {wager.amount}, payout {payout}, x{multiplier}"
    )
    return Settlement(
        wager_id=wager.id,
        user_id=wager.user_id,
        username=wager.user.username,
        game_type=wager.game_type,
        outcome=outcome,
        amount=wager.amount,
        payout=payout,
        profit=profit,
        multiplier=multiplier,
        new_balance=new_balance,
        server_seed=wager.server_seed,
        client_seed=wager.client_seed,
        nonce=wager.nonce,
        result_hash=result_hash,
        referral_reward=reward.amount if reward else None,
        wagering_met=met,
    )


def void_wager(wager_id, reason: str = "") -> Decimal:
    """Refund the stake of a pending wager. Returns the new balance."""
    try:
        with transaction.atomic():
            wager = Wager.objects.select_for_update().get(pk=wager_id)
            if not wager.is_pending:
                raise AlreadySettled()
            new_balance = wallet_services.credit(
                wager.user_id,
                wager.amount,
                reference=stake_reference(wager, "REFUND"),
                meta={"reason": "refund", "game_type": wager.game_type, "detail": reason},
            )
            ledger.void(wager.id, reason)
    except DatabaseError as e:
        logger.error(f"Refund of wager {wager_id} failed: {e}")
        raise PersistenceFailure() from e
    return new_balance
