# wallets/wagering.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings

D0 = Decimal("0.00")


def _multiplier() -> Decimal:
    return Decimal(settings.WAGER_REQUIREMENT_MULTIPLIER)


def required_wagering(total_deposited: Decimal) -> Decimal:
    return (total_deposited * _multiplier()).quantize(Decimal("0.01"))


def record_deposit(wallet, amount: Decimal) -> None:
    """
    Raise the requirement baseline. Mutates the wallet in place, caller saves.
    """
    wallet.total_deposited += amount
    remaining = required_wagering(wallet.total_deposited) - wallet.total_wagered_since_deposit
    wallet.unwagered_amount = max(D0, remaining)


def record_wager(wallet, amount: Decimal) -> bool:
    """
    Count a settled stake towards the requirement.

    Once the requirement is met both counters reset to zero instead of
    carrying the surplus over. Returns True when that reset happened.
    """
    wallet.total_wagered_since_deposit += amount
    required = required_wagering(wallet.total_deposited)

    if wallet.total_wagered_since_deposit >= required:
        wallet.unwagered_amount = D0
        wallet.total_deposited = D0
        wallet.total_wagered_since_deposit = D0
        return True

    wallet.unwagered_amount = required - wallet.total_wagered_since_deposit
    return False


@dataclass(frozen=True)
class WageringStatus:
    total_required: Decimal
    total_wagered: Decimal
    remaining: Decimal
    percentage: Decimal
    can_withdraw: bool
    from_deposits: Decimal

    def as_dict(self) -> dict:
        return {
            "total_required": str(self.total_required),
            "total_wagered": str(self.total_wagered),
            "remaining": str(self.remaining),
            "percentage": str(self.percentage),
            "can_withdraw": self.can_withdraw,
            "from_deposits": str(self.from_deposits),
        }


def status(wallet) -> WageringStatus:
    total_required = required_wagering(wallet.total_deposited)
    total_wagered = wallet.total_wagered_since_deposit
    remaining = max(D0, total_required - total_wagered)

    if total_required > 0:
        percentage = min(Decimal("100"), total_wagered / total_required * 100)
    else:
        percentage = Decimal("100")

    return WageringStatus(
        total_required=total_required,
        total_wagered=total_wagered,
        remaining=remaining,
        percentage=percentage.quantize(Decimal("0.01")),
        can_withdraw=remaining <= 0,
        from_deposits=wallet.total_deposited,
    )
