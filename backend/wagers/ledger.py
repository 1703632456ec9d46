# wagers/ledger.py
"""
Append-only wager ledger.

Entries are created ``pending`` and move to ``win``, ``loss`` or ``void``
exactly once. Every transition is a compare-and-swap on ``outcome``, so
two concurrent settlements of the same wager cannot both succeed.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from django.utils import timezone

from engine.errors import AlreadySettled, InvalidInput
from .models import Wager

logger = logging.getLogger(__name__)


def create_pending(
    user_id,
    game_type: str,
    amount: Decimal,
    *,
    seeds: Optional[dict] = None,
    game_data: Optional[dict] = None,
    wager: Optional[Wager] = None,
) -> Wager:
    """
    ``wager`` lets the caller pre-build the unsaved instance so its
    reference can be used before the row exists.
    """
    if game_type not in dict(Wager.GAME_CHOICES):
        raise InvalidInput(f"Unknown game type {game_type!r}")

    seeds = seeds or {}
    wager = wager or Wager()
    wager.user_id = user_id
    wager.game_type = game_type
    wager.amount = amount
    wager.outcome = Wager.PENDING
    wager.server_seed = seeds.get("server_seed", "")
    wager.server_seed_hash = seeds.get("server_seed_hash", "")
    wager.client_seed = seeds.get("client_seed", "")
    wager.nonce = seeds.get("nonce", 0)
    wager.game_data = game_data or {}
    wager.save()
    return wager


def _transition(wager_id, **fields) -> int:
    fields["completed_at"] = timezone.now()
    updated = Wager.objects.filter(pk=wager_id, outcome=Wager.PENDING).update(**fields)
    if not updated:
        if not Wager.objects.filter(pk=wager_id).exists():
            raise InvalidInput(f"Unknown wager {wager_id}")
        raise AlreadySettled()
    return updated


def settle(
    wager_id,
    outcome: str,
    profit: Decimal,
    multiplier: Decimal,
    *,
    result_hash: str = "",
    server_seed: str = "",
    game_data: Optional[dict] = None,
) -> None:
    """``server_seed`` is written here for rounds that share one seed until they close."""
    if outcome not in (Wager.WIN, Wager.LOSS):
        raise InvalidInput(f"Cannot settle to {outcome!r}")

    fields = {"outcome": outcome, "profit": profit, "multiplier": multiplier}
    if result_hash:
        fields["result_hash"] = result_hash
    if server_seed:
        fields["server_seed"] = server_seed
    if game_data is not None:
        fields["game_data"] = game_data
    _transition(wager_id, **fields)


def void(wager_id, reason: str = "") -> None:
    fields = {"outcome": Wager.VOID, "profit": Decimal("0.00")}
    if reason:
        wager = Wager.objects.get(pk=wager_id)
        fields["game_data"] = {**wager.game_data, "void_reason": reason}
    _transition(wager_id, **fields)
    logger.info(f"Wager {wager_id} voided ({reason or 'no reason'})")
