# engine/controller.py
"""
Base classes for game controllers.

A controller turns player actions (stake / advance / settle) into calls on
the settlement core, and publishes the resulting events once the
transaction has committed.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from . import fairness
from .broadcast import get_broadcaster, publish_settlement_sync
from .errors import AlreadySettled, InvalidInput, PersistenceFailure, SessionConflict, SessionNotFound
from .sessions import GameSession, get_session_store
from .settlement import Settlement, StakeReceipt, open_stake, settle_wager, void_wager

logger = logging.getLogger(__name__)


def settlement_result(settlement: Settlement, **extra) -> dict:
    return {
        "new_balance": str(settlement.new_balance),
        "outcome": settlement.outcome,
        "multiplier": str(settlement.multiplier),
        "payout": str(settlement.payout),
        "profit": str(settlement.profit),
        "wager": settlement.as_payload(),
        **extra,
    }


def parse_choice(value, allowed, name):
    value = (value or "").strip().lower() if isinstance(value, str) else value
    if value not in allowed:
        raise InvalidInput(f"Invalid {name}")
    return value


def parse_int(value, low, high, name) -> int:
    try:
        number = int(value)
    except (OverflowError, TypeError, ValueError):
        raise InvalidInput(f"Invalid {name}")
    if isinstance(value, float) and value != number:
        raise InvalidInput(f"Invalid {name}")
    if not low <= number <= high:
        raise InvalidInput(f"{name} must be between {low} and {high}")
    return number


MAX_CLIENT_SEED_LENGTH = 64


def parse_client_seed(value) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str) or len(value) > MAX_CLIENT_SEED_LENGTH or not value.isprintable():
        raise InvalidInput(f"Client seed must be text of at most {MAX_CLIENT_SEED_LENGTH} characters")
    return value


def parse_multiplier(value, low: Decimal, high: Decimal, name="multiplier") -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"Invalid {name}")
    if not number.is_finite():
        raise InvalidInput(f"Invalid {name}")
    if not low <= number <= high:
        raise InvalidInput(f"{name} must be between {low} and {high}")
    if number != number.quantize(Decimal("0.01")):
        raise InvalidInput(f"Invalid {name}")
    return number


class GameController:
    game_type: str = ""

    def __init__(self, broadcaster=None, store=None):
        self.broadcaster = broadcaster or get_broadcaster()
        self.store = store or get_session_store()

    # ---- action surface ----
    def place_stake(self, user_id, amount, params: dict) -> dict:
        raise NotImplementedError

    def advance(self, user_id, params: dict) -> dict:
        raise InvalidInput(f"{self.game_type} has no moves")

    def settle(self, user_id, params: dict) -> dict:
        raise InvalidInput(f"{self.game_type} settles automatically")

    # ---- helpers ----
    def new_seeds(self, params: dict) -> dict:
        return fairness.new_seeds(client_seed=parse_client_seed(params.get("client_seed")))

    def stake(self, user_id, amount, seeds, game_data=None) -> StakeReceipt:
        receipt = open_stake(user_id, self.game_type, amount, seeds=seeds, game_data=game_data)
        self.broadcaster.notify_sync(user_id, "balance_update", {"balance": str(receipt.new_balance)})
        return receipt

    def finish(self, wager_id, **kwargs) -> Settlement:
        settlement = settle_wager(wager_id, **kwargs)
        publish_settlement_sync(self.broadcaster, settlement)
        return settlement


class SessionGameController(GameController):
    """Games that stay open between stake and settle."""

    def get_session(self, user_id) -> GameSession:
        session = self.store.get(user_id, self.game_type)
        if session is None:
            raise SessionNotFound()
        return session

    def state(self, user_id) -> Optional[dict]:
        session = self.store.get(user_id, self.game_type)
        return session.public_state() if session else None

    def open_session(self, user_id, amount, seeds, *, config, secret=None, progress=None):
        if self.store.get(user_id, self.game_type) is not None:
            raise SessionConflict()

        receipt = self.stake(user_id, amount, seeds, game_data={"config": config})
        session = GameSession(
            user_id=user_id,
            game_type=self.game_type,
            bet_amount=receipt.wager.amount,
            wager_id=receipt.wager_id,
            config=config,
            secret={**(secret or {}), "server_seed": seeds["server_seed"]},
            progress=progress or {},
        )
        try:
            self.store.create(session)
        except SessionConflict:
            # lost a race with a concurrent stake of the same game
            self._refund(receipt, "session_conflict")
            raise
        except Exception as e:
            logger.error(f"Could not store {self.game_type} session for wager {receipt.wager_id}: {e}")
            self._refund(receipt, "session_store_failed")
            raise PersistenceFailure() from e
        return session, receipt

    def _refund(self, receipt: StakeReceipt, reason: str):
        new_balance = void_wager(receipt.wager_id, reason)
        self.broadcaster.notify_sync(receipt.wager.user_id, "balance_update", {"balance": str(new_balance)})

    def close_session(self, session: GameSession, **settle_kwargs) -> Settlement:
        try:
            settlement = self.finish(session.wager_id, **settle_kwargs)
        except AlreadySettled:
            self.store.discard(session.user_id, self.game_type, session.wager_id)
            raise
        self.store.discard(session.user_id, self.game_type, session.wager_id)
        return settlement
