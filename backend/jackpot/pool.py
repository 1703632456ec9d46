# jackpot/pool.py
"""
Shared-pot jackpot.

Players join the open round with a stake. Once the minimum number of
entrants is reached a timer is armed; when it fires the round is locked
and one ticket is drawn in [0, total_pot). Entrants are walked in join
order and the one whose stake range contains the ticket takes the pot.

Round state lives in this process, so every connection taking part in
the jackpot has to be routed to the same instance.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from channels.db import database_sync_to_async
from django.conf import settings
from django.db import transaction

from engine import fairness
from engine.broadcast import get_broadcaster, publish_settlement
from engine.errors import DuplicateEntrant, PersistenceFailure, RoundLocked
from engine.settlement import open_stake, parse_amount, settle_wager, void_wager
from wagers.models import Wager

logger = logging.getLogger(__name__)

ACCEPTING = "accepting"
LOCKED = "locked"
RESOLVING = "resolving"


@dataclass
class Entrant:
    user_id: int
    stake: Decimal
    wager_id: int
    connection: Optional[str] = None
    username: str = ""


@dataclass
class PoolRound:
    round_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    phase: str = ACCEPTING
    entrants: List[Entrant] = field(default_factory=list)
    seeds: dict = field(default_factory=dict)

    def __post_init__(self):
        if not self.seeds:
            self.seeds = fairness.new_seeds(client_seed=self.round_id)

    @property
    def public_seeds(self) -> dict:
        """Seeds recorded on entrant wagers while the round is open."""
        return {k: v for k, v in self.seeds.items() if k != "server_seed"}

    @property
    def total_pot(self) -> Decimal:
        return sum((e.stake for e in self.entrants), Decimal("0.00"))

    def find_user(self, user_id) -> Optional[Entrant]:
        return next((e for e in self.entrants if e.user_id == user_id), None)

    def find_connection(self, connection) -> Optional[Entrant]:
        return next((e for e in self.entrants if e.connection == connection), None)


def pick_winner(entrants: List[Entrant], ticket: Decimal) -> Entrant:
    """Walk entrants in join order; the stake range containing ``ticket`` wins."""
    cumulative = Decimal("0")
    for entrant in entrants:
        cumulative += entrant.stake
        if ticket < cumulative:
            return entrant
    return entrants[-1]


def settle_round(entrants, winner, total_pot, outcome, round_id, server_seed):
    with transaction.atomic():
        settlements = []
        for entrant in entrants:
            game_data = {"round_id": round_id, "ticket": str(outcome["ticket"]), "total_pot": str(total_pot)}
            if entrant is winner:
                settlements.append(settle_wager(
                    entrant.wager_id,
                    won=True,
                    multiplier=fairness.q2(total_pot / entrant.stake),
                    payout=total_pot,
                    result_hash=outcome["result_hash"],
                    server_seed=server_seed,
                    game_data=game_data,
                ))
            else:
                settlements.append(settle_wager(
                    entrant.wager_id,
                    won=False,
                    multiplier=0,
                    result_hash=outcome["result_hash"],
                    server_seed=server_seed,
                    game_data=game_data,
                ))
        return settlements


class PoolCoordinator:
    def __init__(self, broadcaster=None, delay=None, min_entrants=None, run_sync=database_sync_to_async):
        self.broadcaster = broadcaster or get_broadcaster()
        self.delay = settings.JACKPOT_DELAY if delay is None else delay
        self.min_entrants = min_entrants or settings.JACKPOT_MIN_ENTRANTS
        self.run_sync = run_sync
        self.round = PoolRound()
        self.pending_resolution: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @property
    def phase(self) -> str:
        return self.round.phase

    def snapshot(self) -> dict:
        pot = self.round.total_pot
        return {
            "round_id": self.round.round_id,
            "phase": self.round.phase,
            "total_pot": str(pot),
            "server_seed_hash": self.round.seeds["server_seed_hash"],
            "entrants": [
                {
                    "username": e.username,
                    "stake": str(e.stake),
                    "chance": str(fairness.q2(e.stake / pot * 100)) if pot else "0.00",
                }
                for e in self.round.entrants
            ],
        }

    async def join(self, user_id, stake, connection=None, username="") -> dict:
        amount = parse_amount(stake)
        if self.round.phase != ACCEPTING:
            raise RoundLocked()

        async with self._lock:
            if self.round.phase != ACCEPTING:
                raise RoundLocked()
            if self.round.find_user(user_id):
                raise DuplicateEntrant()

            receipt = await self.run_sync(open_stake)(
                user_id,
                Wager.GAME_JACKPOT,
                amount,
                seeds=self.round.public_seeds,
                game_data={"round_id": self.round.round_id},
            )
            self.round.entrants.append(Entrant(
                user_id=user_id,
                stake=amount,
                wager_id=receipt.wager_id,
                connection=connection,
                username=username,
            ))
            logger.info(f"User {user_id} joined jackpot {self.round.round_id} with {amount}")

            if len(self.round.entrants) >= self.min_entrants and self.pending_resolution is None:
                self.pending_resolution = asyncio.create_task(self._resolve_later(self.delay))

            snapshot = self.snapshot()

        await self.broadcaster.notify(user_id, "balance_update", {"balance": str(receipt.new_balance)})
        await self.broadcaster.broadcast("jackpot_update", snapshot)
        return {"new_balance": str(receipt.new_balance), "wager_id": receipt.wager_id, "round": snapshot}

    async def leave(self, connection) -> bool:
        """Refund a departing entrant; ignored once the round is locked."""
        async with self._lock:
            if self.round.phase != ACCEPTING:
                return False
            entrant = self.round.find_connection(connection)
            if entrant is None:
                return False
            new_balance = await self.run_sync(void_wager)(entrant.wager_id, "left_jackpot")
            self.round.entrants.remove(entrant)
            snapshot = self.snapshot()

        logger.info(f"User {entrant.user_id} left jackpot {snapshot['round_id']}, stake refunded")
        await self.broadcaster.notify(entrant.user_id, "balance_update", {"balance": str(new_balance)})
        await self.broadcaster.broadcast("jackpot_update", snapshot)
        return True

    async def _resolve_later(self, delay):
        await asyncio.sleep(delay)
        await self.resolve()

    async def resolve(self):
        async with self._lock:
            current = self.round
            current.phase = LOCKED
            entrants = list(current.entrants)

            try:
                if len(entrants) < self.min_entrants:
                    refunds = await self._void_all(entrants, "not_enough_entrants")
                    result = ("jackpot_cancelled", {"round_id": current.round_id}, refunds, [])
                else:
                    current.phase = RESOLVING
                    result = await self._draw(current, entrants)
            finally:
                self.round = PoolRound()
                self.pending_resolution = None

        event, data, refunds, settlements = result
        for user_id, balance in refunds:
            await self.broadcaster.notify(user_id, "balance_update", {"balance": str(balance)})
        for settlement in settlements:
            await publish_settlement(self.broadcaster, settlement)
        await self.broadcaster.broadcast(event, data)
        await self.broadcaster.broadcast("jackpot_update", self.snapshot())
        return data

    async def _draw(self, current, entrants):
        total_pot = current.total_pot
        seeds = current.seeds
        outcome = fairness.resolve(
            Wager.GAME_JACKPOT, {"total_pot": total_pot},
            seeds["server_seed"], seeds["client_seed"], seeds["nonce"],
        )
        winner = pick_winner(entrants, outcome["ticket"])

        try:
            settlements = await self.run_sync(settle_round)(
                entrants, winner, total_pot, outcome, current.round_id, seeds["server_seed"]
            )
        except PersistenceFailure:
            logger.error(f"Jackpot {current.round_id} could not be settled, refunding entrants")
            refunds = await self._void_all(entrants, "settlement_failed")
            return "jackpot_cancelled", {"round_id": current.round_id}, refunds, []

        logger.info(
            f"Jackpot {current.round_id}: {winner.user_id} wins {total_pot} "
            f"({len(entrants)} entrants, ticket {outcome['ticket']:.2f})"
        )
        data = {
            "round_id": current.round_id,
            "winner": winner.username,
            "winner_id": winner.user_id,
            "total_pot": str(total_pot),
            "winner_stake": str(winner.stake),
            "ticket": str(fairness.q2(outcome["ticket"])),
            "server_seed": seeds["server_seed"],
            "client_seed": seeds["client_seed"],
            "result_hash": outcome["result_hash"],
        }
        return "jackpot_winner", data, [], settlements

    async def _void_all(self, entrants, reason):
        refunds = []
        for entrant in entrants:
            try:
                balance = await self.run_sync(void_wager)(entrant.wager_id, reason)
            except PersistenceFailure:
                logger.error(f"Refund of jackpot wager {entrant.wager_id} failed, wager left pending")
                continue
            refunds.append((entrant.user_id, balance))
        if entrants:
            logger.info(f"Jackpot round voided ({reason}), {len(refunds)} stakes refunded")
        return refunds

    async def drain(self):
        """Wait for a scheduled resolution to finish."""
        task = self.pending_resolution
        if task is not None:
            await task


_pool: Optional[PoolCoordinator] = None


def get_pool() -> PoolCoordinator:
    global _pool
    if _pool is None:
        _pool = PoolCoordinator()
    return _pool
