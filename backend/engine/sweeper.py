# engine/sweeper.py
"""
Refunds games that were abandoned mid-way. A session idle for longer than
SESSION_IDLE_TIMEOUT is removed, its stake credited back and its wager
voided.
"""
import asyncio
import logging

from channels.db import database_sync_to_async
from django.conf import settings

from .broadcast import get_broadcaster
from .errors import AlreadySettled, PersistenceFailure, SessionConflict
from .sessions import get_session_store
from .settlement import void_wager

logger = logging.getLogger(__name__)


def sweep_expired_sessions(store=None, broadcaster=None, max_age=None) -> list:
    store = store or get_session_store()
    broadcaster = broadcaster or get_broadcaster()
    max_age = settings.SESSION_IDLE_TIMEOUT if max_age is None else max_age

    swept = []
    for session in store.expired(max_age):
        if store.discard(session.user_id, session.game_type, session.wager_id) is None:
            continue  # finished while we were looking

        try:
            new_balance = void_wager(session.wager_id, "idle_timeout")
        except AlreadySettled:
            logger.info(f"Session {session.key} already settled, dropped")
            continue
        except PersistenceFailure:
            try:
                store.create(session)
                logger.error(f"Could not refund idle session {session.key}, will retry")
            except SessionConflict:
                logger.error(f"Could not refund idle session {session.key}, wager {session.wager_id} left pending")
            continue

        logger.info(
            f"Swept idle {session.game_type} session of user {session.user_id}, "
            f"refunded {session.bet_amount}"
        )
        broadcaster.notify_sync(session.user_id, "session_expired", {
            "game_type": session.game_type,
            "wager_id": session.wager_id,
            "refunded": str(session.bet_amount),
        })
        broadcaster.notify_sync(session.user_id, "balance_update", {"balance": str(new_balance)})
        swept.append(session)
    return swept


class SessionSweeper:
    """Periodic in-process sweep, started by the first websocket connection."""

    def __init__(self, interval=None, store=None, broadcaster=None):
        self.interval = settings.SESSION_SWEEP_INTERVAL if interval is None else interval
        self.store = store
        self.broadcaster = broadcaster
        self._task = None

    @property
    def running(self):
        return self._task is not None and not self._task.done()

    def ensure_running(self):
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await database_sync_to_async(sweep_expired_sessions)(self.store, self.broadcaster)
            except Exception as e:
                logger.error(f"Session sweep failed: {e}")

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None


_sweeper = None


def get_sweeper() -> SessionSweeper:
    global _sweeper
    if _sweeper is None:
        _sweeper = SessionSweeper()
    return _sweeper
