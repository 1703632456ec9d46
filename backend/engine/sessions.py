# engine/sessions.py
"""
Registry of games in progress (mines, limbo).

At most one ongoing session exists per (user_id, game_type). A session
always points at a pending wager; whoever removes the session is
responsible for settling or voiding that wager.
"""
from __future__ import annotations

import copy
import json
import threading
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import redis
from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from .errors import SessionConflict

ONGOING = "ongoing"
RESOLVED = "resolved"


@dataclass
class GameSession:
    user_id: int
    game_type: str
    bet_amount: Decimal
    wager_id: int
    config: dict = field(default_factory=dict)
    secret: dict = field(default_factory=dict)  # never sent while ongoing
    progress: dict = field(default_factory=dict)
    current_multiplier: Decimal = Decimal("1.00")
    status: str = ONGOING
    started_at: datetime = field(default_factory=timezone.now)
    touched_at: datetime = field(default_factory=timezone.now)

    @property
    def key(self) -> Tuple[int, str]:
        return (self.user_id, self.game_type)

    def touch(self) -> None:
        self.touched_at = timezone.now()

    def public_state(self) -> dict:
        return {
            "game_type": self.game_type,
            "wager_id": self.wager_id,
            "bet_amount": str(self.bet_amount),
            "config": self.config,
            "progress": self.progress,
            "current_multiplier": str(self.current_multiplier),
            "status": self.status,
            "started_at": self.started_at.isoformat(),
        }

    def to_json(self) -> str:
        data = asdict(self)
        data["bet_amount"] = str(self.bet_amount)
        data["current_multiplier"] = str(self.current_multiplier)
        data["started_at"] = self.started_at.isoformat()
        data["touched_at"] = self.touched_at.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> "GameSession":
        data = json.loads(raw)
        data["bet_amount"] = Decimal(data["bet_amount"])
        data["current_multiplier"] = Decimal(data["current_multiplier"])
        data["started_at"] = datetime.fromisoformat(data["started_at"])
        data["touched_at"] = datetime.fromisoformat(data["touched_at"])
        return cls(**data)


class SessionStore:
    """Interface. Implementations must make ``create`` and ``discard`` atomic."""

    def create(self, session: GameSession) -> GameSession:
        raise NotImplementedError

    def get(self, user_id, game_type) -> Optional[GameSession]:
        raise NotImplementedError

    def save(self, session: GameSession) -> None:
        raise NotImplementedError

    def discard(self, user_id, game_type, wager_id=None) -> Optional[GameSession]:
        """Remove and return the session; with ``wager_id`` only if it still matches."""
        raise NotImplementedError

    def all(self) -> List[GameSession]:
        raise NotImplementedError

    def expired(self, max_age_seconds: int) -> List[GameSession]:
        cutoff = timezone.now() - timedelta(seconds=max_age_seconds)
        return [s for s in self.all() if s.touched_at < cutoff]


class InMemorySessionStore(SessionStore):
    """Process-local; needs sticky routing when more than one instance runs."""

    def __init__(self, **options):
        self._sessions: Dict[Tuple[int, str], GameSession] = {}
        self._lock = threading.Lock()

    def create(self, session):
        with self._lock:
            if session.key in self._sessions:
                raise SessionConflict()
            self._sessions[session.key] = copy.deepcopy(session)
        return session

    def get(self, user_id, game_type):
        with self._lock:
            return copy.deepcopy(self._sessions.get((user_id, game_type)))

    def save(self, session):
        session.touch()
        with self._lock:
            current = self._sessions.get(session.key)
            if current is not None and current.wager_id == session.wager_id:
                self._sessions[session.key] = copy.deepcopy(session)

    def discard(self, user_id, game_type, wager_id=None):
        with self._lock:
            current = self._sessions.get((user_id, game_type))
            if current is None:
                return None
            if wager_id is not None and current.wager_id != wager_id:
                return None
            return self._sessions.pop((user_id, game_type))

    def all(self):
        with self._lock:
            return [copy.deepcopy(s) for s in self._sessions.values()]


class RedisSessionStore(SessionStore):
    """
    Shared store for multi-instance deployments. Writes to an existing
    session are compare-and-set on its wager, inside WATCH/MULTI.
    """

    prefix = "game-session"

    def __init__(self, url=None, client=None, **options):
        from .locks import get_redis
        self.r = client or get_redis(url)

    def _key(self, user_id, game_type):
        return f"{self.prefix}:{game_type}:{user_id}"

    def _swap(self, key, wager_id, write) -> Optional[str]:
        """Apply ``write`` to a pipeline while ``key`` still holds ``wager_id``."""
        with self.r.pipeline() as pipe:
            while True:
                try:
                    pipe.watch(key)
                    raw = pipe.get(key)
                    if raw is None:
                        return None
                    if wager_id is not None and GameSession.from_json(raw).wager_id != wager_id:
                        return None
                    pipe.multi()
                    write(pipe)
                    pipe.execute()
                    return raw
                except redis.WatchError:
                    continue

    def create(self, session):
        ok = self.r.set(self._key(*session.key), session.to_json(), nx=True)
        if not ok:
            raise SessionConflict()
        return session

    def get(self, user_id, game_type):
        raw = self.r.get(self._key(user_id, game_type))
        return GameSession.from_json(raw) if raw else None

    def save(self, session):
        session.touch()
        key = self._key(*session.key)
        payload = session.to_json()
        self._swap(key, session.wager_id, lambda pipe: pipe.set(key, payload))

    def discard(self, user_id, game_type, wager_id=None):
        key = self._key(user_id, game_type)
        raw = self._swap(key, wager_id, lambda pipe: pipe.delete(key))
        return GameSession.from_json(raw) if raw else None

    def all(self):
        sessions = []
        for key in self.r.scan_iter(match=f"{self.prefix}:*"):
            raw = self.r.get(key)
            if raw:
                sessions.append(GameSession.from_json(raw))
        return sessions


_store: Optional[SessionStore] = None
_store_lock = threading.Lock()


def get_session_store() -> SessionStore:
    global _store
    with _store_lock:
        if _store is None:
            conf = settings.SESSION_STORE
            _store = import_string(conf["BACKEND"])(**conf.get("OPTIONS", {}))
        return _store


def reset_session_store() -> None:
    global _store
    with _store_lock:
        _store = None
