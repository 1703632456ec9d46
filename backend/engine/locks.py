# engine/locks.py
import logging
import time

import redis
from django.conf import settings
from redis.exceptions import LockError

logger = logging.getLogger(__name__)

SWEEPER_LOCK_KEY = "casino:sweeper"


def get_redis(url=None):
    return redis.Redis.from_url(url or settings.REDIS_URL, decode_responses=True)


class LockLost(RuntimeError):
    pass


class SweeperLease:
    """
    Lets one sweeper process run at a time. The lease expires after
    ``ttl_seconds`` unless ``keep_alive`` resets it, so a crashed sweeper
    is replaced once the lease runs out.
    """

    def __init__(self, ttl_seconds: int, client=None, key: str = SWEEPER_LOCK_KEY):
        self.ttl = ttl_seconds
        self.renew_every = max(1.0, ttl_seconds / 3)
        self.lock = (client or get_redis()).lock(key, timeout=ttl_seconds, thread_local=False)
        self._renew_at = 0.0

    def acquire(self) -> bool:
        if not self.lock.acquire(blocking=False):
            return False
        self._renew_at = time.monotonic() + self.renew_every
        return True

    def keep_alive(self):
        """Reset the lease to its full TTL; called between sweeps."""
        now = time.monotonic()
        if now < self._renew_at:
            return
        try:
            self.lock.reacquire()
        except LockError as e:
            raise LockLost(f"Sweeper lease lost: {e}") from e
        self._renew_at = now + self.renew_every

    def release(self):
        try:
            self.lock.release()
        except LockError:
            logger.warning("Sweeper lease had already expired on release")
