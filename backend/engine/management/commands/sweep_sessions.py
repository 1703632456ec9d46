import signal
import time

from django.conf import settings
from django.core.management.base import BaseCommand

from engine.locks import LockLost, SweeperLease
from engine.sessions import InMemorySessionStore, get_session_store
from engine.sweeper import sweep_expired_sessions


class Command(BaseCommand):
    help = "Refund idle game sessions, guarded by a Redis single-instance lock"

    def add_arguments(self, parser):
        parser.add_argument("--once", action="store_true", help="Run a single sweep and exit")
        parser.add_argument(
            "--interval",
            type=float,
            default=settings.SESSION_SWEEP_INTERVAL,
            help="Seconds between sweeps",
        )
        parser.add_argument(
            "--lock-ttl",
            type=int,
            default=settings.SESSION_SWEEP_LOCK_TTL,
            help="Lock TTL in seconds",
        )

    def handle(self, *args, **options):
        store = get_session_store()
        if isinstance(store, InMemorySessionStore):
            self.stdout.write(self.style.WARNING(
                "[SWEEPER] In-memory session store is process-local; "
                "this command only sees sessions created in its own process."
            ))

        if options["once"]:
            swept = sweep_expired_sessions(store)
            self.stdout.write(self.style.SUCCESS(f"[SWEEPER] Swept {len(swept)} sessions"))
            return

        lease = SweeperLease(options["lock_ttl"])
        if not lease.acquire():
            self.stdout.write(self.style.WARNING("[SWEEPER] Another sweeper already running. Exiting."))
            return

        self.stdout.write(self.style.SUCCESS("[SWEEPER] Lock acquired. Sweeping."))
        running = True

        def shutdown(*_):
            nonlocal running
            running = False
            self.stdout.write(self.style.WARNING("[SWEEPER] Shutdown requested."))

        signal.signal(signal.SIGINT, shutdown)
        signal.signal(signal.SIGTERM, shutdown)

        try:
            while running:
                lease.keep_alive()
                swept = sweep_expired_sessions(store)
                if swept:
                    self.stdout.write(f"[SWEEPER] Swept {len(swept)} sessions")
                time.sleep(options["interval"])
        except LockLost:
            self.stdout.write(self.style.ERROR("[SWEEPER] Lock lost. Another instance may have taken over."))
        finally:
            lease.release()
            self.stdout.write(self.style.SUCCESS("[SWEEPER] Lock released. Sweeper stopped."))
