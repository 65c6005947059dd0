"""Background reaper that deletes expired super-admin sessions on a fixed schedule."""

from __future__ import annotations

import threading
from typing import Optional

import schedule

from bench.auth.service import SuperAdminAuthService
from bench.utils.logger import get_logger

logger = get_logger(__name__)

LOOP_TICK_SECONDS = 30


def run_reaper_once(service: SuperAdminAuthService) -> int:
    """Reap once; errors are logged and reported as 0 rows."""
    try:
        return service.reap_expired_sessions()
    except Exception as e:
        logger.error("Session reaper run failed", error=str(e))
        return 0


class SessionReaper:
    """Daemon thread running a private schedule.Scheduler for one auth service.

    Each application owns its own instance, so starting or stopping one
    never affects another.
    """

    def __init__(
        self,
        service: SuperAdminAuthService,
        interval_minutes: int = 60,
        tick_seconds: float = LOOP_TICK_SECONDS,
    ):
        self.service = service
        self.interval_minutes = interval_minutes
        self.tick_seconds = tick_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._scheduler: Optional[schedule.Scheduler] = None

    @property
    def scheduler(self) -> Optional[schedule.Scheduler]:
        return self._scheduler

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self, scheduler: schedule.Scheduler) -> None:
        logger.info("Session reaper loop started")
        while not self._stop.is_set():
            try:
                scheduler.run_pending()
            except Exception as e:
                logger.error("Error in session reaper loop", error=str(e))
            self._stop.wait(self.tick_seconds)
        logger.info("Session reaper loop stopped")

    def start(self) -> None:
        """Start the background thread (no-op if already running)."""
        if self._thread is not None:
            logger.warning("Session reaper already running")
            return

        self._scheduler = schedule.Scheduler()
        self._scheduler.every(self.interval_minutes).minutes.do(run_reaper_once, self.service)

        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            args=(self._scheduler,),
            daemon=True,
            name="session-reaper",
        )
        self._thread.start()
        logger.info("Session reaper started", interval_minutes=self.interval_minutes)

    def stop(self) -> None:
        """Stop the thread and drop its jobs."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        if self._scheduler is not None:
            self._scheduler.clear()
            self._scheduler = None
        logger.info("Session reaper stopped")
