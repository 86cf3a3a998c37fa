"""
DailyScheduler -- In-process once-per-day job trigger.

Contract:
    Polls on a fixed interval.  The first ``tick()`` that observes a new
    calendar day (per the injected Clock) opens a session, runs the job and
    commits.  Later ticks on the same day do nothing.

Architecture: pdc_batch/services.  Knows nothing about PDCs; the job is a
    callable ``(session, today) -> Any`` supplied by the caller.

Invariants enforced:
    - All dates from the injected Clock.
    - At most one successful run per calendar day.  A failed run is logged
      and retried on the next tick.
    - Graceful shutdown: ``stop()`` waits for the current tick.
"""

from __future__ import annotations

import threading
from datetime import date
from typing import Any, Callable

from sqlalchemy.orm import Session

from pdc_kernel.domain.clock import Clock, SystemClock
from pdc_kernel.logging_config import get_logger

logger = get_logger("batch.scheduler")


class DailyScheduler:
    """Runs one job per calendar day from a background thread.

    Contract:
        - ``tick()`` fires the job if it has not yet succeeded today.
        - ``start()`` / ``stop()`` for background thread operation.

    Non-goals:
        - NOT a distributed scheduler (no leader election).  Running several
          instances is still safe for jobs built on compare-and-set updates.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        job: Callable[[Session, date], Any],
        clock: Clock | None = None,
        job_name: str = "daily_job",
        tick_interval_seconds: int = 60,
    ):
        self._session_factory = session_factory
        self._job = job
        self._clock = clock or SystemClock()
        self._job_name = job_name
        self._tick_interval = tick_interval_seconds
        self._last_run_date: date | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def last_run_date(self) -> date | None:
        return self._last_run_date

    def tick(self) -> bool:
        """Run the job if today's run has not happened (public for testing).

        Returns True when the job ran successfully on this tick.
        """
        with self._tick_lock:
            today = self._clock.today()
            if self._last_run_date == today:
                return False

            session = self._session_factory()
            try:
                result = self._job(session, today)
                session.commit()
            except Exception:
                session.rollback()
                logger.exception(
                    "scheduled_job_failed",
                    extra={"job_name": self._job_name, "run_date": today},
                )
                return False
            finally:
                session.close()

            self._last_run_date = today
            logger.info(
                "scheduled_job_fired",
                extra={
                    "job_name": self._job_name,
                    "run_date": today,
                    "result": result,
                },
            )
            return True

    def start(self) -> None:
        """Start the scheduler in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name=f"scheduler-{self._job_name}",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "scheduler_started",
            extra={"job_name": self._job_name, "tick_interval": self._tick_interval},
        )

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the scheduler thread to finish."""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("scheduler_stopped", extra={"job_name": self._job_name})

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("scheduler_tick_exception")
            self._stop_event.wait(timeout=self._tick_interval)
