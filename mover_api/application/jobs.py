"""Scheduler-facing wrappers around the notification sweeps.

Each job opens its own session when none is supplied, refuses to start while a previous run is
still in progress and keeps running statistics for the admin status endpoint.
The cadence is decided by whatever invokes :meth:`run`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from threading import Lock
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mover_api.application.use_cases.notifications import (
    archive_stale_reviews,
    get_notification_settings,
    reconcile_all,
    run_age_check,
)
from mover_api.infrastructure.database import SessionLocal
from mover_api.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


@dataclass
class JobStats:
    total_runs: int = 0
    errors: int = 0
    average_processing_time: float = 0.0
    last_run: datetime | None = None
    last_duration: float | None = None
    last_error: str | None = None
    counters: dict[str, int] = field(default_factory=dict)

    def record_success(self, duration: float, counters: dict[str, int]) -> None:
        self.total_runs += 1
        self.average_processing_time = (
            self.average_processing_time * (self.total_runs - 1) + duration
        ) / self.total_runs
        self.last_duration = duration
        self.last_run = now_in_app_timezone()
        self.last_error = None
        for key, value in counters.items():
            self.counters[key] = self.counters.get(key, 0) + value


class NotificationJob:
    """Base class providing the overlap guard and statistics."""

    name = "notification-job"

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory
        self._lock = Lock()
        self.is_running = False
        self.stats = JobStats()

    def run(self, session: Session | None = None) -> dict[str, Any] | None:
        """Execute one run; returns its counters, or ``None`` when skipped.

        A caller supplied ``session`` is used as is and left open.
        """

        if not self._lock.acquire(blocking=False):
            logger.warning("%s is already running; skipping this run", self.name)
            return None

        self.is_running = True
        started = time.perf_counter()
        owns_session = session is None
        if session is None:
            session = self._session_factory()
        try:
            counters = self.execute(session)
        except SQLAlchemyError as exc:
            session.rollback()
            self.stats.errors += 1
            self.stats.last_error = str(exc)
            logger.exception("%s failed", self.name)
            raise
        finally:
            if owns_session:
                session.close()
            self.is_running = False
            self._lock.release()

        duration = time.perf_counter() - started
        self.stats.record_success(duration, counters)
        logger.info("%s finished in %.2fs: %s", self.name, duration, counters)
        return counters

    def execute(self, session: Session) -> dict[str, int]:
        raise NotImplementedError

    def status(self) -> dict[str, Any]:
        return {"name": self.name, "is_running": self.is_running, **asdict(self.stats)}


class LifecycleJob(NotificationJob):
    """Age check, auto-extension and stale review archival."""

    name = "notification-lifecycle"

    def execute(self, session: Session) -> dict[str, int]:
        settings = get_notification_settings()
        result = run_age_check(session, settings=settings)
        archived = archive_stale_reviews(
            session, batch_size=settings.notification_batch_size
        )
        return {
            "checked": result.checked,
            "reminders_sent": result.reminders_sent,
            "moved_to_review": result.moved_to_review,
            "auto_extended": result.auto_extended,
            "archived": archived,
            "failures": result.failures,
        }


class ReadStatusJob(NotificationJob):
    """Periodic repair of the cached read-by-all flag."""

    name = "notification-read-status"

    def execute(self, session: Session) -> dict[str, int]:
        result = reconcile_all(session)
        return {
            "scanned": result.scanned,
            "drifted": result.drifted,
            "corrected": result.corrected,
            "skipped": result.skipped,
            "failures": result.failures,
        }


lifecycle_job = LifecycleJob()
read_status_job = ReadStatusJob()


def get_jobs_status() -> dict[str, dict[str, Any]]:
    return {
        "lifecycle": lifecycle_job.status(),
        "read_status": read_status_job.status(),
    }


__all__ = [
    "JobStats",
    "LifecycleJob",
    "NotificationJob",
    "ReadStatusJob",
    "get_jobs_status",
    "lifecycle_job",
    "read_status_job",
]
