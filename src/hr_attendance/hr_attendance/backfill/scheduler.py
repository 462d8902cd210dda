from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta
from typing import Callable, Optional, TypeVar

from apscheduler.schedulers.background import BackgroundScheduler

from ..common.datetime_utils import now_local
from ..core.exceptions import ConflictError
from .service import BackfillService

logger = logging.getLogger(__name__)

JOB_STARTUP_BACKFILL = "attendance-startup-backfill"
JOB_DAILY_BACKFILL = "attendance-daily-backfill"
JOB_DAILY_AUTO_MARK = "attendance-daily-auto-mark"
JOB_MIDNIGHT_AUTO_MARK = "attendance-midnight-auto-mark"

T = TypeVar("T")


class PassInProgressError(ConflictError):
    """Another backfill or auto-mark pass holds the scheduler lock."""


class AttendanceScheduler:
    """Runs the backfill passes in a background thread.

    Jobs:
    - once at startup: full history backfill
    - 02:00 daily: full history backfill
    - 01:00 daily: auto-mark yesterday
    - 00:00 daily: auto-mark the day that just ended (grace-period safety net)

    All jobs share one lock with the manual runs in :meth:`run_now`; a
    scheduled run that finds it held logs and returns.
    """

    def __init__(
        self,
        backfill: BackfillService,
        *,
        timezone: Optional[str] = None,
        scheduler: Optional[BackgroundScheduler] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._backfill = backfill
        self._clock = clock
        self._lock = threading.Lock()
        if scheduler is None:
            kwargs = {
                "job_defaults": {
                    "coalesce": True,
                    "max_instances": 1,
                    "misfire_grace_time": 3600,
                },
            }
            if timezone:
                kwargs["timezone"] = timezone
            scheduler = BackgroundScheduler(**kwargs)
        self._scheduler = scheduler

    @property
    def scheduler(self) -> BackgroundScheduler:
        return self._scheduler

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def register_jobs(self) -> None:
        # No trigger: runs once as soon as the scheduler starts.
        self._scheduler.add_job(self.run_full_backfill, id=JOB_STARTUP_BACKFILL, replace_existing=True)
        self._scheduler.add_job(
            self.run_full_backfill, "cron", hour=2, minute=0, id=JOB_DAILY_BACKFILL, replace_existing=True
        )
        self._scheduler.add_job(
            self.run_daily_auto_mark, "cron", hour=1, minute=0, id=JOB_DAILY_AUTO_MARK, replace_existing=True
        )
        self._scheduler.add_job(
            self.run_midnight_auto_mark, "cron", hour=0, minute=0, id=JOB_MIDNIGHT_AUTO_MARK, replace_existing=True
        )

    def start(self) -> None:
        self.register_jobs()
        try:
            self._scheduler.start()
        except Exception:
            logger.exception("Attendance scheduler failed to start; continuing without background jobs")
            return
        logger.info("Attendance scheduler started with %d jobs", len(self._scheduler.get_jobs()))

    def shutdown(self) -> None:
        if self.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Attendance scheduler stopped")

    def run_full_backfill(self) -> bool:
        return self._run("full backfill", lambda: self._backfill.backfill_all(today=self._today()))

    def run_daily_auto_mark(self) -> bool:
        return self._auto_mark_previous_day("daily auto-mark")

    def run_midnight_auto_mark(self) -> bool:
        # Fires at 00:00, so the previous day is the one that just ended.
        return self._auto_mark_previous_day("midnight auto-mark")

    def _auto_mark_previous_day(self, name: str) -> bool:
        today = self._today()
        return self._run(name, lambda: self._backfill.mark_day(today - timedelta(days=1), today=today))

    def _today(self) -> date:
        return self._clock().date()

    def run_now(self, name: str, job: Callable[[], T]) -> T:
        """Run job under the shared lock; PassInProgressError if another pass holds it."""
        if not self._lock.acquire(blocking=False):
            raise PassInProgressError(f"Cannot start {name}: another attendance pass is still running")
        try:
            return job()
        finally:
            self._lock.release()

    def _run(self, name: str, job: Callable[[], object]) -> bool:
        """Scheduled entry point: never raises. Returns whether the job ran."""
        try:
            summary = self.run_now(name, job)
        except PassInProgressError:
            logger.warning("Skipping %s: another attendance pass is still running", name)
            return False
        except Exception:
            logger.exception("Scheduled %s failed", name)
            return True
        logger.info("Scheduled %s finished: %s", name, _describe(summary))
        return True


def _describe(summary: object) -> str:
    if hasattr(summary, "processed"):
        return "processed={} skipped={} already_exists={}".format(
            summary.processed, summary.skipped, summary.already_exists
        )
    return repr(summary)
