"""
CIVIC REPORTS - Lifecycle Scheduler Jobs

Simulates municipal response: each new report gets three one-shot APScheduler
date jobs that move it submitted -> acknowledged -> in_progress -> resolved.

Jobs are in-memory only. A restart drops pending advancements and the report
stays at whatever status it last reached. Each job overwrites the status
unconditionally, so an admin edit made between two jobs is clobbered by the
next one.
"""
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from app.config import get_config
from app.reports.models import JsonStore, get_store

logger = logging.getLogger(__name__)

# Linear status machine; index 0 is the initial state
LIFECYCLE = ("submitted", "acknowledged", "in_progress", "resolved")


def next_status(status: str) -> Optional[str]:
    """The status after `status`, or None for the terminal state."""
    try:
        idx = LIFECYCLE.index(status)
    except ValueError:
        return None
    return LIFECYCLE[idx + 1] if idx + 1 < len(LIFECYCLE) else None


def configured_steps() -> List[Tuple[str, float]]:
    """(target status, delay seconds) for each automatic advancement."""
    return [
        ("acknowledged", float(get_config("ack_delay_seconds", 1.2))),
        ("in_progress", float(get_config("progress_delay_seconds", 4.2))),
        ("resolved", float(get_config("resolve_delay_seconds", 12.0))),
    ]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleManager:
    """
    Owns the pending advancement jobs, keyed by report id.

    The scheduler and clock are injectable; tests pass a scheduler whose
    time is advanced by hand.
    """

    def __init__(
        self,
        scheduler=None,
        store: Optional[JsonStore] = None,
        clock: Callable[[], datetime] = _utcnow,
        steps: Optional[List[Tuple[str, float]]] = None,
    ):
        if scheduler is None:
            scheduler = BackgroundScheduler(
                timezone=timezone.utc,
                # One worker: every job is an unlocked read-modify-write of the store file
                executors={"default": ThreadPoolExecutor(max_workers=1)},
                job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 60},
            )
        self._scheduler = scheduler
        self._store = store
        self._clock = clock
        self._steps = steps
        # report_id -> list of APScheduler job IDs still pending
        self._jobs: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

        self._scheduler.add_listener(self._on_job_executed, EVENT_JOB_EXECUTED)
        self._scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)

    @property
    def store(self) -> JsonStore:
        return self._store or get_store()

    @property
    def scheduler(self):
        return self._scheduler

    def _on_job_executed(self, event):
        logger.debug(f"[Lifecycle] Job {event.job_id} executed")

    def _on_job_error(self, event):
        logger.error(f"[Lifecycle] Job {event.job_id} failed: {event.exception}")

    # ------------------------------------------------------------------
    # Start / stop
    # ------------------------------------------------------------------

    def start(self):
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("[Lifecycle] Scheduler started")

    def shutdown(self):
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("[Lifecycle] Scheduler stopped")

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(self, report_id: str) -> List[str]:
        """Register the three advancement jobs for a new report. Returns their job ids."""
        if not get_config("lifecycle_enabled", True):
            logger.debug(f"[Lifecycle] Disabled, not scheduling {report_id}")
            return []

        steps = self._steps if self._steps is not None else configured_steps()
        now = self._clock()
        job_ids = []

        for status, delay in steps:
            job_id = f"lifecycle_{report_id}_{status}"
            self._scheduler.add_job(
                self._advance,
                trigger="date",
                run_date=now + timedelta(seconds=delay),
                id=job_id,
                args=[report_id, status],
                replace_existing=True,
            )
            job_ids.append(job_id)

        with self._lock:
            self._jobs[report_id] = list(job_ids)

        logger.info(f"[Lifecycle] Scheduled {len(job_ids)} advancements for report {report_id}")
        return job_ids

    def cancel(self, report_id: str) -> int:
        """Drop every pending advancement for a report. Returns how many were removed."""
        with self._lock:
            job_ids = self._jobs.pop(report_id, [])

        removed = 0
        for job_id in job_ids:
            try:
                self._scheduler.remove_job(job_id)
                removed += 1
            except JobLookupError:
                pass  # already fired

        if removed:
            logger.info(f"[Lifecycle] Cancelled {removed} pending advancements for report {report_id}")
        return removed

    def pending(self, report_id: str) -> List[str]:
        with self._lock:
            return list(self._jobs.get(report_id, []))

    def _advance(self, report_id: str, status: str):
        """Job body: overwrite the report's status."""
        job_id = f"lifecycle_{report_id}_{status}"
        with self._lock:
            remaining = self._jobs.get(report_id)
            if remaining is not None and job_id in remaining:
                remaining.remove(job_id)
                if not remaining:
                    del self._jobs[report_id]

        updated = self.store.update(report_id, {"status": status})
        if updated is None:
            logger.warning(f"[Lifecycle] Report {report_id} not found, skipping advance to {status}")
            return
        logger.info(f"[Lifecycle] Report {report_id} -> {status}")


_manager: Optional[LifecycleManager] = None


def get_lifecycle_manager() -> LifecycleManager:
    """Get or create the singleton lifecycle manager."""
    global _manager
    if _manager is None:
        _manager = LifecycleManager()
    return _manager


def set_lifecycle_manager(manager: Optional[LifecycleManager]):
    global _manager
    _manager = manager


def init_lifecycle_scheduler():
    """Start the lifecycle scheduler if it is enabled."""
    if not get_config("lifecycle_enabled", True):
        logger.info("[Lifecycle] Simulation disabled by config")
        return
    get_lifecycle_manager().start()


def shutdown_lifecycle_scheduler():
    if _manager is not None:
        _manager.shutdown()
