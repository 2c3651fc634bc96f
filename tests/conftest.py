"""
CIVIC REPORTS - Test Infrastructure (conftest.py)
=================================================
Provides:
  - Isolated data file + uploads directory for the whole session
  - Per-test JSON store on tmp_path
  - Fake APScheduler with a hand-driven clock for lifecycle tests
  - FastAPI TestClient wired to the per-test store and fake scheduler
  - Report factory helpers
"""

import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone

import pytest
from apscheduler.jobstores.base import JobLookupError

# Ensure project root is on path
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT_DIR)

# ============================================================================
# TEST MODE: keep data and uploads out of the source tree
# ============================================================================
TEST_ROOT = tempfile.mkdtemp(prefix="civic_test_")
os.environ.setdefault("CIVIC_DATA_FILE", os.path.join(TEST_ROOT, "reports.json"))
os.environ.setdefault("CIVIC_UPLOADS_DIR", os.path.join(TEST_ROOT, "uploads"))
os.environ.setdefault("CIVIC_LOG_LEVEL", "DEBUG")

from app.config import reset_config  # noqa: E402
from app.lifecycle.scheduler_jobs import LifecycleManager, set_lifecycle_manager  # noqa: E402
from app.reports.models import JsonStore, Report, ReportLocation, new_report_id, set_store  # noqa: E402
from app.reports.routing import route  # noqa: E402

DEMO_STEPS = [("acknowledged", 1.2), ("in_progress", 4.2), ("resolved", 12.0)]
EPOCH = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Fake scheduler
# ============================================================================

class FakeClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, start=EPOCH):
        self.now = start

    def __call__(self):
        return self.now


class FakeScheduler:
    """
    Just enough of the BackgroundScheduler surface for LifecycleManager.
    Jobs run synchronously from advance(), in run_date order.
    """

    def __init__(self, clock):
        self.clock = clock
        self.jobs = {}
        self.listeners = []
        self.running = False

    def add_listener(self, callback, mask=None):
        self.listeners.append((callback, mask))

    def start(self):
        self.running = True

    def shutdown(self, wait=True):
        self.running = False

    def add_job(self, func, trigger=None, run_date=None, id=None, args=None, replace_existing=False, **kwargs):
        if id in self.jobs and not replace_existing:
            raise ValueError(f"duplicate job {id}")
        self.jobs[id] = (run_date, func, list(args or []))

    def remove_job(self, job_id):
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        del self.jobs[job_id]

    def advance(self, seconds):
        """Move the clock forward and fire every job that became due."""
        self.clock.now = self.clock.now + timedelta(seconds=seconds)
        due = sorted(
            (run_date, job_id) for job_id, (run_date, _, _) in self.jobs.items()
            if run_date <= self.clock.now
        )
        for _, job_id in due:
            _, func, args = self.jobs.pop(job_id)
            func(*args)
        return [job_id for _, job_id in due]


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def store(tmp_path):
    """Per-test store, installed as the process-wide store."""
    s = JsonStore(tmp_path / "data" / "reports.json")
    set_store(s)
    yield s
    set_store(None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_scheduler(clock):
    return FakeScheduler(clock)


@pytest.fixture
def lifecycle(store, fake_scheduler, clock):
    manager = LifecycleManager(scheduler=fake_scheduler, store=store, clock=clock, steps=DEMO_STEPS)
    set_lifecycle_manager(manager)
    yield manager
    set_lifecycle_manager(None)


@pytest.fixture
def client(store, lifecycle):
    """FastAPI TestClient against the per-test store and fake scheduler."""
    from starlette.testclient import TestClient
    import main

    with TestClient(main.app) as c:
        yield c


# ============================================================================
# Report helpers
# ============================================================================

def make_report(**overrides) -> Report:
    """Build a valid Report; any field can be overridden."""
    category = overrides.pop("category", "pothole")
    location = overrides.pop("location", None)
    if isinstance(location, tuple):
        location = ReportLocation(lat=location[0], lng=location[1])
    fields = {
        "id": new_report_id(),
        "description": "Deep pothole near the crosswalk",
        "category": category,
        "urgency": "medium",
        "location": location,
        "createdAt": int(EPOCH.timestamp() * 1000),
        "status": "submitted",
        "department": route(category),
    }
    fields.update(overrides)
    return Report(**fields)


def ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)
