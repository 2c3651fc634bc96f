"""
CIVIC REPORTS Lifecycle Module
Simulated status progression for newly submitted reports.
"""
from .scheduler_jobs import (
    LIFECYCLE,
    LifecycleManager,
    get_lifecycle_manager,
    init_lifecycle_scheduler,
    next_status,
    set_lifecycle_manager,
    shutdown_lifecycle_scheduler,
)

__all__ = [
    "LIFECYCLE",
    "LifecycleManager",
    "get_lifecycle_manager",
    "init_lifecycle_scheduler",
    "next_status",
    "set_lifecycle_manager",
    "shutdown_lifecycle_scheduler",
]
