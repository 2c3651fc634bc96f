"""
CIVIC REPORTS - Analytics Engine

Summary counts over the full report list for the dashboard.
"""
from datetime import datetime, timezone
from typing import Dict, Iterable, List

from app.reports.models import CATEGORIES, STATUSES, URGENCIES, Report


def _utc_date(created_ms: int) -> str:
    return datetime.fromtimestamp(created_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def daily_counts(reports: Iterable[Report]) -> List[Dict]:
    """Reports per UTC calendar day, ascending. Days with no reports are omitted."""
    daily: Dict[str, int] = {}
    for r in reports:
        key = _utc_date(r.createdAt)
        daily[key] = daily.get(key, 0) + 1
    return [{"date": d, "count": daily[d]} for d in sorted(daily)]


def compute_analytics(reports: Iterable[Report]) -> Dict:
    """
    Aggregate totals and per-field counts.

    Every status/category/urgency value is present in its mapping, zero if
    no report carries it.
    """
    reports = list(reports)
    by_status = {s: 0 for s in STATUSES}
    by_category = {c: 0 for c in CATEGORIES}
    by_urgency = {u: 0 for u in URGENCIES}

    for r in reports:
        by_status[r.status] += 1
        by_category[r.category] += 1
        by_urgency[r.urgency] += 1

    total = len(reports)
    resolved = by_status["resolved"]

    return {
        "totals": {"total": total, "active": total - resolved, "resolved": resolved},
        "byStatus": by_status,
        "byCategory": by_category,
        "byUrgency": by_urgency,
        "dailyCounts": daily_counts(reports),
    }
