# ============================================================================
# CIVIC REPORTS - CSV Export
# ============================================================================
# Flat CSV of the admin table: one row per report, newest first.
# ============================================================================

import csv
import io
from datetime import datetime, timezone
from typing import Iterable

from .models import Report

CSV_COLUMNS = [
    "id", "createdAt", "status", "category", "urgency", "department",
    "assignee", "description", "lat", "lng", "address", "photoUrl", "audioUrl",
]


def _fmt_created(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _row(report: Report) -> list:
    loc = report.location
    return [
        report.id,
        _fmt_created(report.createdAt),
        report.status,
        report.category,
        report.urgency,
        report.department,
        report.assignee or "",
        report.description,
        loc.lat if loc else "",
        loc.lng if loc else "",
        (loc.address or "") if loc else "",
        report.photoUrl or "",
        report.audioUrl or "",
    ]


def render_reports_csv(reports: Iterable[Report]) -> str:
    """Render reports as CSV text, sorted by recency."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_COLUMNS)
    for r in sorted(reports, key=lambda r: r.createdAt, reverse=True):
        writer.writerow(_row(r))
    return buf.getvalue()
