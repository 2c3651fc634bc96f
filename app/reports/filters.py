"""
CIVIC REPORTS - Report Filters

Applies a query against the full report list. Every supplied field must
match (AND logic); fields left as None impose no constraint.
"""
import math
from dataclasses import dataclass, fields
from typing import Iterable, List, Optional

from .models import Report

EARTH_RADIUS_KM = 6371.0


@dataclass
class ReportQuery:
    status: Optional[str] = None
    category: Optional[str] = None
    urgency: Optional[str] = None
    department: Optional[str] = None
    q: Optional[str] = None
    center_lat: Optional[float] = None
    center_lng: Optional[float] = None
    radius_km: Optional[float] = None
    has_location: Optional[bool] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    @property
    def geo_active(self) -> bool:
        """Radius filtering needs all three of centre lat, centre lng and radius."""
        return None not in (self.center_lat, self.center_lng, self.radius_km)


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a just past 1 for antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _haystack(report: Report) -> str:
    return f"{report.description} {report.department} {report.assignee or ''}".lower()


def matches(report: Report, query: ReportQuery) -> bool:
    """Evaluate every supplied predicate against one report."""
    if query.status is not None and report.status != query.status:
        return False
    if query.category is not None and report.category != query.category:
        return False
    if query.urgency is not None and report.urgency != query.urgency:
        return False
    if query.department is not None and report.department != query.department:
        return False
    if query.q:
        if query.q.lower() not in _haystack(report):
            return False
    if query.has_location is not None:
        if (report.location is not None) != query.has_location:
            return False
    if query.geo_active:
        if report.location is None:
            return False
        distance = haversine_km(query.center_lat, query.center_lng,
                                report.location.lat, report.location.lng)
        if distance > query.radius_km:
            return False
    return True


def filter_reports(reports: Iterable[Report], query: Optional[ReportQuery] = None) -> List[Report]:
    """Return matching reports in input order."""
    if query is None or query.is_empty():
        return list(reports)
    return [r for r in reports if matches(r, query)]
