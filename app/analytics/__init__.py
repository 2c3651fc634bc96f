"""
CIVIC REPORTS Analytics Module
Dashboard aggregates: totals, status/category/urgency counts, daily series.
"""
from .engine import compute_analytics, daily_counts
from .routes import register_analytics_routes

__all__ = [
    "compute_analytics",
    "daily_counts",
    "register_analytics_routes",
]
