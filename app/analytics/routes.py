"""
CIVIC REPORTS - Analytics API Routes
"""
from fastapi import FastAPI

from app.reports.models import get_store

from .engine import compute_analytics


def register_analytics_routes(app: FastAPI):
    """Register analytics endpoints."""

    @app.get("/api/analytics")
    async def api_analytics():
        """Totals, per-field counts and the daily series over every report."""
        return compute_analytics(get_store().list())
