"""
CIVIC REPORTS Reports Module
Citizen issue reports: schema, flat-file store, department routing,
filters, media uploads and CSV export. HTTP routes live in .routes.
"""
from .filters import ReportQuery, filter_reports, haversine_km
from .models import JsonStore, Report, ReportLocation, get_store, set_store
from .routing import route

__all__ = [
    "JsonStore",
    "Report",
    "ReportLocation",
    "ReportQuery",
    "filter_reports",
    "get_store",
    "haversine_km",
    "route",
    "set_store",
]
