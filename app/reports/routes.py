# ============================================================================
# CIVIC REPORTS - Report Routes
# ============================================================================
# JSON API for submitting, listing, reading and updating reports.
# ============================================================================

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from app.config import get_config
from app.lifecycle.scheduler_jobs import get_lifecycle_manager

from .export import render_reports_csv
from .filters import ReportQuery, filter_reports
from .models import (
    CreateReportRequest,
    Report,
    UpdateReportRequest,
    get_store,
    new_report_id,
    now_ms,
)
from .routing import route
from .uploads import InvalidMediaError, decode_data_url, save_data_url

logger = logging.getLogger("reports.routes")

router = APIRouter(prefix="/api/reports", tags=["reports"])

# Fields that may be cleared with an explicit null
NULLABLE_UPDATE_FIELDS = ("assignee",)


def _not_found() -> JSONResponse:
    return JSONResponse({"error": "Not found"}, status_code=404)


def _invalid(detail) -> JSONResponse:
    return JSONResponse({"error": "Invalid payload", "detail": detail}, status_code=400)


def _validation_detail(e: ValidationError):
    return json.loads(e.json(include_url=False))


async def _json_body(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None


def _blank(value: Optional[str]) -> Optional[str]:
    return value if value else None


def build_query(
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    urgency: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    center_lat: Optional[float] = Query(None, alias="centerLat"),
    center_lng: Optional[float] = Query(None, alias="centerLng"),
    radius_km: Optional[float] = Query(None, alias="radiusKm"),
    has_location: Optional[bool] = Query(None, alias="hasLocation"),
) -> ReportQuery:
    """Shared list/export query params. Empty strings count as absent."""
    return ReportQuery(
        status=_blank(status),
        category=_blank(category),
        urgency=_blank(urgency),
        department=_blank(department),
        q=_blank(q),
        center_lat=center_lat,
        center_lng=center_lng,
        radius_km=radius_km,
        has_location=has_location,
    )


# ============================================================================
# List + export
# ============================================================================

@router.get("")
async def api_list_reports(query: ReportQuery = Depends(build_query)):
    """Filtered report list, in store order."""
    reports = filter_reports(get_store().list(), query)
    return [r.model_dump() for r in reports]


# Static-path routes must be declared before /{report_id}

@router.get("/export.csv")
async def api_export_reports_csv(query: ReportQuery = Depends(build_query)):
    """Download the filtered report list as CSV."""
    reports = filter_reports(get_store().list(), query)
    return Response(
        content=render_reports_csv(reports),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="reports.csv"'},
    )


# ============================================================================
# Create
# ============================================================================

@router.post("")
async def api_create_report(request: Request):
    data = await _json_body(request)
    if not isinstance(data, dict):
        return _invalid("Request body must be a JSON object")

    try:
        payload = CreateReportRequest.model_validate(data)
    except ValidationError as e:
        return _invalid(_validation_detail(e))

    # Check both attachments before anything touches disk
    try:
        for data_url in (payload.photoDataUrl, payload.audioDataUrl):
            if data_url:
                decode_data_url(data_url)
    except InvalidMediaError as e:
        return _invalid(str(e))

    uploads_dir = get_config("uploads_dir")
    report = Report(
        id=new_report_id(),
        description=payload.description,
        category=payload.category,
        urgency=payload.urgency,
        location=payload.location,
        createdAt=now_ms(),
        status="submitted",
        department=route(payload.category),
        assignee=None,
        photoUrl=save_data_url(payload.photoDataUrl, uploads_dir, base="photo"),
        audioUrl=save_data_url(payload.audioDataUrl, uploads_dir, base="audio"),
    )

    get_store().put(report)
    logger.info(f"[Reports] Created {report.id} ({report.category} -> {report.department})")

    get_lifecycle_manager().schedule(report.id)

    return JSONResponse(report.model_dump(), status_code=201)


# ============================================================================
# Read / update by id
# ============================================================================

@router.get("/{report_id}")
async def api_get_report(report_id: str):
    report = get_store().get(report_id)
    if report is None:
        return _not_found()
    return report.model_dump()


@router.patch("/{report_id}")
async def api_update_report(report_id: str, request: Request):
    """
    Merge status/assignee/department/description onto a report.

    A manual status change does not cancel pending lifecycle jobs; the next
    automatic advancement will overwrite it.
    """
    data = await _json_body(request)
    if not isinstance(data, dict):
        return _invalid("Request body must be a JSON object")

    try:
        payload = UpdateReportRequest.model_validate(data)
    except ValidationError as e:
        return _invalid(_validation_detail(e))

    fields = {
        k: v for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k in NULLABLE_UPDATE_FIELDS
    }

    try:
        updated = get_store().update(report_id, fields)
    except ValidationError as e:
        return _invalid(_validation_detail(e))

    if updated is None:
        return _not_found()

    logger.info(f"[Reports] Updated {report_id}: {sorted(fields)}")
    return updated.model_dump()
