"""
CIVIC REPORTS - Report Schema & JSON Record Store

Each report is a pydantic model; the store keeps the whole collection in a
single JSON array on disk and rewrites it in full on every mutation.
"""
import json
import logging
import os
import tempfile
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger("reports.store")

ReportStatus = Literal["submitted", "acknowledged", "in_progress", "resolved"]
ReportCategory = Literal["pothole", "streetlight", "trash", "graffiti", "water", "other"]
ReportUrgency = Literal["low", "medium", "high"]

STATUSES = get_args(ReportStatus)
CATEGORIES = get_args(ReportCategory)
URGENCIES = get_args(ReportUrgency)

# Fields the store never lets an update overwrite
IMMUTABLE_FIELDS = ("id", "createdAt")


class ReportLocation(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = Field(None, description="GPS accuracy in metres")
    address: Optional[str] = Field(None, description="Resolved street address")


class Report(BaseModel):
    id: str
    description: str
    category: ReportCategory
    urgency: ReportUrgency
    location: Optional[ReportLocation] = None
    createdAt: int = Field(..., description="Creation time, ms since epoch")
    status: ReportStatus = "submitted"
    department: str
    assignee: Optional[str] = None
    photoUrl: Optional[str] = None
    audioUrl: Optional[str] = None


class CreateReportRequest(BaseModel):
    description: str
    category: ReportCategory
    urgency: ReportUrgency
    location: Optional[ReportLocation] = None
    photoDataUrl: Optional[str] = None
    audioDataUrl: Optional[str] = None


class UpdateReportRequest(BaseModel):
    status: Optional[ReportStatus] = None
    assignee: Optional[str] = None
    department: Optional[str] = None
    description: Optional[str] = None


def new_report_id() -> str:
    return uuid.uuid4().hex


def now_ms() -> int:
    return int(time.time() * 1000)


class JsonStore:
    """
    Flat-file report store.

    list/get return freshly parsed copies. put/update read the full file,
    change it in memory and write it back via a private temp file + rename,
    so readers always see a complete snapshot. There is no locking: two
    writers racing will lose one of the updates.

    Stored entries that fail validation are hidden from reads but written
    back untouched on every rewrite.
    """

    def __init__(self, path):
        self.file_path = Path(path)

    def _ensure_file(self):
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.file_path.exists():
            self.file_path.write_text("[]", encoding="utf-8")

    def _read_raw(self) -> List[Dict[str, Any]]:
        try:
            self._ensure_file()
            raw = self.file_path.read_text(encoding="utf-8")
            parsed = json.loads(raw)
        except (OSError, ValueError) as e:
            logger.warning(f"[Store] {self.file_path} unreadable, treating as empty: {e}")
            return []
        if not isinstance(parsed, list):
            logger.warning(f"[Store] {self.file_path} is not a JSON array, treating as empty")
            return []
        return [item for item in parsed if isinstance(item, dict)]

    def _read_entries(self) -> List[Union[Report, Dict[str, Any]]]:
        """Valid records as Report, invalid ones as their raw dict, in file order."""
        entries = []
        for item in self._read_raw():
            try:
                entries.append(Report.model_validate(item))
            except ValidationError as e:
                logger.warning(f"[Store] Invalid record {item.get('id')!r} kept as-is: {e.error_count()} errors")
                entries.append(item)
        return entries

    def _read_all(self) -> List[Report]:
        return [e for e in self._read_entries() if isinstance(e, Report)]

    def _write_all(self, entries: List[Union[Report, Dict[str, Any]]]):
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = [e.model_dump() if isinstance(e, Report) else e for e in entries]
        fd, tmp = tempfile.mkstemp(dir=self.file_path.parent, prefix=self.file_path.name + ".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp, self.file_path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    def list(self) -> List[Report]:
        return self._read_all()

    def get(self, report_id: str) -> Optional[Report]:
        for r in self._read_all():
            if r.id == report_id:
                return r
        return None

    def put(self, report: Report) -> None:
        """Upsert by id. New reports go to the head of the collection."""
        entries = self._read_entries()
        for idx, existing in enumerate(entries):
            if isinstance(existing, Report) and existing.id == report.id:
                entries[idx] = report
                break
        else:
            entries.insert(0, report)
        self._write_all(entries)

    def update(self, report_id: str, fields: Dict[str, Any]) -> Optional[Report]:
        """Merge `fields` onto the stored report. Returns None if the id is unknown."""
        entries = self._read_entries()
        for idx, existing in enumerate(entries):
            if not isinstance(existing, Report) or existing.id != report_id:
                continue
            merged = existing.model_dump()
            merged.update({k: v for k, v in fields.items() if k not in IMMUTABLE_FIELDS})
            updated = Report.model_validate(merged)
            entries[idx] = updated
            self._write_all(entries)
            return updated
        return None


_store: Optional[JsonStore] = None


def get_store() -> JsonStore:
    """Get or create the process-wide store at the configured data file."""
    global _store
    if _store is None:
        from app.config import get_config
        _store = JsonStore(get_config("data_file"))
    return _store


def set_store(store: Optional[JsonStore]):
    """Replace the process-wide store (None resets to the configured path)."""
    global _store
    _store = store
