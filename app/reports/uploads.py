"""
CIVIC REPORTS - Media Uploads

Photo/voice attachments arrive as base64 data URLs inside the JSON body.
They are written under the uploads directory and referenced from the
report by their public /uploads/<name> path.
"""
import base64
import binascii
import logging
import mimetypes
import re
import secrets
import time
from pathlib import Path
from typing import Optional

logger = logging.getLogger("reports.uploads")

UPLOADS_URL_PREFIX = "/uploads"

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]+)*?);base64,(?P<data>.*)$", re.DOTALL)

# mimetypes has no stable answer for these
_EXTENSION_OVERRIDES = {
    "image/jpeg": ".jpg",
    "audio/webm": ".webm",
    "audio/ogg": ".ogg",
    "audio/mpeg": ".mp3",
    "audio/wav": ".wav",
}


class InvalidMediaError(ValueError):
    """Raised when an attachment is not a base64 data URL."""


def decode_data_url(data_url: str):
    """Return (mime_type, raw_bytes) for a base64 data URL."""
    match = _DATA_URL_RE.match(data_url.strip())
    if not match:
        raise InvalidMediaError("attachment must be a base64 data URL")
    mime = match.group("mime") or "application/octet-stream"
    try:
        payload = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidMediaError(f"attachment is not valid base64: {e}")
    return mime, payload


def _extension_for(mime: str) -> str:
    if mime in _EXTENSION_OVERRIDES:
        return _EXTENSION_OVERRIDES[mime]
    return mimetypes.guess_extension(mime) or ".bin"


def _unique_name(base: str, ext: str) -> str:
    safe = re.sub(r"[^a-z0-9_-]", "", base, flags=re.IGNORECASE)[:32] or "upload"
    return f"{int(time.time() * 1000)}-{secrets.token_hex(3)}-{safe}{ext}"


def save_data_url(data_url: Optional[str], uploads_dir, base: str = "upload") -> Optional[str]:
    """Decode and store one attachment. Returns its URL path, or None if absent."""
    if not data_url:
        return None
    mime, payload = decode_data_url(data_url)
    target_dir = Path(uploads_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    name = _unique_name(base, _extension_for(mime))
    (target_dir / name).write_bytes(payload)
    logger.info(f"[Uploads] Stored {len(payload)} bytes as {name} ({mime})")
    return f"{UPLOADS_URL_PREFIX}/{name}"
