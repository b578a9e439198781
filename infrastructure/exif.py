"""Best-effort EXIF extraction for sidecar enrichment.

Reads capture time, camera make/model and lens from a frame via Pillow. It
never raises on unreadable files; callers get None fields instead, which the
sidecar validator reports as warnings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger
from PIL import Image, UnidentifiedImageError

from core.models import DeviceInfo

EXIF_DT_FMT = "%Y:%m:%d %H:%M:%S"
EXIF_IFD_POINTER = 0x8769
TAG_MAKE = 271
TAG_MODEL = 272
TAG_DATETIME = 306
TAG_DATETIME_ORIGINAL = 36867
TAG_LENS_MODEL = 42036


@dataclass
class CaptureDetails:
    """Subset of EXIF data that feeds object_meta.json."""

    capture_time: datetime | None = None
    make: str | None = None
    model: str | None = None
    lens: str | None = None

    def as_meta_details(self) -> dict[str, Any]:
        """Keyword arguments for `object_meta_for_entry`; only fields that were found."""
        details: dict[str, Any] = {}
        if self.capture_time:
            details["capture_time"] = self.capture_time.isoformat()
        if self.lens:
            details["lens"] = self.lens
        if self.make or self.model:
            details["device_info"] = DeviceInfo(make=self.make, model=self.model)
        return details


def parse_exif_datetime(value: Any) -> datetime | None:
    """Parse ``YYYY:MM:DD HH:MM:SS`` (or ISO) EXIF text; None on failure."""
    if not value:
        return None
    text = str(value).strip().rstrip("\x00")
    try:
        if len(text) >= 19 and text[4] == ":" and text[7] == ":":
            return datetime.strptime(text[:19], EXIF_DT_FMT)
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip().rstrip("\x00").strip()
    return text or None


def read_capture_details(path: str | Path) -> CaptureDetails:
    """Read EXIF capture details from `path`; missing data yields None fields."""
    details = CaptureDetails()
    try:
        with Image.open(path) as im:
            exif = im.getexif()
            if not exif:
                return details
            sub_ifd = exif.get_ifd(EXIF_IFD_POINTER)
            details.capture_time = parse_exif_datetime(
                sub_ifd.get(TAG_DATETIME_ORIGINAL) or exif.get(TAG_DATETIME)
            )
            details.make = _clean_text(exif.get(TAG_MAKE))
            details.model = _clean_text(exif.get(TAG_MODEL))
            details.lens = _clean_text(sub_ifd.get(TAG_LENS_MODEL))
    except (OSError, UnidentifiedImageError, ValueError, TypeError) as ex:
        logger.debug("EXIF read failed for {}: {}", path, ex)
    return details
