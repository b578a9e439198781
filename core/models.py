"""Core domain models for shoots, capture stacks, filenames and sidecar records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ShootInfo:
    """Job context shared by every stack of one shoot session."""

    job_id: str
    shoot_code: str
    date: str  # YYYY-MM-DD
    display_id: str | None = None
    user_code: str | None = None
    raw_extension: str = "dng"

    @property
    def resolved_display_id(self) -> str:
        """Human-readable id, defaulting to the shoot code."""
        return self.display_id or self.shoot_code


@dataclass(frozen=True)
class FinalFilenameComponents:
    """One delivered, merged photograph."""

    date: str
    shoot_code: str
    room_type: str
    index: int
    version: int = 1


@dataclass(frozen=True)
class RawFrameComponents:
    """One exposure of a bracket.

    `version` is carried along for bookkeeping but is not part of the raw
    grammar, so it is excluded from equality.
    """

    date: str
    shoot_code: str
    room_type: str
    index: int
    stack_number: int
    ev_value: int
    extension: str
    version: int = field(default=1, compare=False)


@dataclass
class Stack:
    """A group of bracketed exposures captured for one subject."""

    id: str
    order_index: int = 0
    image_count: int = 1
    preview_url: str = ""
    room_type: str | None = None
    marked_for_deletion: bool = False
    flagged_uncertain: bool = False
    # Explicit bracket offsets; derived from image_count when None
    ev_values: list[int] | None = None


@dataclass
class DeviceInfo:
    make: str | None = None
    model: str | None = None
    os: str | None = None


@dataclass
class GeoLocation:
    lat: float | None = None
    lng: float | None = None


@dataclass
class ObjectMeta:
    """Sidecar record delivered as ``object_meta.json`` next to each image."""

    job_id: str | None
    display_id: str | None
    date: str | None
    shoot_code: str | None
    room_type: str | None
    merged_filename: str | None
    version: int | None
    source_filenames: list[str] = field(default_factory=list)
    user_code: str | None = None
    orientation: str | None = None
    lens: str | None = None
    ev: float | None = None
    wb_mode: str | None = None
    wb_kelvin: int | None = None
    hdr_brackets: int | None = None
    file_format: str | None = None
    capture_time: str | None = None
    device_info: DeviceInfo | None = None
    location: GeoLocation | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the wire layout; every key is present, absent values are None."""
        return {
            "job_id": self.job_id,
            "display_id": self.display_id,
            "date": self.date,
            "shoot_code": self.shoot_code,
            "user_code": self.user_code,
            "room_type": self.room_type,
            "orientation": self.orientation,
            "lens": self.lens,
            "ev": self.ev,
            "wb_mode": self.wb_mode,
            "wb_k": self.wb_kelvin,
            "hdr_brackets": self.hdr_brackets,
            "file_format": self.file_format,
            "capture_time": self.capture_time,
            "filenames": {
                "sources": list(self.source_filenames),
                "merged": self.merged_filename,
            },
            "version": self.version,
            "device_info": (
                {
                    "make": self.device_info.make,
                    "model": self.device_info.model,
                    "os": self.device_info.os,
                }
                if self.device_info
                else None
            ),
            "location": (
                {"lat": self.location.lat, "lng": self.location.lng} if self.location else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ObjectMeta:
        """Build a record from the wire layout, tolerating missing keys."""
        filenames = data.get("filenames")
        if not isinstance(filenames, dict):
            filenames = {}
        sources = filenames.get("sources")
        device = data.get("device_info")
        location = data.get("location")
        return cls(
            job_id=data.get("job_id"),
            display_id=data.get("display_id"),
            date=data.get("date"),
            shoot_code=data.get("shoot_code"),
            room_type=data.get("room_type"),
            merged_filename=filenames.get("merged"),
            version=data.get("version"),
            # Anything but a list is kept as-is and rejected by validation
            source_filenames=list(sources) if isinstance(sources, list) else sources or [],
            user_code=data.get("user_code"),
            orientation=data.get("orientation"),
            lens=data.get("lens"),
            ev=data.get("ev"),
            wb_mode=data.get("wb_mode"),
            wb_kelvin=data.get("wb_k"),
            hdr_brackets=data.get("hdr_brackets"),
            file_format=data.get("file_format"),
            capture_time=data.get("capture_time"),
            device_info=(
                DeviceInfo(make=device.get("make"), model=device.get("model"), os=device.get("os"))
                if isinstance(device, dict)
                else None
            ),
            location=(
                GeoLocation(lat=location.get("lat"), lng=location.get("lng"))
                if isinstance(location, dict)
                else None
            ),
        )
