"""Encoder/decoder for the capture filename grammars.

Two disjoint grammars are supported:

* Final (merged) image:  ``{date}-{shoot}_{room}_{NNN}_v{version}.jpg``
* Raw bracket frame:     ``{date}-{shoot}_{room}_{NNN}_g{GGG}_e{ev}.{ext}``

Examples:
    2025-10-28-AB3KQ_fassade_001_v1.jpg
    2025-10-28-AB3KQ_fassade_001_g001_e-2.dng

Both directions are driven by the same ordered field list, so the renderer and
the parser cannot disagree on widths, prefixes or separators. Generation
raises `InvalidComponentsError` for structurally invalid input; parsing
returns None for anything that does not match exactly.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date as date_type
from datetime import datetime
import re
from typing import Any, Union

from core.models import FinalFilenameComponents, RawFrameComponents
from core.rooms import normalize_room_type

DATE_FMT = "%Y-%m-%d"
SHOOT_CODE_LENGTH = 5
PADDED_WIDTH = 3
FINAL_EXTENSION = "jpg"


class InvalidComponentsError(ValueError):
    """Raised when filename components cannot be rendered by a grammar."""


@dataclass(frozen=True)
class _Field:
    name: str
    pattern: str
    render: Callable[[Any], str]
    decode: Callable[[str], Any] = str
    is_valid: Callable[[str], bool] = lambda _text: True


_Part = Union[_Field, str]


class _Grammar:
    """Ordered literals and fields compiled into one strict regex."""

    def __init__(self, parts: list[_Part]) -> None:
        self._parts = parts
        regex = "".join(
            f"(?P<{p.name}>{p.pattern})" if isinstance(p, _Field) else re.escape(p) for p in parts
        )
        self.regex = re.compile(regex)
        self._field_patterns = {
            p.name: re.compile(p.pattern) for p in parts if isinstance(p, _Field)
        }

    @property
    def fields(self) -> list[_Field]:
        return [p for p in self._parts if isinstance(p, _Field)]

    def render(self, values: dict[str, Any]) -> str:
        out: list[str] = []
        for part in self._parts:
            if isinstance(part, str):
                out.append(part)
                continue
            value = values.get(part.name)
            try:
                text = part.render(value)
            except (TypeError, ValueError, AttributeError) as ex:
                raise InvalidComponentsError(f"invalid {part.name}: {value!r} ({ex})") from ex
            if not self._field_patterns[part.name].fullmatch(text) or not part.is_valid(text):
                raise InvalidComponentsError(f"invalid {part.name}: {value!r}")
            out.append(text)
        return "".join(out)

    def match(self, text: str) -> dict[str, Any] | None:
        m = self.regex.fullmatch(text)
        if not m:
            return None
        values: dict[str, Any] = {}
        for part in self.fields:
            raw = m.group(part.name)
            if not part.is_valid(raw):
                return None
            values[part.name] = part.decode(raw)
        return values


def _require_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected int, got {type(value).__name__}")
    return value


def _render_padded(value: Any) -> str:
    return f"{_require_int(value):0{PADDED_WIDTH}d}"


def _render_positive(value: Any) -> str:
    return str(_require_int(value))


def _render_date(value: Any) -> str:
    if isinstance(value, (date_type, datetime)):
        return format_date_for_filename(value)
    if not isinstance(value, str):
        raise TypeError(f"expected date or str, got {type(value).__name__}")
    return value


def _render_shoot_code(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {type(value).__name__}")
    return value


def _render_room(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {type(value).__name__}")
    return normalize_room_type(value)


def _render_ev(value: Any) -> str:
    ev = _require_int(value)
    if ev == 0:
        return "0"
    return f"+{ev}" if ev > 0 else str(ev)


def _render_extension(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {type(value).__name__}")
    return (value[1:] if value.startswith(".") else value).lower()


def _is_calendar_date(text: str) -> bool:
    try:
        datetime.strptime(text, DATE_FMT)
    except ValueError:
        return False
    return True


def _is_nonzero(text: str) -> bool:
    return int(text) >= 1


_DATE = _Field("date", r"\d{4}-\d{2}-\d{2}", _render_date, is_valid=_is_calendar_date)
_SHOOT = _Field("shoot_code", rf"[A-Z0-9]{{{SHOOT_CODE_LENGTH}}}", _render_shoot_code)
_ROOM = _Field("room_type", r"[a-z0-9]+(?:-[a-z0-9]+)*", _render_room)
_INDEX = _Field("index", rf"\d{{{PADDED_WIDTH}}}", _render_padded, int, _is_nonzero)
_VERSION = _Field("version", r"[1-9]\d*", _render_positive, int)
_STACK = _Field("stack_number", rf"\d{{{PADDED_WIDTH}}}", _render_padded, int, _is_nonzero)
_EV = _Field("ev_value", r"0|[+-][1-9]\d*", _render_ev, int)
_EXT = _Field("extension", r"[a-z0-9]+", _render_extension)

_BASE_PARTS: list[_Part] = [_DATE, "-", _SHOOT, "_", _ROOM, "_", _INDEX]

BASE_GRAMMAR = _Grammar(_BASE_PARTS)
FINAL_GRAMMAR = _Grammar([*_BASE_PARTS, "_v", _VERSION, f".{FINAL_EXTENSION}"])
RAW_GRAMMAR = _Grammar([*_BASE_PARTS, "_g", _STACK, "_e", _EV, ".", _EXT])


def format_date_for_filename(value: date_type | datetime) -> str:
    """Format a calendar day as ``YYYY-MM-DD``."""
    return value.strftime(DATE_FMT)


def generate_final_filename(components: FinalFilenameComponents) -> str:
    """Render the merged image filename, e.g. ``2025-10-28-AB3KQ_fassade_001_v1.jpg``."""
    return FINAL_GRAMMAR.render(
        {
            "date": components.date,
            "shoot_code": components.shoot_code,
            "room_type": components.room_type,
            "index": components.index,
            "version": components.version,
        }
    )


def parse_final_filename(filename: str) -> FinalFilenameComponents | None:
    """Decode a merged image filename; None when it is not one."""
    if not isinstance(filename, str):
        return None
    values = FINAL_GRAMMAR.match(filename)
    if values is None:
        return None
    return FinalFilenameComponents(**values)


def generate_raw_frame_filename(components: RawFrameComponents) -> str:
    """Render a bracket frame filename, e.g. ``2025-10-28-AB3KQ_fassade_001_g001_e-2.dng``."""
    return RAW_GRAMMAR.render(
        {
            "date": components.date,
            "shoot_code": components.shoot_code,
            "room_type": components.room_type,
            "index": components.index,
            "stack_number": components.stack_number,
            "ev_value": components.ev_value,
            "extension": components.extension,
        }
    )


def parse_raw_frame_filename(filename: str) -> RawFrameComponents | None:
    """Decode a bracket frame filename; None when it is not one.

    The raw grammar has no version, so the decoded record carries version 1.
    """
    if not isinstance(filename, str):
        return None
    values = RAW_GRAMMAR.match(filename)
    if values is None:
        return None
    return RawFrameComponents(**values)


def build_base_name(date: str, shoot_code: str, room_type: str, index: int) -> str:
    """Render the subject identity ``{date}-{shoot}_{room}_{NNN}``."""
    return BASE_GRAMMAR.render(
        {"date": date, "shoot_code": shoot_code, "room_type": room_type, "index": index}
    )


def extract_base_name(filename: str) -> str | None:
    """Strip the version or bracket suffix from a capture filename.

    Examples:
        ``2025-10-28-AB3KQ_fassade_001_v1.jpg`` -> ``2025-10-28-AB3KQ_fassade_001``
        ``2025-10-28-AB3KQ_fassade_001_g001_e-2.dng`` -> ``2025-10-28-AB3KQ_fassade_001``
    """
    parsed: FinalFilenameComponents | RawFrameComponents | None = parse_final_filename(filename)
    if parsed is None:
        parsed = parse_raw_frame_filename(filename)
    if parsed is None:
        return None
    return build_base_name(parsed.date, parsed.shoot_code, parsed.room_type, parsed.index)
