"""Per-session counters for subject indices and re-export versions.

Both trackers are plain state objects owned by one shoot session. Nothing is
shared at module level, so two sessions (or two tests) never see each other's
numbering.
"""

from __future__ import annotations

from collections.abc import Iterable

from core.rooms import normalize_room_type
from core.services.filename_codec import (
    build_base_name,
    parse_final_filename,
    parse_raw_frame_filename,
)


class _KeyedCounter:
    """Monotonic counter per key; unseen keys start at 0."""

    def __init__(self, initial: dict[str, int] | None = None) -> None:
        self._values: dict[str, int] = dict(initial or {})

    def _next(self, key: str) -> int:
        value = self._values.get(key, 0) + 1
        self._values[key] = value
        return value

    def _current(self, key: str) -> int:
        return self._values.get(key, 0)

    def _set(self, key: str, value: int) -> None:
        self._values[key] = int(value)

    def reset(self) -> None:
        """Forget every key (new shoot session)."""
        self._values.clear()

    def snapshot(self) -> dict[str, int]:
        """Return a copy of the current key -> last issued value mapping."""
        return dict(self._values)

    def __len__(self) -> int:
        return len(self._values)


class IndexTracker(_KeyedCounter):
    """Subject index per room type; keys are normalized room tokens."""

    def get_next_index(self, room_type: str) -> int:
        """Issue the next index for `room_type` (1 on first call)."""
        return self._next(normalize_room_type(room_type))

    def get_current_index(self, room_type: str) -> int:
        """Last issued index for `room_type`, or 0 if none was issued."""
        return self._current(normalize_room_type(room_type))

    def set_index(self, room_type: str, index: int) -> None:
        """Force the last issued index, e.g. when resuming a session."""
        self._set(normalize_room_type(room_type), index)

    def copy(self) -> IndexTracker:
        return IndexTracker(self.snapshot())


class VersionTracker(_KeyedCounter):
    """Re-export version per subject base name (``{date}-{shoot}_{room}_{NNN}``)."""

    def get_next_version(self, base_name: str) -> int:
        """Issue the next version for `base_name` (1 on first call)."""
        return self._next(base_name)

    def get_current_version(self, base_name: str) -> int:
        """Last issued version for `base_name`, or 0 if none was issued."""
        return self._current(base_name)

    def set_version(self, base_name: str, version: int) -> None:
        """Force the last issued version, e.g. when resuming a session."""
        self._set(base_name, version)

    def copy(self) -> VersionTracker:
        return VersionTracker(self.snapshot())


def restore_from_filenames(
    filenames: Iterable[str], index_tracker: IndexTracker, version_tracker: VersionTracker
) -> int:
    """Raise both trackers to cover already delivered filenames.

    Counters only move forward: a tracker already ahead of a filename keeps
    its value. Names outside both grammars are ignored.

    Returns:
        Number of filenames that matched one of the grammars.
    """
    matched = 0
    for name in filenames:
        final = parse_final_filename(name)
        parsed = final or parse_raw_frame_filename(name)
        if parsed is None:
            continue
        matched += 1
        if parsed.index > index_tracker.get_current_index(parsed.room_type):
            index_tracker.set_index(parsed.room_type, parsed.index)
        if final is not None:
            base = build_base_name(final.date, final.shoot_code, final.room_type, final.index)
            if final.version > version_tracker.get_current_version(base):
                version_tracker.set_version(base, final.version)
    return matched
