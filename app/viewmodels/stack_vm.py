"""Lightweight view model wrapper around `Stack`."""

from __future__ import annotations

from dataclasses import dataclass

from core.models import Stack
from core.rooms import get_room_category, room_label_for


@dataclass
class StackVM:
    """Expose convenient properties for bindings/templates."""

    stack: Stack
    planned_filename: str | None = None

    @property
    def room_label(self) -> str:
        """Display label of the assigned room, or a placeholder."""
        if not self.stack.room_type:
            return "Nicht zugewiesen"
        return room_label_for(self.stack.room_type) or self.stack.room_type

    @property
    def category(self) -> str | None:
        return get_room_category(self.stack.room_type) if self.stack.room_type else None

    @property
    def status(self) -> str:
        """Badge text; deletion wins over uncertainty."""
        if self.stack.marked_for_deletion:
            return "deleted"
        if self.stack.flagged_uncertain:
            return "uncertain"
        if not self.stack.room_type:
            return "unassigned"
        return "ok"

    @property
    def image_count(self) -> int:
        return int(self.stack.image_count or 0)
