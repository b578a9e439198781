"""Core service interfaces and shared data structures.

This module defines simple dataclasses that represent rename planning,
validation reports and export results used across the infrastructure and
app layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class RenamePreviewEntry:
    """Planned naming for a single stack.

    Attributes:
        stack_id: Identifier of the stack.
        planned_filename: Final merged filename, or None when the stack is
            marked for deletion or has no room type yet.
        is_deletion_marked: Whether the stack is excluded from export.
        is_uncertain: Whether the operator flagged the stack for review.
        frame_filenames: Raw frame names, one per exposure of the bracket.
        room_type: Assigned room label at planning time.
        index: Subject index issued for the stack.
        version: Version issued for the subject.
    """

    stack_id: str
    planned_filename: str | None
    is_deletion_marked: bool
    is_uncertain: bool
    frame_filenames: list[str] = field(default_factory=list)
    room_type: str | None = None
    index: int | None = None
    version: int | None = None


@dataclass
class RenamePlan:
    """Ordered naming plan for a shoot; committed plans are authoritative.

    Attributes:
        entries: One entry per stack, in display order.
        committed: True once produced by `apply_renaming`.
    """

    entries: list[RenamePreviewEntry]
    committed: bool = False

    @property
    def deliverable(self) -> list[RenamePreviewEntry]:
        """Entries that produce a delivered file."""
        return [e for e in self.entries if e.planned_filename]

    @property
    def unassigned(self) -> list[RenamePreviewEntry]:
        """Entries that still need a room type before they can be named."""
        return [e for e in self.entries if not e.is_deletion_marked and not e.planned_filename]


@dataclass
class ValidationReport:
    """Outcome of sidecar validation.

    Errors block delivery of the record; warnings never do.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class ExportResult:
    """Outcome of a sidecar export.

    Attributes:
        success_paths: Sidecar files written.
        failed: Tuples of (filename, reason) for failures or rejected records.
        log_path: Optional path to the audit log file.
    """

    success_paths: list[str]
    failed: list[tuple[str, str]]
    log_path: str | None = None


class StorageTarget(Protocol):
    """Object storage collaborator consuming delivered files."""

    def put(self, key: str, data: bytes) -> str:
        """Store `data` under `key` and return its location."""
        raise NotImplementedError
