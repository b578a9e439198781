"""In-memory model of the exposure stacks of one shoot review session.

Stacks live in an arena keyed by their stable id; display order is a separate
list of ids. Flags never remove a stack from the model, they only change what
the rename plan does with it.

Naming is two-phase: `preview_filenames` plans against copies of the
trackers and can be called any number of times, `apply_renaming` replays the
same plan against the real trackers in display order and records it as the
authoritative export plan.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from loguru import logger

from core.models import FinalFilenameComponents, RawFrameComponents, ShootInfo, Stack
from core.rooms import normalize_room_type
from core.services.filename_codec import (
    build_base_name,
    generate_final_filename,
    generate_raw_frame_filename,
)
from core.services.interfaces import RenamePlan, RenamePreviewEntry
from core.services.trackers import IndexTracker, VersionTracker

# Every stack is one bracket group of its own subject
DEFAULT_STACK_NUMBER = 1


class RenamePlanError(ValueError):
    """Raised when a rename plan cannot be committed or extended."""


def bracket_ev_values(image_count: int) -> list[int]:
    """Return integer EV offsets for a bracket of `image_count` exposures.

    Offsets are consecutive and centered on 0, e.g. 5 -> [-2, -1, 0, 1, 2];
    even counts lean negative, e.g. 4 -> [-2, -1, 0, 1].
    """
    count = max(0, int(image_count))
    start = -(count // 2)
    return list(range(start, start + count))


class StackModel:
    """Selection, ordering, flags and naming for the stacks of one shoot."""

    def __init__(
        self,
        shoot: ShootInfo,
        stacks: Iterable[Stack] = (),
        index_tracker: IndexTracker | None = None,
        version_tracker: VersionTracker | None = None,
    ) -> None:
        self.shoot = shoot
        self.index_tracker = index_tracker or IndexTracker()
        self.version_tracker = version_tracker or VersionTracker()
        self._stacks: dict[str, Stack] = {}
        self._order: list[str] = []
        self._selected: set[str] = set()
        self._committed: dict[str, RenamePreviewEntry] = {}
        self.plan: RenamePlan | None = None
        for stack in sorted(stacks, key=lambda s: s.order_index):
            self.add_stack(stack)

    # ---- arena -------------------------------------------------------------

    def add_stack(self, stack: Stack) -> None:
        """Append `stack` at the end of the display order."""
        if stack.id in self._stacks:
            raise ValueError(f"Duplicate stack id: {stack.id}")
        self._stacks[stack.id] = stack
        self._order.append(stack.id)
        stack.order_index = len(self._order) - 1

    def get(self, stack_id: str) -> Stack:
        try:
            return self._stacks[stack_id]
        except KeyError:
            raise KeyError(f"Unknown stack id: {stack_id}") from None

    @property
    def stacks(self) -> list[Stack]:
        """Stacks in display order."""
        return [self._stacks[sid] for sid in self._order]

    def __len__(self) -> int:
        return len(self._order)

    @property
    def unassigned_count(self) -> int:
        """Stacks still waiting for a room type; deletion-marked ones never do."""
        return sum(
            1 for s in self._stacks.values() if not s.room_type and not s.marked_for_deletion
        )

    # ---- selection ---------------------------------------------------------

    def select(self, stack_id: str) -> None:
        self.get(stack_id)
        self._selected.add(stack_id)

    def deselect(self, stack_id: str) -> None:
        self._selected.discard(stack_id)

    def clear_selection(self) -> None:
        self._selected.clear()

    def is_selected(self, stack_id: str) -> bool:
        return stack_id in self._selected

    @property
    def selected_ids(self) -> list[str]:
        """Selected stack ids in display order."""
        return [sid for sid in self._order if sid in self._selected]

    # ---- ordering ----------------------------------------------------------

    def move_stack(self, from_index: int, to_index: int) -> None:
        """Move the stack at `from_index` to `to_index` and renumber.

        Only the range between the two positions changes, which keeps
        `order_index` dense and unique.
        """
        size = len(self._order)
        if not (0 <= from_index < size and 0 <= to_index < size):
            raise IndexError(f"Move {from_index} -> {to_index} outside 0..{size - 1}")
        if from_index == to_index:
            return
        stack_id = self._order.pop(from_index)
        self._order.insert(to_index, stack_id)
        for pos in range(min(from_index, to_index), max(from_index, to_index) + 1):
            self._stacks[self._order[pos]].order_index = pos

    # ---- bulk edits --------------------------------------------------------

    def assign_room_type(self, stack_ids: Iterable[str], room_type: str) -> int:
        """Assign `room_type` to the given stacks; returns how many changed."""
        changed = 0
        for sid in stack_ids:
            stack = self.get(sid)
            if stack.room_type != room_type:
                stack.room_type = room_type
                changed += 1
        return changed

    def toggle_deletion(self, stack_ids: Iterable[str], marked: bool | None = None) -> None:
        """Flip (or force to `marked`) the deletion flag of the given stacks."""
        for sid in stack_ids:
            stack = self.get(sid)
            if marked is None:
                stack.marked_for_deletion = not stack.marked_for_deletion
            else:
                stack.marked_for_deletion = marked

    def toggle_uncertain(self, stack_ids: Iterable[str], marked: bool | None = None) -> None:
        """Flip (or force to `marked`) the uncertainty flag of the given stacks."""
        for sid in stack_ids:
            stack = self.get(sid)
            stack.flagged_uncertain = (not stack.flagged_uncertain) if marked is None else marked

    # ---- naming ------------------------------------------------------------

    def preview_filenames(self) -> RenamePlan:
        """Plan filenames for the current order without touching the trackers."""
        return self._build_plan(self.index_tracker.copy(), self.version_tracker.copy())

    def apply_renaming(self) -> RenamePlan:
        """Commit the current preview as the authoritative export plan.

        Raises:
            RenamePlanError: If a stack that is not marked for deletion still
                has no room type. Trackers are left untouched in that case.
        """
        pending = self.preview_filenames().unassigned
        if pending:
            ids = ", ".join(e.stack_id for e in pending)
            raise RenamePlanError(f"Stacks without room type: {ids}")

        plan = self._build_plan(self.index_tracker, self.version_tracker)
        plan.committed = True
        for entry in plan.deliverable:
            self._committed[entry.stack_id] = entry
        self.plan = plan
        logger.info(
            "Rename plan committed for shoot {}: {} files, {} skipped",
            self.shoot.shoot_code,
            len(plan.deliverable),
            len(plan.entries) - len(plan.deliverable),
        )
        return plan

    def committed_entry(self, stack_id: str) -> RenamePreviewEntry | None:
        return self._committed.get(stack_id)

    def plan_reexport(self, stack_ids: Iterable[str]) -> list[RenamePreviewEntry]:
        """Issue the next version for already committed subjects.

        The subject index is kept, only the version advances.
        """
        wanted = set(stack_ids)
        entries: list[RenamePreviewEntry] = []
        for sid in self._order:
            if sid not in wanted:
                continue
            previous = self._committed.get(sid)
            if previous is None or previous.index is None or previous.room_type is None:
                raise RenamePlanError(f"Stack {sid} has no committed filename to re-export")
            base = build_base_name(
                self.shoot.date, self.shoot.shoot_code, previous.room_type, previous.index
            )
            version = self.version_tracker.get_next_version(base)
            entry = RenamePreviewEntry(
                stack_id=sid,
                planned_filename=generate_final_filename(
                    FinalFilenameComponents(
                        date=self.shoot.date,
                        shoot_code=self.shoot.shoot_code,
                        room_type=previous.room_type,
                        index=previous.index,
                        version=version,
                    )
                ),
                is_deletion_marked=False,
                is_uncertain=self._stacks[sid].flagged_uncertain,
                frame_filenames=list(previous.frame_filenames),
                room_type=previous.room_type,
                index=previous.index,
                version=version,
            )
            self._committed[sid] = entry
            entries.append(entry)
            logger.info("Re-export {} -> {}", sid, entry.planned_filename)
        return entries

    def _build_plan(
        self, index_tracker: IndexTracker, version_tracker: VersionTracker
    ) -> RenamePlan:
        entries: list[RenamePreviewEntry] = []
        for stack in self.stacks:
            if stack.marked_for_deletion or not stack.room_type:
                entries.append(
                    RenamePreviewEntry(
                        stack_id=stack.id,
                        planned_filename=None,
                        is_deletion_marked=stack.marked_for_deletion,
                        is_uncertain=stack.flagged_uncertain,
                        room_type=stack.room_type,
                    )
                )
                continue

            # A committed name stays with its stack until the room changes
            previous = self._committed.get(stack.id)
            if previous is not None and normalize_room_type(
                previous.room_type or ""
            ) == normalize_room_type(stack.room_type):
                entries.append(
                    replace(
                        previous,
                        is_uncertain=stack.flagged_uncertain,
                        frame_filenames=list(previous.frame_filenames),
                    )
                )
                continue

            index = index_tracker.get_next_index(stack.room_type)
            base = build_base_name(self.shoot.date, self.shoot.shoot_code, stack.room_type, index)
            version = version_tracker.get_next_version(base)
            final = FinalFilenameComponents(
                date=self.shoot.date,
                shoot_code=self.shoot.shoot_code,
                room_type=stack.room_type,
                index=index,
                version=version,
            )
            ev_values = stack.ev_values if stack.ev_values is not None else bracket_ev_values(
                stack.image_count
            )
            frames = [
                generate_raw_frame_filename(
                    RawFrameComponents(
                        date=self.shoot.date,
                        shoot_code=self.shoot.shoot_code,
                        room_type=stack.room_type,
                        index=index,
                        stack_number=DEFAULT_STACK_NUMBER,
                        ev_value=ev,
                        extension=self.shoot.raw_extension,
                        version=version,
                    )
                )
                for ev in ev_values
            ]
            entries.append(
                RenamePreviewEntry(
                    stack_id=stack.id,
                    planned_filename=generate_final_filename(final),
                    is_deletion_marked=False,
                    is_uncertain=stack.flagged_uncertain,
                    frame_filenames=frames,
                    room_type=stack.room_type,
                    index=index,
                    version=version,
                )
            )
        return RenamePlan(entries=entries)
