"""ViewModel orchestrating manifest IO, stack review and sidecar export."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from loguru import logger

from app.viewmodels.stack_vm import StackVM
from core.models import ShootInfo
from core.services.interfaces import ExportResult, RenamePlan
from core.services.stack_model import StackModel
from core.services.trackers import restore_from_filenames
from infrastructure.exif import read_capture_details


class ReviewVM:
    """Review session view-model.

    Mediates between a repository providing `Stack` rows, the `StackModel`
    holding the session state, and an export service writing sidecars.
    """

    def __init__(self, repo, shoot: ShootInfo, exporter=None) -> None:
        """Create a ReviewVM.

        Args:
            repo: Repository with `load(path)`, `save(path, stacks)` and
                `save_plan(path, plan)` methods.
            shoot: Job context of the session.
            exporter: Service with `export(shoot, plan, details_by_stack)`.
        """
        self._repo = repo
        self._exporter = exporter
        self.shoot = shoot
        self.model = StackModel(shoot)
        self._source_csv_path: str | None = None

    def load_csv(self, path: str) -> None:
        """Load the manifest at `path` into a fresh model (trackers are kept)."""
        stacks = list(self._repo.load(path))
        self._source_csv_path = path
        self.model = StackModel(
            self.shoot,
            stacks,
            index_tracker=self.model.index_tracker,
            version_tracker=self.model.version_tracker,
        )
        logger.info(
            "Loaded {} stacks from {} ({} unassigned)",
            len(stacks),
            path,
            self.model.unassigned_count,
        )

    def save_csv(self, path: str) -> None:
        """Save the current stack order and flags as a manifest."""
        self._repo.save(path, self.model.stacks)

    def get_source_csv_path(self) -> str | None:
        return self._source_csv_path

    def resume_from_delivered(self, filenames: Iterable[str]) -> int:
        """Rehydrate the trackers from filenames already delivered for this shoot."""
        matched = restore_from_filenames(
            filenames, self.model.index_tracker, self.model.version_tracker
        )
        logger.info("Trackers restored from {} delivered filenames", matched)
        return matched

    def start_new_session(self) -> None:
        """Clear both trackers; numbering restarts at 1."""
        self.model.index_tracker.reset()
        self.model.version_tracker.reset()

    @property
    def rows(self) -> list[StackVM]:
        """Display rows in current order."""
        preview = {e.stack_id: e for e in self.model.preview_filenames().entries}
        return [
            StackVM(stack=s, planned_filename=preview[s.id].planned_filename)
            for s in self.model.stacks
        ]

    def preview(self) -> RenamePlan:
        return self.model.preview_filenames()

    def apply(self, plan_csv_path: str | None = None) -> RenamePlan:
        """Commit the rename plan and optionally persist it as CSV."""
        plan = self.model.apply_renaming()
        if plan_csv_path:
            self._repo.save_plan(plan_csv_path, plan)
        return plan

    def collect_details(self, frames_dir: str | Path) -> dict[str, dict[str, Any]]:
        """Read EXIF details from the first existing raw frame of each committed stack."""
        details: dict[str, dict[str, Any]] = {}
        plan = self.model.plan
        if plan is None:
            return details
        root = Path(frames_dir)
        for entry in plan.deliverable:
            for frame in entry.frame_filenames:
                candidate = root / frame
                if candidate.exists():
                    details[entry.stack_id] = read_capture_details(candidate).as_meta_details()
                    break
        return details

    def export(
        self, details_by_stack: Mapping[str, Mapping[str, Any]] | None = None
    ) -> ExportResult:
        """Export sidecars for the committed plan."""
        if self._exporter is None:
            raise RuntimeError("No export service configured")
        if self.model.plan is None:
            raise RuntimeError("Nothing to export: apply the rename plan first")
        return self._exporter.export(self.shoot, self.model.plan, details_by_stack)
