"""CSV persistence for capture manifests and committed rename plans.

A manifest lists the stacks of one shoot as produced by the capture review.
Malformed rows are logged and skipped; a manifest without the required
headers is rejected.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
import csv
from pathlib import Path

from loguru import logger

from core.models import Stack
from core.services.interfaces import RenamePlan

CSV_HEADERS = [
    "StackId",
    "OrderIndex",
    "ImageCount",
    "PreviewUrl",
    "RoomType",
    "MarkedForDeletion",
    "FlaggedUncertain",
    "EvValues",
]

PLAN_HEADERS = [
    "StackId",
    "PlannedFilename",
    "RoomType",
    "Index",
    "Version",
    "MarkedForDeletion",
    "FlaggedUncertain",
    "FrameFilenames",
]

REQUIRED_HEADERS = ["StackId", "OrderIndex", "ImageCount"]


def _parse_bool_int(value: str | None) -> bool:
    """Parse CSV boolean encoded as 1/0 or true/false (case-insensitive)."""
    return str(value or "").strip().lower() in {"1", "true", "yes"}


def _parse_ev_values(value: str | None) -> list[int] | None:
    """Parse ``-2;-1;0;1;2``; empty means derive from the image count."""
    text = (value or "").strip()
    if not text:
        return None
    return [int(part) for part in text.split(";") if part.strip()]


def _format_ev_values(values: list[int] | None) -> str:
    return ";".join(str(v) for v in values) if values is not None else ""


class CsvStackRepository:
    """Load and save stacks and rename plans in CSV format."""

    def load(self, csv_path: str | Path) -> Iterator[Stack]:
        """Yield `Stack` rows from the manifest at `csv_path`."""
        path = Path(csv_path)
        with path.open("r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            missing = [h for h in REQUIRED_HEADERS if h not in (reader.fieldnames or [])]
            if missing:
                raise ValueError(f"CSV missing required headers: {missing}")

            for row in reader:
                try:
                    stack_id = (row.get("StackId") or "").strip()
                    if not stack_id:
                        raise ValueError("empty StackId")
                    yield Stack(
                        id=stack_id,
                        order_index=int(row.get("OrderIndex") or 0),
                        image_count=int(row.get("ImageCount") or 1),
                        preview_url=row.get("PreviewUrl") or "",
                        room_type=(row.get("RoomType") or "").strip() or None,
                        marked_for_deletion=_parse_bool_int(row.get("MarkedForDeletion")),
                        flagged_uncertain=_parse_bool_int(row.get("FlaggedUncertain")),
                        ev_values=_parse_ev_values(row.get("EvValues")),
                    )
                except (ValueError, TypeError) as ex:
                    logger.error("CSV row error: {} | row={}", ex, row)
                    continue

    def save(self, csv_path: str | Path, stacks: Iterable[Stack]) -> None:
        """Write stacks to `csv_path` using canonical headers."""
        path = Path(csv_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_HEADERS)
            writer.writeheader()
            for stack in stacks:
                writer.writerow(
                    {
                        "StackId": stack.id,
                        "OrderIndex": stack.order_index,
                        "ImageCount": stack.image_count,
                        "PreviewUrl": stack.preview_url,
                        "RoomType": stack.room_type or "",
                        "MarkedForDeletion": 1 if stack.marked_for_deletion else 0,
                        "FlaggedUncertain": 1 if stack.flagged_uncertain else 0,
                        "EvValues": _format_ev_values(stack.ev_values),
                    }
                )

    def save_plan(self, csv_path: str | Path, plan: RenamePlan) -> None:
        """Write a rename plan, one row per stack in display order."""
        path = Path(csv_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=PLAN_HEADERS)
            writer.writeheader()
            for entry in plan.entries:
                writer.writerow(
                    {
                        "StackId": entry.stack_id,
                        "PlannedFilename": entry.planned_filename or "",
                        "RoomType": entry.room_type or "",
                        "Index": entry.index or "",
                        "Version": entry.version or "",
                        "MarkedForDeletion": 1 if entry.is_deletion_marked else 0,
                        "FlaggedUncertain": 1 if entry.is_uncertain else 0,
                        "FrameFilenames": ";".join(entry.frame_filenames),
                    }
                )
        logger.info("Rename plan written: {} ({} rows)", path, len(plan.entries))
