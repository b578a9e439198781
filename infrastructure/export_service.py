"""Sidecar export for committed rename plans.

Writes one ``object_meta.json`` per delivered file plus a shared
``alt_text.txt`` through a storage target, and records every outcome in an
audit CSV log. Image bytes are never touched here.
"""

from __future__ import annotations

from collections.abc import Mapping
import csv
from datetime import datetime
import os
from pathlib import Path
from typing import Any

from loguru import logger

from core.models import ShootInfo
from core.services.interfaces import ExportResult, RenamePlan, StorageTarget
from core.services.sidecar_service import (
    AltTextEntry,
    generate_alt_text_file,
    object_meta_for_entry,
    serialize_object_meta,
    validate_object_meta,
)
from infrastructure.logging import get_audit_log_directory

ALT_TEXT_KEY = "alt_text.txt"


def sidecar_key(filename: str) -> str:
    """Storage key of the metadata record for a delivered `filename`."""
    return f"{Path(filename).stem}.object_meta.json"


class LocalDirectoryStorage:
    """Storage target writing objects below a local directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def put(self, key: str, data: bytes) -> str:
        target = self._root / key
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return str(target)


class ExportService:
    """Coordinates sidecar export and audit logging."""

    def __init__(self, storage: StorageTarget, audit_log_dir: str | None = None) -> None:
        self._storage = storage
        self._audit_log_dir = audit_log_dir

    def export(
        self,
        shoot: ShootInfo,
        plan: RenamePlan,
        details_by_stack: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> ExportResult:
        """Export sidecars for every deliverable entry of a committed `plan`.

        Args:
            shoot: Job context of the plan.
            plan: Plan returned by `StackModel.apply_renaming`.
            details_by_stack: Optional per-stack metadata (orientation, lens,
                ev, capture_time, ...) keyed by stack id.

        Records failing validation are not written and are reported in
        `ExportResult.failed` with their error messages.
        """
        if not plan.committed:
            raise ValueError("Only committed rename plans can be exported")

        details_by_stack = details_by_stack or {}
        success: list[str] = []
        failed: list[tuple[str, str]] = []
        alt_entries: list[AltTextEntry] = []

        for entry in plan.deliverable:
            filename = entry.planned_filename or ""
            details = dict(details_by_stack.get(entry.stack_id, {}))
            meta = object_meta_for_entry(shoot, entry, **details)
            report = validate_object_meta(meta)
            if report.warnings:
                logger.info(
                    "{}: {} metadata warnings: {}", filename, len(report.warnings), report.warnings
                )
            if not report.is_valid:
                logger.error("{}: metadata rejected: {}", filename, report.errors)
                failed.append((filename, "; ".join(report.errors)))
                continue
            try:
                location = self._storage.put(
                    sidecar_key(filename), serialize_object_meta(meta).encode("utf-8")
                )
            except OSError as ex:
                logger.error("Write sidecar failed for {}: {}", filename, ex)
                failed.append((filename, f"Write failed: {ex}"))
                continue
            success.append(location)
            alt_entries.append(
                AltTextEntry(
                    filename=filename,
                    room_type=entry.room_type or "",
                    orientation=meta.orientation,
                )
            )

        if alt_entries:
            try:
                success.append(
                    self._storage.put(
                        ALT_TEXT_KEY, generate_alt_text_file(alt_entries).encode("utf-8")
                    )
                )
            except OSError as ex:
                logger.error("Write alt text failed: {}", ex)
                failed.append((ALT_TEXT_KEY, f"Write failed: {ex}"))

        result = ExportResult(success_paths=success, failed=failed)
        result.log_path = self._write_audit_log(shoot, result)
        return result

    def _write_audit_log(self, shoot: ShootInfo, result: ExportResult) -> str | None:
        try:
            base_dir = (
                os.path.expandvars(self._audit_log_dir)
                if self._audit_log_dir
                else get_audit_log_directory()
            )
            Path(base_dir).mkdir(parents=True, exist_ok=True)
            ts = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_path = os.path.join(base_dir, f"export_{shoot.shoot_code}_{ts}.csv")
            with open(log_path, "w", encoding="utf-8", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(["ShootCode", "Target", "Success", "Reason"])
                for p in result.success_paths:
                    writer.writerow([shoot.shoot_code, p, 1, ""])
                for p, reason in result.failed:
                    writer.writerow([shoot.shoot_code, p, 0, reason])
            logger.info(
                "Export log written: {} ({} success, {} failed)",
                log_path,
                len(result.success_paths),
                len(result.failed),
            )
            return log_path
        except (OSError, ValueError) as ex:
            logger.error("Write export log failed: {}", ex)
            return None
