from __future__ import annotations

import argparse
from pathlib import Path
import sys

from loguru import logger

from app.viewmodels.review_vm import ReviewVM
from core.models import ShootInfo
from core.services.filename_codec import InvalidComponentsError
from core.services.stack_model import RenamePlanError
from infrastructure.csv_repository import CsvStackRepository
from infrastructure.export_service import ExportService, LocalDirectoryStorage
from infrastructure.logging import init_logging
from infrastructure.settings import JsonSettings

BASE_DIR = Path(__file__).parent


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="capture-naming",
        description="Plan capture filenames and export sidecar metadata for a shoot.",
    )
    parser.add_argument("--settings", default=str(BASE_DIR / "settings.json"))
    parser.add_argument("--job-id", required=True)
    parser.add_argument("--shoot-code", required=True, help="5-character shoot code, e.g. AB3KQ")
    parser.add_argument("--date", required=True, help="Shoot date as YYYY-MM-DD")
    parser.add_argument("--display-id")
    parser.add_argument("--user-code")
    parser.add_argument(
        "--delivered",
        help="Text file listing filenames already delivered for this shoot (one per line)",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    preview = sub.add_parser("preview", help="Show planned filenames without committing")
    preview.add_argument("manifest")

    apply = sub.add_parser("apply", help="Commit the rename plan")
    apply.add_argument("manifest")
    apply.add_argument("--plan", help="Write the committed plan to this CSV")

    export = sub.add_parser("export", help="Commit the plan and write sidecar files")
    export.add_argument("manifest")
    export.add_argument("--plan", help="Write the committed plan to this CSV")
    export.add_argument("--frames-dir", help="Directory holding renamed raw frames for EXIF data")
    export.add_argument("--out", help="Export directory (defaults to export.dir setting)")
    return parser


def _print_plan(vm: ReviewVM) -> None:
    for row, entry in zip(vm.rows, vm.preview().entries):
        print(f"{entry.stack_id}\t{row.status}\t{entry.planned_filename or '-'}")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = JsonSettings(args.settings)
    init_logging(settings.get_path("logging.dir"), settings.get("logging.level", "INFO"))

    shoot = ShootInfo(
        job_id=args.job_id,
        shoot_code=args.shoot_code,
        date=args.date,
        display_id=args.display_id,
        user_code=args.user_code,
        raw_extension=settings.get("export.raw_extension", "dng"),
    )
    out_dir = Path(args.out) if getattr(args, "out", None) else settings.get_path("export.dir")
    audit_dir = settings.get_path("export.audit_log_dir")
    exporter = ExportService(
        LocalDirectoryStorage(out_dir or BASE_DIR / "export"),
        audit_log_dir=str(audit_dir) if audit_dir else None,
    )
    vm = ReviewVM(CsvStackRepository(), shoot, exporter=exporter)

    try:
        vm.load_csv(args.manifest)
        if args.delivered:
            names = Path(args.delivered).read_text(encoding="utf-8").splitlines()
            vm.resume_from_delivered(n.strip() for n in names if n.strip())

        if args.command == "preview":
            _print_plan(vm)
            return 0

        plan = vm.apply(args.plan)
        for entry in plan.entries:
            print(f"{entry.stack_id}\t{entry.planned_filename or '-'}")
        if args.command == "apply":
            return 0

        details = vm.collect_details(args.frames_dir) if args.frames_dir else None
        result = vm.export(details)
        for target, reason in result.failed:
            print(f"FAILED {target}: {reason}", file=sys.stderr)
        return 0 if not result.failed else 1
    except (RenamePlanError, InvalidComponentsError) as ex:
        logger.error("{}", ex)
        print(f"error: {ex}", file=sys.stderr)
        return 2
    except (ValueError, OSError) as ex:
        # Unreadable manifest or delivered list
        logger.error("Cannot read input: {}", ex)
        print(f"error: {ex}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
