"""Shared pytest configuration and fixtures for the capture naming test suite."""

import csv
import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from core.models import ShootInfo, Stack  # noqa: E402


MANIFEST_HEADERS = [
    "StackId",
    "OrderIndex",
    "ImageCount",
    "PreviewUrl",
    "RoomType",
    "MarkedForDeletion",
    "FlaggedUncertain",
    "EvValues",
]


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def shoot() -> ShootInfo:
    return ShootInfo(
        job_id="job-123",
        shoot_code="AB3KQ",
        date="2025-10-28",
        display_id="AB3KQ-001",
        user_code="PHOTO01",
    )


@pytest.fixture
def stacks() -> list[Stack]:
    """Five unassigned 5-frame stacks in order s1..s5."""
    return [Stack(id=f"s{i}", order_index=i - 1, image_count=5) for i in range(1, 6)]


@pytest.fixture
def write_manifest(tmp_path):
    """Write manifest rows (dicts keyed by header) and return the CSV path."""

    def _write(rows: list[dict], name: str = "manifest.csv", headers=None) -> Path:
        path = tmp_path / name
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=headers or MANIFEST_HEADERS)
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
        return path

    return _write
