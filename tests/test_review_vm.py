"""Tests for the review session view-model."""

from PIL import Image
import pytest

from app.viewmodels.review_vm import ReviewVM
from app.viewmodels.stack_vm import StackVM
from core.models import Stack
from infrastructure.csv_repository import CsvStackRepository
from infrastructure.exif import TAG_DATETIME, TAG_MAKE
from infrastructure.export_service import ExportService, LocalDirectoryStorage

ROWS = [
    {"StackId": "a", "OrderIndex": 1, "ImageCount": 5, "RoomType": "Fassade"},
    {"StackId": "b", "OrderIndex": 0, "ImageCount": 3, "RoomType": "Küche"},
    {
        "StackId": "c",
        "OrderIndex": 2,
        "ImageCount": 5,
        "RoomType": "Fassade",
        "FlaggedUncertain": 1,
    },
    {"StackId": "d", "OrderIndex": 3, "ImageCount": 5, "MarkedForDeletion": 1},
]


@pytest.fixture
def vm(tmp_path, shoot, write_manifest):
    exporter = ExportService(
        LocalDirectoryStorage(tmp_path / "out"), audit_log_dir=str(tmp_path / "logs")
    )
    review = ReviewVM(CsvStackRepository(), shoot, exporter=exporter)
    review.load_csv(str(write_manifest(ROWS)))
    return review


def test_load_orders_by_manifest_index(vm):
    assert [s.id for s in vm.model.stacks] == ["b", "a", "c", "d"]
    assert vm.get_source_csv_path().endswith("manifest.csv")


def test_rows(vm):
    rows = vm.rows
    assert [r.status for r in rows] == ["ok", "ok", "uncertain", "deleted"]
    assert rows[0].planned_filename == "2025-10-28-AB3KQ_kueche_001_v1.jpg"
    assert rows[0].room_label == "Küche"
    assert rows[0].category == "wohnbereiche"
    assert rows[3].planned_filename is None


def test_stack_vm_unassigned():
    row = StackVM(stack=Stack(id="x"))
    assert row.status == "unassigned"
    assert row.room_label == "Nicht zugewiesen"
    assert row.category is None


def test_apply_writes_plan(tmp_path, vm):
    plan = vm.apply(str(tmp_path / "plan.csv"))
    assert plan.committed
    assert (tmp_path / "plan.csv").exists()
    assert [e.planned_filename for e in plan.deliverable] == [
        "2025-10-28-AB3KQ_kueche_001_v1.jpg",
        "2025-10-28-AB3KQ_fassade_001_v1.jpg",
        "2025-10-28-AB3KQ_fassade_002_v1.jpg",
    ]


def test_resume_from_delivered(vm):
    matched = vm.resume_from_delivered(
        ["2025-10-28-AB3KQ_fassade_002_v1.jpg", "2025-10-28-AB3KQ_fassade_002_g001_e0.dng"]
    )
    assert matched == 2
    assert vm.preview().entries[1].planned_filename == "2025-10-28-AB3KQ_fassade_003_v1.jpg"
    vm.start_new_session()
    assert vm.preview().entries[1].planned_filename == "2025-10-28-AB3KQ_fassade_001_v1.jpg"


def test_reload_keeps_trackers(vm, write_manifest):
    vm.apply()
    vm.load_csv(str(write_manifest(ROWS, name="second.csv")))
    assert vm.preview().entries[1].planned_filename == "2025-10-28-AB3KQ_fassade_003_v1.jpg"


def test_export_requires_commit(vm):
    with pytest.raises(RuntimeError):
        vm.export()


def test_export_without_service(shoot):
    with pytest.raises(RuntimeError):
        ReviewVM(CsvStackRepository(), shoot).export()


def test_export_with_exif_details(tmp_path, vm):
    plan = vm.apply()
    frames_dir = tmp_path / "frames"
    frames_dir.mkdir()
    exif = Image.Exif()
    exif[TAG_DATETIME] = "2025:10:28 09:15:00"
    exif[TAG_MAKE] = "Sony"
    first_frame = plan.deliverable[0].frame_filenames[0]
    Image.new("RGB", (8, 8)).save(frames_dir / first_frame, format="JPEG", exif=exif)

    details = vm.collect_details(frames_dir)
    assert set(details) == {"b"}
    assert details["b"]["capture_time"] == "2025-10-28T09:15:00"
    assert details["b"]["device_info"].make == "Sony"

    result = vm.export(details)
    assert result.failed == []
    sidecar = tmp_path / "out" / "2025-10-28-AB3KQ_kueche_001_v1.object_meta.json"
    assert '"capture_time": "2025-10-28T09:15:00"' in sidecar.read_text("utf-8")


def test_save_csv_round_trips_order(tmp_path, vm):
    vm.model.move_stack(3, 0)
    vm.model.assign_room_type(["d"], "Garten")
    out = tmp_path / "saved.csv"
    vm.save_csv(str(out))

    reloaded = list(CsvStackRepository().load(str(out)))
    assert [s.id for s in reloaded] == ["d", "b", "a", "c"]
    assert reloaded[0].room_type == "Garten"
    assert reloaded[0].marked_for_deletion
