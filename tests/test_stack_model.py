"""Unit tests for StackModel ordering, flags and rename planning."""

import pytest

from core.models import Stack
from core.services.stack_model import RenamePlanError, StackModel, bracket_ev_values

PREFIX = "2025-10-28-AB3KQ_"


@pytest.fixture
def model(shoot, stacks):
    return StackModel(shoot, stacks)


@pytest.fixture
def assigned(model):
    """s1, s2, s4 Fassade; s3 Wohnzimmer; s5 Fassade but marked for deletion."""
    model.assign_room_type(["s1", "s2", "s4", "s5"], "Fassade")
    model.assign_room_type(["s3"], "Wohnzimmer")
    model.toggle_deletion(["s5"])
    return model


def _order(model):
    return [s.id for s in model.stacks]


class TestOrdering:

    def test_constructor_sorts_and_densifies(self, shoot):
        model = StackModel(
            shoot,
            [
                Stack(id="b", order_index=7),
                Stack(id="a", order_index=2),
                Stack(id="c", order_index=9),
            ],
        )
        assert _order(model) == ["a", "b", "c"]
        assert [s.order_index for s in model.stacks] == [0, 1, 2]

    def test_duplicate_id_rejected(self, model):
        with pytest.raises(ValueError):
            model.add_stack(Stack(id="s1"))

    @pytest.mark.parametrize(
        "move,expected",
        [
            ((0, 3), ["s2", "s3", "s4", "s1", "s5"]),
            ((4, 1), ["s1", "s5", "s2", "s3", "s4"]),
            ((2, 2), ["s1", "s2", "s3", "s4", "s5"]),
            ((0, 4), ["s2", "s3", "s4", "s5", "s1"]),
        ],
    )
    def test_move_stack_keeps_dense_order(self, model, move, expected):
        model.move_stack(*move)
        assert _order(model) == expected
        assert [s.order_index for s in model.stacks] == list(range(len(expected)))
        assert all(model.get(sid).order_index == pos for pos, sid in enumerate(expected))

    def test_repeated_moves_stay_dense(self, model):
        for move in [(0, 4), (3, 0), (2, 1), (4, 2)]:
            model.move_stack(*move)
        assert sorted(s.order_index for s in model.stacks) == [0, 1, 2, 3, 4]

    @pytest.mark.parametrize("move", [(-1, 0), (0, 5), (5, 0)])
    def test_move_out_of_range(self, model, move):
        with pytest.raises(IndexError):
            model.move_stack(*move)


class TestSelectionAndFlags:

    def test_select_and_deselect(self, model):
        model.select("s3")
        model.select("s1")
        assert model.selected_ids == ["s1", "s3"]
        assert model.is_selected("s3")
        model.deselect("s1")
        assert not model.is_selected("s1")
        assert model.selected_ids == ["s3"]
        model.clear_selection()
        assert model.selected_ids == []

    def test_select_unknown(self, model):
        with pytest.raises(KeyError):
            model.select("nope")

    def test_assign_room_type_to_selection(self, model):
        model.select("s1")
        model.select("s2")
        assert model.assign_room_type(model.selected_ids, "Küche") == 2
        assert model.assign_room_type(model.selected_ids, "Küche") == 0
        assert model.unassigned_count == 3

    def test_unassigned_count_skips_deletion_marked(self, model):
        model.toggle_deletion(["s4", "s5"])
        assert model.unassigned_count == 3
        assert model.unassigned_count == len(model.preview_filenames().unassigned)

    def test_toggle_flags(self, model):
        model.toggle_deletion(["s1", "s2"])
        assert model.get("s1").marked_for_deletion
        model.toggle_deletion(["s1"])
        assert not model.get("s1").marked_for_deletion
        model.toggle_uncertain(["s2"], marked=True)
        model.toggle_uncertain(["s2"], marked=True)
        assert model.get("s2").flagged_uncertain

    def test_flags_never_remove_stacks(self, model):
        model.toggle_deletion(["s1", "s2", "s3"])
        assert len(model) == 5


class TestPreview:

    def test_planned_filenames(self, assigned):
        plan = assigned.preview_filenames()
        assert [e.planned_filename for e in plan.entries] == [
            PREFIX + "fassade_001_v1.jpg",
            PREFIX + "fassade_002_v1.jpg",
            PREFIX + "wohnzimmer_001_v1.jpg",
            PREFIX + "fassade_003_v1.jpg",
            None,
        ]
        assert plan.entries[4].is_deletion_marked
        assert not plan.committed

    def test_frame_filenames(self, assigned):
        first = assigned.preview_filenames().entries[0]
        assert first.frame_filenames == [
            PREFIX + "fassade_001_g001_e-2.dng",
            PREFIX + "fassade_001_g001_e-1.dng",
            PREFIX + "fassade_001_g001_e0.dng",
            PREFIX + "fassade_001_g001_e+1.dng",
            PREFIX + "fassade_001_g001_e+2.dng",
        ]

    def test_explicit_ev_values(self, shoot):
        stack = Stack(id="x", image_count=3, ev_values=[-4, 0, 4], room_type="WC")
        model = StackModel(shoot, [stack])
        frames = model.preview_filenames().entries[0].frame_filenames
        assert [f.rsplit("_", 1)[1] for f in frames] == ["e-4.dng", "e0.dng", "e+4.dng"]

    def test_preview_is_idempotent_and_pure(self, assigned):
        first = assigned.preview_filenames()
        second = assigned.preview_filenames()
        assert first == second
        assert assigned.index_tracker.get_current_index("Fassade") == 0
        assert len(assigned.version_tracker) == 0

    def test_order_drives_numbering(self, assigned):
        assigned.move_stack(3, 0)
        plan = assigned.preview_filenames()
        assert plan.entries[0].stack_id == "s4"
        assert plan.entries[0].planned_filename == PREFIX + "fassade_001_v1.jpg"

    def test_unassigned_and_uncertain(self, model):
        model.assign_room_type(["s1"], "Fassade")
        model.toggle_uncertain(["s1"])
        plan = model.preview_filenames()
        assert plan.entries[0].is_uncertain
        assert [e.stack_id for e in plan.unassigned] == ["s2", "s3", "s4", "s5"]


class TestApplyRenaming:

    def test_commit_matches_preview(self, assigned):
        preview = assigned.preview_filenames()
        plan = assigned.apply_renaming()
        assert plan.committed
        assert [e.planned_filename for e in plan.entries] == [
            e.planned_filename for e in preview.entries
        ]
        assert assigned.plan is plan
        assert assigned.index_tracker.get_current_index("Fassade") == 3
        assert assigned.index_tracker.get_current_index("Wohnzimmer") == 1

    def test_unassigned_blocks_commit(self, model):
        model.assign_room_type(["s1"], "Fassade")
        with pytest.raises(RenamePlanError):
            model.apply_renaming()
        assert model.index_tracker.get_current_index("Fassade") == 0
        assert model.plan is None

    def test_deleted_unassigned_stack_does_not_block(self, model):
        model.assign_room_type(["s1", "s2", "s3", "s4"], "Balkon")
        model.toggle_deletion(["s5"])
        plan = model.apply_renaming()
        assert len(plan.deliverable) == 4

    def test_second_commit_keeps_committed_names(self, assigned):
        first = assigned.apply_renaming()
        second = assigned.apply_renaming()
        assert [e.planned_filename for e in second.entries] == [
            e.planned_filename for e in first.entries
        ]
        assert assigned.index_tracker.get_current_index("Fassade") == 3

    def test_second_commit_numbers_only_new_stacks(self, assigned):
        assigned.apply_renaming()
        assigned.add_stack(Stack(id="s6", image_count=5, room_type="Fassade"))
        assigned.toggle_uncertain(["s1"])
        plan = assigned.apply_renaming()
        assert plan.entries[0].planned_filename == PREFIX + "fassade_001_v1.jpg"
        assert plan.entries[0].is_uncertain
        assert plan.entries[5].planned_filename == PREFIX + "fassade_004_v1.jpg"
        preview = assigned.preview_filenames()
        assert [e.planned_filename for e in preview.entries] == [
            e.planned_filename for e in plan.entries
        ]

    def test_reassigned_stack_draws_new_index(self, assigned):
        assigned.apply_renaming()
        assigned.assign_room_type(["s2"], "Balkon")
        plan = assigned.apply_renaming()
        assert plan.entries[1].planned_filename == PREFIX + "balkon_001_v1.jpg"
        assert plan.entries[0].planned_filename == PREFIX + "fassade_001_v1.jpg"

    def test_commit_keeps_reexported_version(self, assigned):
        assigned.apply_renaming()
        assigned.plan_reexport(["s1"])
        plan = assigned.apply_renaming()
        assert plan.entries[0].planned_filename == PREFIX + "fassade_001_v2.jpg"

    def test_reexport_bumps_version_only(self, assigned):
        assigned.apply_renaming()
        (entry,) = assigned.plan_reexport(["s1"])
        assert entry.planned_filename == PREFIX + "fassade_001_v2.jpg"
        (entry,) = assigned.plan_reexport(["s1"])
        assert entry.planned_filename == PREFIX + "fassade_001_v3.jpg"
        assert assigned.committed_entry("s1").version == 3
        assert assigned.index_tracker.get_current_index("Fassade") == 3

    def test_reexport_requires_commit(self, assigned):
        with pytest.raises(RenamePlanError):
            assigned.plan_reexport(["s1"])
        assigned.apply_renaming()
        with pytest.raises(RenamePlanError):
            assigned.plan_reexport(["s5"])


@pytest.mark.parametrize(
    "count,expected",
    [(5, [-2, -1, 0, 1, 2]), (3, [-1, 0, 1]), (4, [-2, -1, 0, 1]), (1, [0]), (0, [])],
)
def test_bracket_ev_values(count, expected):
    assert bracket_ev_values(count) == expected
