"""Tests for pure structural transitions."""

import pytest

from portplan import edits
from portplan.exceptions import MissingReferenceError, ValidationError
from portplan.models import Override
from tests.conftest import make_state, phase, project


def _rows(state) -> list[tuple[int, int | None]]:
    return [(item.id, item.parent_id) for item in state.line_items]


class TestAddRows:
    """Tests for adding projects and phases."""

    def test_add_project_uses_next_id(self):
        state = edits.add_project(make_state(project(1)), "Radar")
        assert _rows(state) == [(1, None), (2, None)]
        assert state.next_id == 3
        assert state.line_items[-1].requirements == {"X": None}

    def test_input_state_is_not_modified(self):
        state = make_state(project(1))
        edits.add_project(state)
        assert len(state.line_items) == 1

    def test_add_row_below_phase_is_sibling_phase(self):
        state = make_state(project(1), phase(2, 1), phase(3, 1))
        result = edits.add_row_below(state, 2)
        assert _rows(result) == [(1, None), (2, 1), (4, 1), (3, 1)]

    def test_add_row_below_project_skips_its_phases(self):
        state = make_state(project(1), phase(2, 1), project(3))
        result = edits.add_row_below(state, 1)
        assert _rows(result) == [(1, None), (2, 1), (4, None), (3, None)]

    def test_add_phase_appends_to_project(self):
        state = make_state(project(1), phase(2, 1), project(3))
        result = edits.add_phase(state, 1, "Test")
        assert _rows(result) == [(1, None), (2, 1), (4, 1), (3, None)]

    def test_add_phase_to_phase_is_rejected(self):
        state = make_state(project(1), phase(2, 1))
        with pytest.raises(ValidationError):
            edits.add_phase(state, 2)

    def test_unknown_item(self):
        with pytest.raises(MissingReferenceError):
            edits.add_row_below(make_state(), 5)


class TestUpdateItem:
    """Tests for editing row fields."""

    def test_update_fields(self):
        state = make_state(project(1), project(2))
        result = edits.update_item(
            state, 2, name="Sonar", dependency_ids=[1, "1", -3, 1.5], priority="4", duration_months=2.5
        )
        item = result.item(2)
        assert item is not None
        assert item.name == "Sonar"
        assert item.dependency_ids == (1,)
        assert item.priority == 4.0
        assert item.duration_months == 2.5

    def test_invalid_numbers_become_none(self):
        state = make_state(project(1, priority=3, duration=2))
        result = edits.update_item(state, 1, priority="abc", duration_months=-1)
        item = result.item(1)
        assert item is not None
        assert item.priority is None
        assert item.duration_months is None

    def test_phase_priority_rejected(self):
        state = make_state(project(1), phase(2, 1))
        with pytest.raises(ValidationError):
            edits.update_item(state, 2, priority=5)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            edits.update_item(make_state(project(1)), 1, parent_id=None)

    def test_set_requirement(self):
        state = make_state(project(1), disciplines=("X", "Y"))
        result = edits.set_requirement(state, 1, "Y", "0.5")
        item = result.item(1)
        assert item is not None
        assert item.requirements["Y"] == 0.5

    def test_set_requirement_unknown_discipline(self):
        with pytest.raises(MissingReferenceError):
            edits.set_requirement(make_state(project(1)), 1, "Nope", 1)


class TestRemoveItem:
    """Tests for deleting rows."""

    def test_remove_project_cascades(self):
        state = make_state(
            project(1),
            phase(2, 1),
            project(3, deps=(2, 1)),
            overrides={2: Override(4), 3: Override(1)},
        )
        result = edits.remove_item(state, 1)

        assert _rows(result) == [(3, None)]
        assert result.line_items[0].dependency_ids == ()
        assert result.overrides == {3: Override(1)}

    def test_remove_phase_only(self):
        state = make_state(project(1), phase(2, 1), phase(3, 1, deps=(2,)))
        result = edits.remove_item(state, 2)
        assert _rows(result) == [(1, None), (3, 1)]
        assert result.line_items[1].dependency_ids == ()


class TestIndentOutdent:
    """Tests for changing hierarchy levels."""

    def test_indent_joins_project_above(self):
        state = make_state(project(1), project(2, priority=5))
        result = edits.indent_item(state, 2)
        assert _rows(result) == [(1, None), (2, 1)]
        assert result.line_items[1].priority is None

    def test_indent_first_row_rejected(self):
        state = make_state(project(1))
        assert not edits.can_indent(state, 1)
        with pytest.raises(ValidationError):
            edits.indent_item(state, 1)

    def test_indented_project_brings_its_phases(self):
        state = make_state(project(1), project(2), phase(3, 2))
        result = edits.indent_item(state, 2)
        assert _rows(result) == [(1, None), (2, 1), (3, 1)]

    def test_outdent_adopts_following_phases(self):
        state = make_state(project(1), phase(2, 1), phase(3, 1), phase(4, 1))
        result = edits.outdent_item(state, 3)
        assert _rows(result) == [(1, None), (2, 1), (3, None), (4, 3)]

    def test_outdent_project_rejected(self):
        state = make_state(project(1))
        assert not edits.can_outdent(state, 1)
        with pytest.raises(ValidationError):
            edits.outdent_item(state, 1)

    def test_normalize_hierarchy_promotes_orphan_phase(self):
        items = edits.normalize_hierarchy([phase(2, 1), project(3), phase(4, 1)])
        assert [(i.id, i.parent_id) for i in items] == [(2, None), (3, None), (4, 3)]


class TestMoveItem:
    """Tests for row drag-and-drop reordering."""

    def test_project_moves_with_phases(self):
        state = make_state(project(1), project(2), phase(3, 2))
        result = edits.move_item(state, 2, 1)
        assert _rows(result) == [(2, None), (3, 2), (1, None)]

    def test_project_dropped_on_phase_goes_before_its_project(self):
        state = make_state(project(1), phase(2, 1), project(3))
        result = edits.move_item(state, 3, 2)
        assert _rows(result) == [(3, None), (1, None), (2, 1)]

    def test_phase_dropped_on_project_becomes_last_phase(self):
        state = make_state(project(1), phase(2, 1), project(3), phase(4, 3))
        result = edits.move_item(state, 2, 3)
        assert _rows(result) == [(1, None), (3, None), (4, 3), (2, 3)]

    def test_phase_dropped_on_phase_goes_before_it(self):
        state = make_state(project(1), phase(2, 1), project(3), phase(4, 3))
        result = edits.move_item(state, 2, 4)
        assert _rows(result) == [(1, None), (3, None), (2, 3), (4, 3)]

    def test_drop_on_self_is_no_op(self):
        state = make_state(project(1))
        assert edits.move_item(state, 1, 1) == state


class TestDisciplines:
    """Tests for discipline management."""

    def test_add_default_name(self):
        state = edits.add_discipline(make_state(project(1)))
        assert state.disciplines == ("X", "D2")
        assert state.capacities["D2"] == 1.0
        assert state.line_items[0].requirements == {"D2": None}

    def test_add_duplicate_rejected(self):
        with pytest.raises(ValidationError):
            edits.add_discipline(make_state(), "X")

    def test_rename_everywhere(self):
        state = make_state(project(1, X=2.0), capacities={"X": 3.0})
        result = edits.rename_discipline(state, "X", "Optics")
        assert result.disciplines == ("Optics",)
        assert result.capacities == {"Optics": 3.0}
        assert result.line_items[0].requirements == {"Optics": 2.0}

    def test_rename_to_existing_rejected(self):
        state = make_state(disciplines=("X", "Y"))
        with pytest.raises(ValidationError):
            edits.rename_discipline(state, "X", "Y")

    def test_remove(self):
        state = make_state(project(1, X=1, Y=2), disciplines=("X", "Y"))
        result = edits.remove_discipline(state, "X")
        assert result.disciplines == ("Y",)
        assert "X" not in result.capacities
        assert result.line_items[0].requirements == {"Y": 2}

    def test_remove_last_rejected(self):
        with pytest.raises(ValidationError):
            edits.remove_discipline(make_state(), "X")

    def test_set_capacity(self):
        state = edits.set_capacity(make_state(), "X", "2.5")
        assert state.capacities["X"] == 2.5
        assert edits.set_capacity(state, "X", "").capacities["X"] is None
