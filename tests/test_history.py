"""Tests for undo/redo histories."""

from portplan.history import History, OverrideHistory, StructuralHistory
from portplan.models import Override


class TestHistory:
    """Tests for the generic linear history."""

    def test_undo_returns_previous(self):
        history: History[str] = History()
        history.record("a")
        assert history.undo("b") == "a"
        assert history.redo("a") == "b"

    def test_record_clears_redo(self):
        history: History[str] = History()
        history.record("a")
        history.undo("b")
        history.record("a")
        assert not history.can_redo

    def test_bounded(self):
        history: History[int] = History(max_steps=3)
        for value in range(5):
            history.record(value)
        assert history.undo_stack == [2, 3, 4]

    def test_clear(self):
        history: History[int] = History()
        history.record(1)
        history.undo(2)
        history.clear()
        assert not history.can_undo
        assert not history.can_redo


class TestStructuralHistory:
    """Tests for the snapshot history."""

    def test_default_bound_is_fifty(self):
        assert StructuralHistory().max_steps == 50


class TestOverrideHistory:
    """Tests for the pin-set history."""

    def test_unbounded(self):
        history = OverrideHistory()
        for month in range(200):
            history.record({1: Override(month)})
        assert len(history.undo_stack) == 200

    def test_record_copies(self):
        history = OverrideHistory()
        pins = {1: Override(3)}
        history.record(pins)
        pins[2] = Override(4)
        assert history.undo({}) == {1: Override(3)}
