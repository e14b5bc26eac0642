"""Tests for the override layer and the rebalance solver."""

from portplan.models import Override
from portplan.scheduler import (
    SchedulingService,
    apply_overrides,
    base_schedule,
    clone_overrides,
    compile_tasks,
    normalize_start,
    overrides_differ,
    rebalance,
)
from tests.conftest import make_state, project, starts


class TestNormalizeStart:
    """Tests for start month normalization."""

    def test_floors_and_clamps(self):
        assert normalize_start(2.9) == 2
        assert normalize_start(-3) == 0
        assert normalize_start(float("nan")) == 0
        assert normalize_start(float("inf")) == 0


class TestApplyOverrides:
    """Tests for merging pins over the base schedule."""

    def test_pin_replaces_base_placement(self):
        state = make_state(project(1, duration=2), project(2, duration=3))
        result = {t.id: t for t in SchedulingService(state).schedule({2: Override(4, True)}).tasks}

        assert (result[1].start_month, result[1].end_month, result[1].frozen) == (0, 2, False)
        assert (result[2].start_month, result[2].end_month, result[2].frozen) == (4, 7, True)

    def test_pins_for_unknown_ids_are_ignored(self):
        state = make_state(project(1, duration=2))
        assert starts(state, {99: Override(5)}) == {1: 0}

    def test_pins_are_not_checked_for_feasibility(self):
        """A pin may overbook and may start before its dependency ends."""
        state = make_state(
            project(1, duration=3, X=1),
            project(2, duration=1, deps=(1,), X=1),
        )
        result = SchedulingService(state).schedule({2: Override(0)})

        assert starts(state, {2: Override(0)}) == {1: 0, 2: 0}
        assert result.utilization.usage["X"][0] == 2.0

    def test_result_is_in_scheduling_order(self):
        state = make_state(project(1, priority=1), project(2, priority=5))
        tasks = compile_tasks(state)
        base = base_schedule(tasks, {"X": 1.0})
        assert [t.id for t in apply_overrides(tasks, base, {})] == [2, 1]

    def test_clone_and_differ(self):
        original = {1: Override(2, True)}
        copy = clone_overrides(original)
        assert copy == original
        assert copy is not original
        assert not overrides_differ(original, copy)
        assert overrides_differ(original, {1: Override(2, False)})


class TestRebalance:
    """Tests for re-packing unfrozen tasks around frozen ones."""

    def _state(self):
        return make_state(
            project(1, priority=9, duration=2, X=1),
            project(2, priority=1, duration=6, X=1),
        )

    def test_unfrozen_task_avoids_frozen_task(self):
        state = self._state()
        tasks = compile_tasks(state)
        result = rebalance(tasks, {"X": 1.0}, {1: Override(5, True)})

        assert result[1] == Override(5, True)
        assert result[2] == Override(7, False)

    def test_every_task_gets_an_entry(self):
        state = make_state(project(1), project(2), project(3))
        result = rebalance(compile_tasks(state), {"X": 1.0}, {})
        assert set(result) == {1, 2, 3}
        assert not any(pin.frozen for pin in result.values())

    def test_soft_pins_are_repacked(self):
        state = self._state()
        tasks = compile_tasks(state)
        result = rebalance(tasks, {"X": 1.0}, {1: Override(10, False), 2: Override(0, False)})
        assert result == {1: Override(0, False), 2: Override(2, False)}

    def test_idempotent(self):
        state = self._state()
        tasks = compile_tasks(state)
        first = rebalance(tasks, {"X": 1.0}, {1: Override(5, True)})
        second = rebalance(tasks, {"X": 1.0}, first)
        assert first == second

    def test_frozen_pins_for_unknown_ids_are_dropped(self):
        state = make_state(project(1))
        result = rebalance(compile_tasks(state), {"X": 1.0}, {42: Override(3, True)})
        assert result == {1: Override(0, False)}

    def test_service_rebalance_uses_state_overrides(self):
        state = make_state(
            project(1, priority=9, duration=2, X=1),
            project(2, priority=1, duration=6, X=1),
            overrides={1: Override(5, True)},
        )
        assert SchedulingService(state).rebalance() == {
            1: Override(5, True),
            2: Override(7, False),
        }
