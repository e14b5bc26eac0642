"""Tests for compiling line items into schedulable tasks."""

from portplan.scheduler import SchedulingConfig, compile_tasks, sort_tasks
from tests.conftest import make_state, phase, project


class TestCompileTasks:
    """Tests for compile_tasks."""

    def test_project_without_phases_is_standalone_task(self):
        state = make_state(project(1, "Radar", priority=3, duration=2, X=0.5))
        (task,) = compile_tasks(state)

        assert task.id == 1
        assert task.name == "Radar"
        assert task.project_id == 1
        assert task.is_standalone
        assert task.priority == 3
        assert task.duration == 2
        assert task.requirements == {"X": 0.5}

    def test_project_with_phases_contributes_only_phases(self):
        state = make_state(
            project(1, "Radar", priority=4, duration=9),
            phase(2, 1, "Design", duration=2),
            phase(3, 1, "Build", duration=3),
        )
        tasks = compile_tasks(state)

        assert [t.id for t in tasks] == [2, 3]
        assert all(not t.is_standalone for t in tasks)
        assert all(t.priority == 4 for t in tasks)
        assert all(t.project_name == "Radar" for t in tasks)

    def test_order_is_project_sequence_times_stride_plus_phase_sequence(self):
        state = make_state(
            project(1),
            phase(2, 1),
            phase(3, 1),
            project(4),
        )
        tasks = compile_tasks(state)
        assert [t.order for t in tasks] == [0, 1, 1000]

    def test_custom_stride(self):
        state = make_state(project(1), project(2))
        tasks = compile_tasks(state, SchedulingConfig(order_stride=10))
        assert [t.order for t in tasks] == [0, 10]

    def test_missing_priority_defaults_to_zero(self):
        state = make_state(project(1))
        assert compile_tasks(state)[0].priority == 0.0

    def test_default_names(self):
        state = make_state(project(1), phase(2, 1))
        (task,) = compile_tasks(state)
        assert task.name == "Phase 2"
        assert task.project_name == "Project 1"

    def test_requirements_cover_every_discipline(self):
        state = make_state(
            project(1, X=2.0, Y=None),
            disciplines=("X", "Y", "Z"),
        )
        assert compile_tasks(state)[0].requirements == {"X": 2.0, "Y": 0.0, "Z": 0.0}

    def test_dependencies_on_missing_items_are_dropped(self):
        state = make_state(project(1), project(2, deps=(1, 99)))
        assert compile_tasks(state)[1].dependency_ids == (1,)

    def test_duration_is_clamped(self):
        state = make_state(project(1, duration=0.2), project(2))
        assert [t.duration for t in compile_tasks(state)] == [1, 1]


class TestSortTasks:
    """Tests for scheduling order."""

    def test_priority_descending_then_authored_order(self):
        state = make_state(
            project(1, priority=1),
            project(2, priority=5),
            project(3, priority=1),
            project(4, priority=5),
        )
        assert [t.id for t in sort_tasks(compile_tasks(state))] == [2, 4, 1, 3]
