"""Tests for project duration resolution."""

import math

from portplan.scheduler import clamp_duration, project_duration, project_durations
from tests.conftest import phase, project


class TestClampDuration:
    """Tests for whole-month duration clamping."""

    def test_missing_duration_is_one_month(self):
        assert clamp_duration(None) == 1

    def test_zero_duration_is_one_month(self):
        assert clamp_duration(0) == 1

    def test_fractional_duration_rounds_up(self):
        assert clamp_duration(1.2) == 2
        assert clamp_duration(3.0) == 3

    def test_non_finite_duration_is_one_month(self):
        assert clamp_duration(math.inf) == 1
        assert clamp_duration(math.nan) == 1


class TestProjectDuration:
    """Tests for critical-path duration of a project's phases."""

    def test_project_without_phases_is_zero(self):
        items = [project(1, duration=4)]
        assert project_duration(items, 1) == 0

    def test_sequential_phases_add_up(self):
        items = [
            project(1),
            phase(2, 1, duration=2),
            phase(3, 1, duration=3, deps=(2,)),
        ]
        assert project_duration(items, 1) == 5

    def test_parallel_phases_take_longest(self):
        items = [
            project(1),
            phase(2, 1, duration=2),
            phase(3, 1, duration=3),
        ]
        assert project_duration(items, 1) == 3

    def test_diamond_uses_longest_branch(self):
        items = [
            project(1),
            phase(2, 1, duration=1),
            phase(3, 1, duration=4, deps=(2,)),
            phase(4, 1, duration=1, deps=(2,)),
            phase(5, 1, duration=2, deps=(3, 4)),
        ]
        assert project_duration(items, 1) == 7

    def test_dependencies_outside_project_are_ignored(self):
        items = [
            project(1),
            phase(2, 1, duration=10),
            project(3),
            phase(4, 3, duration=2, deps=(2,)),
        ]
        assert project_duration(items, 3) == 2

    def test_project_duration_field_is_ignored_when_phases_exist(self):
        items = [project(1, duration=12), phase(2, 1, duration=2)]
        assert project_duration(items, 1) == 2

    def test_self_referencing_phase_is_finite(self):
        """A phase reached again while on the path contributes only its own duration."""
        items = [project(1), phase(2, 1, duration=3, deps=(2,))]
        assert project_duration(items, 1) == 6

    def test_two_phase_cycle_is_finite(self):
        items = [
            project(1),
            phase(2, 1, duration=1, deps=(3,)),
            phase(3, 1, duration=2, deps=(2,)),
        ]
        result = project_duration(items, 1)
        assert isinstance(result, int)
        assert 2 <= result <= 6

    def test_project_durations_covers_every_project(self):
        items = [
            project(1),
            phase(2, 1, duration=2),
            project(3, duration=5),
        ]
        assert project_durations(items) == {1: 2, 3: 0}
