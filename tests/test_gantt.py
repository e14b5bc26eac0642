"""Tests for Mermaid gantt rendering."""

from datetime import date

from portplan import context
from portplan.config import GanttConfig
from portplan.gantt import GanttRenderer, month_start, render_gantt
from portplan.models import Override
from portplan.scheduler import SchedulingService
from tests.conftest import make_state, phase, project


def _result():
    state = make_state(
        project(1, "Radar"),
        phase(2, 1, "Design", duration=2),
        phase(3, 1, "Build", duration=1, deps=(2,)),
        project(4, "Sonar: v2", duration=1),
        overrides={4: Override(1, True)},
    )
    return SchedulingService(state).schedule()


class TestMonthStart:
    """Tests for month arithmetic."""

    def test_same_month(self):
        assert month_start(date(2025, 3, 17), 0) == date(2025, 3, 1)

    def test_rolls_over_year(self):
        assert month_start(date(2025, 11, 15), 3) == date(2026, 2, 1)

    def test_many_years(self):
        assert month_start(date(2025, 1, 1), 25) == date(2027, 2, 1)


class TestGanttRenderer:
    """Tests for chart output."""

    def test_header(self):
        output = GanttRenderer(_result(), current_date=date(2025, 1, 15)).render()
        lines = output.split("\n")

        assert lines[0] == "---"
        assert "gantt" in lines
        assert "    title Portfolio Schedule" in lines
        assert "    dateFormat YYYY-MM-DD" in lines
        assert "    todayMarker 2025-01-15" in lines

    def test_sections_and_tasks(self):
        output = GanttRenderer(_result(), current_date=date(2025, 1, 15)).render()

        assert "    section Radar" in output
        assert "    Design :t2, 2025-01-01, 59d" in output
        assert "    Build :t3, 2025-03-01, 31d" in output
        assert "    section Sonar - v2" in output
        assert output.index("section Radar") < output.index("Design") < output.index("section Sonar")

    def test_frozen_task_is_active(self):
        output = GanttRenderer(_result(), current_date=date(2025, 1, 15)).render()
        assert "    Sonar - v2 :active, t4, 2025-02-01, 28d" in output

    def test_overbooked_task_is_crit(self):
        state = make_state(
            project(1, "A", duration=1, X=1),
            project(2, "B", duration=1, X=1),
            overrides={1: Override(0), 2: Override(0)},
        )
        output = render_gantt(SchedulingService(state).schedule(), current_date=date(2025, 1, 1))
        assert "    A :crit, t1, 2025-01-01, 31d" in output
        assert "    B :crit, t2, 2025-01-01, 31d" in output

    def test_title_and_compact_from_config(self):
        config = GanttConfig(title="Roadmap", compact=True)
        output = GanttRenderer(_result(), current_date=date(2025, 1, 1), config=config).render()
        assert "displayMode: compact" in output
        assert "    title Roadmap" in output

    def test_explicit_title_wins(self):
        output = render_gantt(_result(), current_date=date(2025, 1, 1), title="Q1")
        assert "    title Q1" in output

    def test_reference_date_from_context(self):
        context.set_reference_date(date(2030, 6, 9))
        output = GanttRenderer(_result()).render()
        assert "    todayMarker 2030-06-09" in output
        assert "    Design :t2, 2030-06-01, 61d" in output
