"""Mermaid gantt rendering for a scheduled portfolio."""

from __future__ import annotations

from datetime import date

from . import context
from .config import GanttConfig
from .scheduler import ScheduledTask, SchedulingResult

MONTHS_PER_YEAR = 12


def month_start(anchor: date, offset: int) -> date:
    """First day of the month ``offset`` months after ``anchor``'s month."""
    total = anchor.year * MONTHS_PER_YEAR + (anchor.month - 1) + offset
    return date(total // MONTHS_PER_YEAR, total % MONTHS_PER_YEAR + 1, 1)


def _label(text: str) -> str:
    # ':' starts the metadata part of a mermaid task line, '#' a comment
    return text.replace(":", " -").replace("#", "").strip() or "Untitled"


class GanttRenderer:
    """Renders a scheduling result as a Mermaid gantt chart.

    Month 0 is the first day of the reference month. Each project becomes a
    section; frozen tasks are tagged ``active`` and tasks that run through an
    overbooked month of one of their disciplines are tagged ``crit``.
    """

    def __init__(
        self,
        result: SchedulingResult,
        *,
        current_date: date | None = None,
        config: GanttConfig | None = None,
    ):
        """Initialize renderer.

        Args:
            result: Scheduling result to render
            current_date: Reference date; month 0 is its month. Defaults to the
                          global context date (today unless set via CLI)
            config: Optional gantt configuration
        """
        self.result = result
        self.current_date = current_date or context.get_reference_date()
        self.anchor = self.current_date.replace(day=1)
        self.config = config or GanttConfig()

    def _build_frontmatter(self, compact: bool) -> list[str]:
        lines = ["---"]
        if compact:
            lines.append("displayMode: compact")
        lines.append("config:")
        lines.append("    gantt:")
        lines.append("        topAxis: true")
        lines.append("---")
        return lines

    def _build_header(self, title: str) -> list[str]:
        return [
            "gantt",
            f"    title {title}",
            "    dateFormat YYYY-MM-DD",
            "    axisFormat %b %Y",
            "    tickInterval 1month",
            f"    todayMarker {self.current_date.strftime('%Y-%m-%d')}",
        ]

    def _overbooked_months(self) -> dict[str, set[int]]:
        months: dict[str, set[int]] = {}
        for discipline, month, _ in self.result.utilization.overbooked():
            months.setdefault(discipline, set()).add(month)
        return months

    def _task_tags(self, task: ScheduledTask, overbooked: dict[str, set[int]]) -> list[str]:
        tags: list[str] = []
        if task.frozen:
            tags.append("active")
        for discipline, fte in task.requirements.items():
            if fte <= 0:
                continue
            busy = overbooked.get(discipline, set())
            if any(month in busy for month in range(task.start_month, task.end_month)):
                tags.append("crit")
                break
        return tags

    def _task_line(self, task: ScheduledTask, overbooked: dict[str, set[int]]) -> str:
        start = month_start(self.anchor, task.start_month)
        end = month_start(self.anchor, task.end_month)
        tags = self._task_tags(task, overbooked)
        tags_str = ", ".join(tags) + ", " if tags else ""
        return (
            f"    {_label(task.task.name)} :{tags_str}t{task.id}, "
            f"{start.strftime('%Y-%m-%d')}, {(end - start).days}d"
        )

    def render(self, *, title: str | None = None, compact: bool | None = None) -> str:
        """Generate the Mermaid gantt chart.

        Args:
            title: Chart title; the configured title when omitted
            compact: Compact display mode; the configured value when omitted

        Returns:
            Mermaid gantt chart syntax as a string
        """
        lines: list[str] = []
        lines.extend(self._build_frontmatter(self.config.compact if compact is None else compact))
        lines.extend(self._build_header(title or self.config.title))

        sections: dict[int, list[ScheduledTask]] = {}
        names: dict[int, str] = {}
        for task in sorted(self.result.tasks, key=lambda t: (t.task.order, t.id)):
            sections.setdefault(task.project_id, []).append(task)
            names[task.project_id] = task.task.project_name

        overbooked = self._overbooked_months()
        for project_id, tasks in sections.items():
            lines.append("")
            lines.append(f"    section {_label(names[project_id])}")
            lines.extend(self._task_line(task, overbooked) for task in tasks)

        return "\n".join(lines)


def render_gantt(
    result: SchedulingResult,
    *,
    current_date: date | None = None,
    config: GanttConfig | None = None,
    title: str | None = None,
) -> str:
    """Render ``result`` as Mermaid gantt syntax."""
    return GanttRenderer(result, current_date=current_date, config=config).render(title=title)
