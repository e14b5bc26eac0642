"""Command-line interface for portplan."""

from __future__ import annotations

import csv
import io
import json
from datetime import date
from pathlib import Path
from typing import Annotated

import typer

from . import context
from .config import UnifiedConfig, discover_config
from .exceptions import PortplanError
from .gantt import GanttRenderer
from .lock import read_override_file, write_override_file
from .logger import setup_logger
from .models import PortfolioState
from .repository import FileStateRepository
from .scheduler import SchedulingResult, project_duration
from .session import PlanningSession

app = typer.Typer(
    name="portplan",
    help="Capacity-constrained portfolio scheduling over whole months",
    add_completion=False,
)

TABLE_FORMAT = "table"
JSON_FORMAT = "json"
CSV_FORMAT = "csv"


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to unified config file (default: portplan_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for portplan commands."""
    setup_logger(verbose)
    context.set_config_path(config)


StateArgument = Annotated[Path, typer.Argument(help="Path to the portfolio state file (JSON or YAML)")]


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def _load_config(state_path: Path) -> UnifiedConfig:
    try:
        return discover_config(state_path)
    except (PortplanError, FileNotFoundError, ValueError) as e:
        raise _fail(f"Invalid config: {e}") from None


def _open_session(state_path: Path) -> PlanningSession:
    """Session over a state file that must already exist."""
    config = _load_config(state_path)
    repository = FileStateRepository(state_path)
    try:
        state = repository.get()
    except PortplanError as e:
        raise _fail(str(e)) from None
    if state is None:
        raise _fail(f"File not found: {state_path}")
    return PlanningSession(state, repository=repository, config=config)


def _require_item(state: PortfolioState, item_id: int) -> None:
    if state.item(item_id) is None:
        raise _fail(f"Line item {item_id} does not exist")


def _parse_date_option(date_str: str | None) -> date | None:
    if date_str is None:
        return None
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        raise _fail(f"Invalid date format '{date_str}'. Use YYYY-MM-DD format.") from None


def _emit(content: str, output: Path | None, what: str) -> None:
    if output:
        output.write_text(content, encoding="utf-8")
        typer.echo(f"{what} written to {output}")
    else:
        typer.echo(content)


def _echo_warnings(result: SchedulingResult) -> None:
    if result.warnings:
        typer.echo("\nWarnings:", err=True)
        for warning in result.warnings:
            typer.echo(f"  - {warning}", err=True)


def _format_table(result: SchedulingResult) -> str:
    lines = [
        f"{'ID':>5}  {'Task':<28} {'Project':<24} {'Start':>5} {'End':>5} {'Dur':>4}  Frozen",
        "-" * 84,
    ]
    for task in result.tasks:
        lines.append(
            f"{task.id:>5}  {task.task.name[:28]:<28} {task.task.project_name[:24]:<24} "
            f"{task.start_month:>5} {task.end_month:>5} {task.duration:>4}  "
            f"{'yes' if task.frozen else ''}"
        )
    return "\n".join(lines)


def _format_csv(rows: list[list[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue().rstrip("\n")


def _schedule_csv(result: SchedulingResult) -> str:
    rows: list[list[object]] = [
        ["task_id", "task_name", "project_id", "project_name", "start_month", "end_month", "frozen"]
    ]
    for task in result.tasks:
        rows.append(
            [
                task.id,
                task.task.name,
                task.project_id,
                task.task.project_name,
                task.start_month,
                task.end_month,
                task.frozen,
            ]
        )
    return _format_csv(rows)


def _schedule_json(result: SchedulingResult) -> str:
    payload = {
        "tasks": [task.to_dict() for task in result.tasks],
        "horizon": result.utilization.horizon,
        "warnings": result.warnings,
    }
    return json.dumps(payload, indent=2)


@app.command()
def schedule(
    state_file: StateArgument,
    *,
    output_format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: table, json or csv")
    ] = TABLE_FORMAT,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Compute the final schedule (base placement plus pins)."""
    renderers = {TABLE_FORMAT: _format_table, JSON_FORMAT: _schedule_json, CSV_FORMAT: _schedule_csv}
    if output_format not in renderers:
        raise _fail(f"Unknown format '{output_format}'. Available: {', '.join(renderers)}")

    result = _open_session(state_file).schedule()
    _emit(renderers[output_format](result), output, "Schedule")
    _echo_warnings(result)


@app.command()
def utilization(
    state_file: StateArgument,
    *,
    output_format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: table or csv")
    ] = TABLE_FORMAT,
) -> None:
    """Show per-discipline monthly utilization percentages."""
    if output_format not in (TABLE_FORMAT, CSV_FORMAT):
        raise _fail(f"Unknown format '{output_format}'. Available: table, csv")

    report = _open_session(state_file).schedule().utilization
    if output_format == CSV_FORMAT:
        rows: list[list[object]] = [["discipline", *range(report.horizon)]]
        rows.extend(
            [discipline, *(round(value, 1) for value in values)]
            for discipline, values in report.percentages.items()
        )
        typer.echo(_format_csv(rows))
        return

    typer.echo(f"Utilization over {report.horizon} months (% of capacity)")
    for discipline, values in report.percentages.items():
        peak = max(values, default=0.0)
        cells = " ".join(f"{value:>4.0f}" for value in values)
        typer.echo(f"{discipline:<8} peak {peak:>5.0f}% | {cells}")


@app.command()
def duration(
    state_file: StateArgument,
    project_id: Annotated[int, typer.Argument(help="Project id")],
) -> None:
    """Show a project's duration derived from its phases."""
    state = _open_session(state_file).state
    _require_item(state, project_id)
    if not state.line_items[state.index_of(project_id)].is_project:
        raise _fail(f"Line item {project_id} is a phase")

    months = project_duration(state.line_items, project_id)
    if months == 0:
        typer.echo(f"Project {project_id} has no phases; its own duration is scheduled")
    else:
        typer.echo(f"Project {project_id}: {months} months")


def _report_moves(before: SchedulingResult, after: SchedulingResult) -> None:
    old = before.by_id()
    for task in after.tasks:
        previous = old.get(task.id)
        if previous is not None and previous.start_month != task.start_month:
            typer.echo(f"  {task.id} ({task.task.name}): month {previous.start_month} -> {task.start_month}")


# Unknown options pass through as arguments so a negative month like -3 parses
@app.command(context_settings={"ignore_unknown_options": True})
def move(
    state_file: StateArgument,
    task_id: Annotated[int, typer.Argument(help="Task id, or id of a project with phases")],
    month: Annotated[int, typer.Argument(help="Target start month (negative clamps to 0)")],
    *,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Show the result without saving")] = False,
) -> None:
    """Move a task as a manual drag would, pinning and freezing what moves."""
    session = _open_session(state_file)
    _require_item(session.state, task_id)

    before = session.schedule()
    session.begin_drag(task_id)
    session.drag_to(month)
    if not session.release_drag():
        typer.echo(f"Nothing moved: {task_id} cannot start at month {month}")
        return

    typer.echo(f"Moved {task_id}:")
    _report_moves(before, session.schedule())
    if not dry_run:
        session.save()


@app.command()
def rebalance(
    state_file: StateArgument,
    *,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Show the result without saving")] = False,
) -> None:
    """Re-pack all unfrozen tasks around frozen ones."""
    session = _open_session(state_file)
    before = session.schedule()
    session.rebalance()
    typer.echo("Rebalanced:")
    _report_moves(before, session.schedule())
    if not dry_run:
        session.save()


@app.command()
def reset(state_file: StateArgument) -> None:
    """Drop every pin and return to the automatic schedule."""
    session = _open_session(state_file)
    count = len(session.state.overrides)
    session.reset_overrides()
    session.save()
    typer.echo(f"Removed {count} overrides")


@app.command()
def freeze(
    state_file: StateArgument,
    task_id: Annotated[int, typer.Argument(help="Task id")],
) -> None:
    """Pin a task at its current start month and make it immovable."""
    session = _open_session(state_file)
    if not session.freeze(task_id):
        raise _fail(f"Task {task_id} is not scheduled")
    session.save()
    typer.echo(f"Froze {task_id} at month {session.state.overrides[task_id].start_month}")


@app.command()
def unfreeze(
    state_file: StateArgument,
    task_id: Annotated[int, typer.Argument(help="Task id, or id of a project with phases")],
) -> None:
    """Let solvers move a frozen task again (its pin is kept)."""
    session = _open_session(state_file)
    if not session.unfreeze(task_id):
        raise _fail(f"Task {task_id} is not frozen")
    session.save()
    typer.echo(f"Unfroze {task_id}")


@app.command()
def gantt(
    state_file: StateArgument,
    *,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    current_date: Annotated[
        str | None,
        typer.Option("--current-date", help="Reference date (YYYY-MM-DD); month 0 is its month"),
    ] = None,
    title: Annotated[str | None, typer.Option("--title", help="Chart title")] = None,
) -> None:
    """Render the schedule as a Mermaid gantt chart."""
    parsed_date = _parse_date_option(current_date)
    context.set_reference_date(parsed_date)

    session = _open_session(state_file)
    result = session.schedule()
    mermaid = GanttRenderer(result, config=session.config.gantt).render(title=title)

    # Wrap in markdown code fence if output is a .md file
    if output and output.suffix.lower() == ".md":
        mermaid = f"```mermaid\n{mermaid}\n```\n"
    _emit(mermaid, output, "Gantt chart")
    _echo_warnings(result)


@app.command(name="export-overrides")
def export_overrides(
    state_file: StateArgument,
    out: Annotated[Path, typer.Argument(help="Override file to write")],
) -> None:
    """Write the state's pins to an override file."""
    session = _open_session(state_file)
    write_override_file(out, session.state.overrides)
    typer.echo(f"Exported {len(session.state.overrides)} overrides to {out}")


@app.command(name="import-overrides")
def import_overrides(
    state_file: StateArgument,
    source: Annotated[Path, typer.Argument(help="Override file to read")],
) -> None:
    """Replace the state's pins with those from an override file.

    Pins for ids that are not schedulable tasks in this state are skipped.
    """
    session = _open_session(state_file)
    try:
        overrides = read_override_file(source)
    except (PortplanError, ValueError) as e:
        raise _fail(str(e)) from None

    task_ids = {task.id for task in session.service().tasks}
    applicable = {task_id: pin for task_id, pin in overrides.items() if task_id in task_ids}
    skipped = len(overrides) - len(applicable)

    session.replace_overrides(applicable)
    session.save()
    typer.echo(f"Imported {len(applicable)} overrides")
    if skipped:
        typer.echo(f"Skipped {skipped} overrides for unknown tasks", err=True)


def main() -> int:
    """Main entry point."""
    app()
    return 0


if __name__ == "__main__":
    main()
