"""Pure structural transitions over portfolio snapshots.

Every function takes a ``PortfolioState`` and returns a new one; the input is
never modified. Invalid requests raise ``ValidationError`` so callers can
report them; the scheduling core is never involved here.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from .exceptions import MissingReferenceError, ValidationError
from .logger import get_logger
from .models import DEFAULT_CAPACITY, LineItem, Override, PortfolioState
from .schemas import coerce_id, coerce_number

logger = get_logger()

EDITABLE_FIELDS = {"name", "dependency_ids", "priority", "duration_months"}


def _require_item(state: PortfolioState, item_id: int) -> LineItem:
    item = state.item(item_id)
    if item is None:
        raise MissingReferenceError(f"Line item {item_id} does not exist")
    return item


def _require_discipline(state: PortfolioState, discipline: str) -> None:
    if discipline not in state.disciplines:
        raise MissingReferenceError(f"Discipline '{discipline}' does not exist")


def _blank_item(state: PortfolioState, item_id: int, parent_id: int | None, name: str = "") -> LineItem:
    return LineItem(
        id=item_id,
        name=name,
        parent_id=parent_id,
        requirements=dict.fromkeys(state.disciplines),
    )


def normalize_hierarchy(items: Iterable[LineItem]) -> tuple[LineItem, ...]:
    """Attach every phase to the nearest project above it.

    A phase with no project above it becomes a project. Phases never carry
    a priority.
    """
    result: list[LineItem] = []
    nearest_project: int | None = None
    for item in items:
        if item.is_project:
            nearest_project = item.id
            result.append(item)
            continue
        result.append(replace(item, parent_id=nearest_project, priority=None))
    return tuple(result)


def add_project(state: PortfolioState, name: str = "") -> PortfolioState:
    """Append an empty project; its id is ``state.next_id``."""
    item = _blank_item(state, state.next_id, None, name)
    return replace(state, line_items=(*state.line_items, item), next_id=state.next_id + 1)


def add_row_below(state: PortfolioState, item_id: int, name: str = "") -> PortfolioState:
    """Insert an empty row at the same level as ``item_id``.

    Below a phase the new row is a sibling phase. Below a project it is a new
    project placed after the project's phases so they stay with their owner.
    """
    item = _require_item(state, item_id)
    index = state.index_of(item_id)
    if item.is_project:
        for offset, candidate in enumerate(state.line_items[index + 1 :], start=index + 1):
            if candidate.parent_id != item_id:
                break
            index = offset

    new_item = _blank_item(state, state.next_id, item.parent_id, name)
    items = (*state.line_items[: index + 1], new_item, *state.line_items[index + 1 :])
    return replace(state, line_items=normalize_hierarchy(items), next_id=state.next_id + 1)


def add_phase(state: PortfolioState, project_id: int, name: str = "") -> PortfolioState:
    """Append an empty phase at the end of a project's phases."""
    project = _require_item(state, project_id)
    if not project.is_project:
        raise ValidationError(f"Line item {project_id} is a phase; phases cannot own phases")
    phases = state.phases_of(project_id)
    anchor = phases[-1].id if phases else project_id
    index = state.index_of(anchor)
    new_item = _blank_item(state, state.next_id, project_id, name)
    items = (*state.line_items[: index + 1], new_item, *state.line_items[index + 1 :])
    return replace(state, line_items=items, next_id=state.next_id + 1)


def update_item(state: PortfolioState, item_id: int, **fields: Any) -> PortfolioState:
    """Change editable fields of one row.

    Accepted fields: ``name``, ``dependency_ids``, ``priority`` (projects only),
    ``duration_months``. Numbers are normalized the same way loaded data is.
    """
    item = _require_item(state, item_id)
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Cannot edit fields: {', '.join(sorted(unknown))}")

    changes: dict[str, Any] = {}
    if "name" in fields:
        changes["name"] = str(fields["name"] or "")
    if "dependency_ids" in fields:
        dependency_ids: list[int] = []
        for raw in fields["dependency_ids"] or ():
            dep_id = coerce_id(raw)
            if dep_id is not None and dep_id not in dependency_ids:
                dependency_ids.append(dep_id)
        changes["dependency_ids"] = tuple(dependency_ids)
    if "priority" in fields:
        if not item.is_project:
            raise ValidationError(f"Line item {item_id} is a phase; priority is set on its project")
        changes["priority"] = coerce_number(fields["priority"])
    if "duration_months" in fields:
        changes["duration_months"] = coerce_number(fields["duration_months"])

    updated = replace(item, **changes)
    items = tuple(updated if row.id == item_id else row for row in state.line_items)
    return replace(state, line_items=items)


def set_requirement(
    state: PortfolioState, item_id: int, discipline: str, value: Any
) -> PortfolioState:
    """Set one row's FTE requirement for a discipline (None clears it)."""
    item = _require_item(state, item_id)
    _require_discipline(state, discipline)
    requirements = {**item.requirements, discipline: coerce_number(value)}
    updated = replace(item, requirements=requirements)
    items = tuple(updated if row.id == item_id else row for row in state.line_items)
    return replace(state, line_items=items)


def remove_item(state: PortfolioState, item_id: int) -> PortfolioState:
    """Delete a row; a project takes its phases with it.

    Deleted ids are stripped from every remaining dependency list and their
    scheduler pins are dropped.
    """
    _require_item(state, item_id)
    removed = {item_id} | {phase.id for phase in state.phases_of(item_id)}

    items = tuple(
        replace(item, dependency_ids=tuple(d for d in item.dependency_ids if d not in removed))
        for item in state.line_items
        if item.id not in removed
    )
    overrides = {k: v for k, v in state.overrides.items() if k not in removed}
    logger.changes(f"Removed line items {sorted(removed)}")
    return replace(state, line_items=items, overrides=overrides)


def can_indent(state: PortfolioState, item_id: int) -> bool:
    index = state.index_of(item_id)
    if index <= 0:
        return False
    return any(item.is_project for item in state.line_items[:index])


def can_outdent(state: PortfolioState, item_id: int) -> bool:
    item = state.item(item_id)
    return item is not None and not item.is_project


def indent_item(state: PortfolioState, item_id: int) -> PortfolioState:
    """Make a row a phase of the nearest project above it.

    Its own priority is cleared. When a project is indented, its former
    phases follow it into the project above.
    """
    _require_item(state, item_id)
    if not can_indent(state, item_id):
        raise ValidationError(f"Line item {item_id} has no project above it to join")

    index = state.index_of(item_id)
    parent_id = next(item.id for item in reversed(state.line_items[:index]) if item.is_project)
    items = tuple(
        replace(item, parent_id=parent_id, priority=None) if item.id == item_id else item
        for item in state.line_items
    )
    return replace(state, line_items=normalize_hierarchy(items))


def outdent_item(state: PortfolioState, item_id: int) -> PortfolioState:
    """Promote a phase to a project.

    Phases listed below it within its old project become its phases.
    """
    _require_item(state, item_id)
    if not can_outdent(state, item_id):
        raise ValidationError(f"Line item {item_id} is already a project")

    items = tuple(
        replace(item, parent_id=None, priority=None) if item.id == item_id else item
        for item in state.line_items
    )
    return replace(state, line_items=normalize_hierarchy(items))


def move_item(state: PortfolioState, item_id: int, target_id: int) -> PortfolioState:
    """Reorder rows the way a row drag-and-drop does.

    - A project moves with all of its phases, in front of the target's project.
    - A phase dropped on a project joins it as its last phase.
    - A phase dropped on a phase joins that phase's project just before it.
    """
    item = _require_item(state, item_id)
    target = _require_item(state, target_id)
    if item_id == target_id:
        return state

    if item.is_project:
        anchor_id = target_id if target.is_project else target.parent_id
        if anchor_id == item_id:
            return state
        group = {item_id} | {phase.id for phase in state.phases_of(item_id)}
        moving = [row for row in state.line_items if row.id in group]
        remaining = [row for row in state.line_items if row.id not in group]
        insert_at = next(i for i, row in enumerate(remaining) if row.id == anchor_id)
        items = (*remaining[:insert_at], *moving, *remaining[insert_at:])
        return replace(state, line_items=tuple(items))

    remaining = [row for row in state.line_items if row.id != item_id]
    if target.is_project:
        moved = replace(item, parent_id=target_id)
        insert_at = next(i for i, row in enumerate(remaining) if row.id == target_id) + 1
        while insert_at < len(remaining) and remaining[insert_at].parent_id == target_id:
            insert_at += 1
    else:
        moved = replace(item, parent_id=target.parent_id)
        insert_at = next(i for i, row in enumerate(remaining) if row.id == target_id)

    items = (*remaining[:insert_at], moved, *remaining[insert_at:])
    return replace(state, line_items=tuple(items))


def _rename_key(mapping: Mapping[str, Any], old: str, new: str) -> dict[str, Any]:
    return {(new if key == old else key): value for key, value in mapping.items()}


def add_discipline(state: PortfolioState, name: str | None = None) -> PortfolioState:
    """Add a discipline with the default capacity and no requirements."""
    if name is None:
        number = len(state.disciplines) + 1
        while f"D{number}" in state.disciplines:
            number += 1
        name = f"D{number}"
    name = name.strip()
    if not name:
        raise ValidationError("Discipline name cannot be empty")
    if name in state.disciplines:
        raise ValidationError(f"Discipline '{name}' already exists")

    items = tuple(
        replace(item, requirements={**item.requirements, name: None}) for item in state.line_items
    )
    return replace(
        state,
        line_items=items,
        disciplines=(*state.disciplines, name),
        capacities={**state.capacities, name: DEFAULT_CAPACITY},
    )


def rename_discipline(state: PortfolioState, old: str, new: str) -> PortfolioState:
    """Rename a discipline in the discipline list, capacities, and every requirements map."""
    _require_discipline(state, old)
    new = new.strip()
    if not new:
        raise ValidationError("Discipline name cannot be empty")
    if new == old:
        return state
    if new in state.disciplines:
        raise ValidationError(f"Discipline '{new}' already exists")

    items = tuple(
        replace(item, requirements=_rename_key(item.requirements, old, new))
        for item in state.line_items
    )
    return replace(
        state,
        line_items=items,
        disciplines=tuple(new if d == old else d for d in state.disciplines),
        capacities=_rename_key(state.capacities, old, new),
    )


def remove_discipline(state: PortfolioState, name: str) -> PortfolioState:
    """Remove a discipline everywhere; the last one cannot be removed."""
    _require_discipline(state, name)
    if len(state.disciplines) <= 1:
        raise ValidationError("At least one discipline is required")

    items = tuple(
        replace(item, requirements={k: v for k, v in item.requirements.items() if k != name})
        for item in state.line_items
    )
    return replace(
        state,
        line_items=items,
        disciplines=tuple(d for d in state.disciplines if d != name),
        capacities={k: v for k, v in state.capacities.items() if k != name},
    )


def set_capacity(state: PortfolioState, discipline: str, value: Any) -> PortfolioState:
    """Set a discipline's monthly capacity (None when blank or invalid)."""
    _require_discipline(state, discipline)
    return replace(state, capacities={**state.capacities, discipline: coerce_number(value)})


def set_overrides(state: PortfolioState, overrides: Mapping[int, Override]) -> PortfolioState:
    return replace(state, overrides=dict(overrides))
