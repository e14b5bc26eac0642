"""Reading and writing persisted portfolio state."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError
from .logger import get_logger
from .models import DEFAULT_CAPACITY, DEFAULT_DISCIPLINES, LineItem, Override, PortfolioState
from .scheduler.overrides import normalize_start
from .schemas import (
    LineItemSchema,
    OverrideSchema,
    PortfolioStateSchema,
    coerce_id,
    coerce_number,
)

logger = get_logger()

JSON_SUFFIXES = {".json"}


def _parse_line_items(raw_items: list[Any], disciplines: tuple[str, ...]) -> list[LineItem]:
    rows: list[LineItemSchema] = []
    seen: set[int] = set()
    for index, raw in enumerate(raw_items):
        try:
            row = LineItemSchema.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning(f"Skipping malformed line item at index {index}: {e.errors()[0]['msg']}")
            continue
        if row.id in seen:
            logger.warning(f"Skipping duplicate line item id {row.id}")
            continue
        seen.add(row.id)
        rows.append(row)

    project_ids = {row.id for row in rows if row.parent_id is None}
    items: list[LineItem] = []
    for row in rows:
        parent_id = row.parent_id
        if parent_id is not None and parent_id not in project_ids:
            logger.warning(f"Line item {row.id}: parent {parent_id} is not a project; promoted")
            parent_id = None
        items.append(
            LineItem(
                id=row.id,
                name=row.name,
                parent_id=parent_id,
                dependency_ids=tuple(row.dependency_ids),
                priority=row.priority if parent_id is None else None,
                duration_months=row.duration_months,
                requirements={d: row.requirements.get(d) for d in disciplines},
            )
        )
    return items


def _parse_overrides(raw_overrides: dict[str, Any]) -> dict[int, Override]:
    overrides: dict[int, Override] = {}
    for key, raw in raw_overrides.items():
        task_id = coerce_id(key)
        if task_id is None:
            logger.warning(f"Skipping override with invalid task id {key!r}")
            continue
        try:
            pin = OverrideSchema.model_validate(raw)
        except PydanticValidationError:
            logger.warning(f"Skipping malformed override for task {task_id}")
            continue
        overrides[task_id] = Override(normalize_start(pin.start_month), pin.frozen)
    return overrides


def parse_state(data: Any) -> PortfolioState:
    """Normalize a persisted state object into a snapshot.

    Normalization is uniform regardless of where the data came from. Bad
    numbers become None, unknown discipline keys are dropped, disciplines
    without a saved capacity get the default, and a parent that is not a
    project is cleared.

    Raises:
        ParseError: If ``data`` is not a mapping
    """
    if not isinstance(data, dict):
        raise ParseError("State must be a mapping at the root level")

    schema = PortfolioStateSchema.model_validate(data)
    disciplines = tuple(schema.disciplines) if schema.disciplines is not None else DEFAULT_DISCIPLINES

    line_items = _parse_line_items(schema.line_items, disciplines)

    capacities: dict[str, float | None] = {}
    for discipline in disciplines:
        if discipline in schema.team_capacities:
            capacities[discipline] = coerce_number(schema.team_capacities[discipline])
        else:
            capacities[discipline] = DEFAULT_CAPACITY

    max_id = max((item.id for item in line_items), default=0)

    return PortfolioState(
        line_items=tuple(line_items),
        disciplines=disciplines,
        capacities=capacities,
        overrides=_parse_overrides(schema.scheduler_overrides),
        next_id=max(max_id + 1, schema.next_id),
    )


def dump_state(state: PortfolioState) -> dict[str, Any]:
    """Persisted representation of a snapshot (JSON/YAML safe)."""
    return {
        "nextId": state.next_id,
        "lineItems": [
            {
                "id": item.id,
                "name": item.name,
                "parentId": item.parent_id,
                "dependencyIds": list(item.dependency_ids),
                "priority": item.priority,
                "durationMonths": item.duration_months,
                "requirements": dict(item.requirements),
            }
            for item in state.line_items
        ],
        "disciplines": list(state.disciplines),
        "teamCapacities": dict(state.capacities),
        "schedulerOverrides": {
            str(task_id): override.to_dict() for task_id, override in sorted(state.overrides.items())
        },
    }


def load_state(path: Path | str) -> PortfolioState:
    """Load a state file (JSON for ``.json``, YAML otherwise).

    Raises:
        ParseError: If the file is missing or not valid JSON/YAML
    """
    path = Path(path)
    if not path.exists():
        raise ParseError(f"File not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            if path.suffix.lower() in JSON_SUFFIXES:
                data: Any = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ParseError(f"Failed to parse {path}: {e}") from e

    return parse_state(data)


def write_state(path: Path | str, state: PortfolioState) -> None:
    """Write a state file in the format implied by its suffix."""
    path = Path(path)
    payload = dump_state(state)
    with path.open("w", encoding="utf-8") as f:
        if path.suffix.lower() in JSON_SUFFIXES:
            json.dump(payload, f, indent=2)
            f.write("\n")
        else:
            yaml.safe_dump(payload, f, default_flow_style=False, sort_keys=False)
