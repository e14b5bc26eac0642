"""Override files for carrying pins between portfolio files.

An override file holds only the scheduler pins (start month and frozen flag
per task id), so a rebalanced or hand-arranged schedule can be exported from
one state file and re-applied to another.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

import yaml

from .exceptions import ParseError
from .models import Override
from .schemas import coerce_id
from .scheduler import normalize_start

OVERRIDE_FILE_VERSION = 1


def write_override_file(path: Path, overrides: Mapping[int, Override]) -> None:
    """Export a pin set to an override file.

    Args:
        path: Path to write the override file
        overrides: Pins keyed by task id
    """
    pins: dict[int, dict[str, Any]] = {
        task_id: {"start_month": override.start_month, "frozen": override.frozen}
        for task_id, override in sorted(overrides.items())
    }
    output: dict[str, Any] = {
        "version": OVERRIDE_FILE_VERSION,
        "overrides": pins,
    }

    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(output, f, default_flow_style=False, sort_keys=False)


def read_override_file(path: Path) -> dict[int, Override]:  # noqa: PLR0912 - validation needs many branches
    """Load an override file.

    Args:
        path: Path to the override file

    Returns:
        Pins keyed by task id, start months normalized

    Raises:
        ParseError: If the file is missing or not valid YAML
        ValueError: If the file format is invalid or the version is unsupported
    """
    try:
        with path.open(encoding="utf-8") as f:
            raw_data: Any = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ParseError(f"Override file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse {path}: {e}") from e

    if not isinstance(raw_data, dict):
        raise ValueError(f"Invalid override file format: expected dict, got {type(raw_data)}")

    data = cast(dict[str, Any], raw_data)

    version = data.get("version")
    if version is None:
        raise ValueError("Override file missing 'version' field")
    if not isinstance(version, int):
        raise ValueError(f"Override file version must be int, got {type(version)}")
    if version != OVERRIDE_FILE_VERSION:
        raise ValueError(
            f"Unsupported override file version {version}, expected {OVERRIDE_FILE_VERSION}"
        )

    raw_pins = data.get("overrides") or {}
    if not isinstance(raw_pins, dict):
        raise ValueError("Override file 'overrides' field must be a dict")

    overrides: dict[int, Override] = {}
    for raw_id, pin_data in cast(dict[Any, Any], raw_pins).items():
        task_id = coerce_id(raw_id)
        if task_id is None:
            raise ValueError(f"Invalid task id in override file: {raw_id!r}")
        if not isinstance(pin_data, dict):
            raise ValueError(f"Override for {task_id} must be a dict")

        pin = cast(dict[str, Any], pin_data)
        start = pin.get("start_month")
        if isinstance(start, bool) or not isinstance(start, (int, float)):
            raise ValueError(f"Override for {task_id} missing numeric start_month")

        overrides[task_id] = Override(normalize_start(start), bool(pin.get("frozen", False)))

    return overrides
