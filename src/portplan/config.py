"""Unified configuration file (portplan_config.yaml).

Combines scheduler tunables with defaults for new portfolios and output
settings. Every section is optional.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from . import context
from .exceptions import ParseError
from .history import DEFAULT_MAX_UNDO_STEPS
from .models import DEFAULT_CAPACITY, DEFAULT_DISCIPLINES, PortfolioState
from .scheduler import SchedulingConfig

CONFIG_FILENAME = "portplan_config.yaml"


class DisciplineDefinition(BaseModel):
    """A discipline seeded into new portfolios."""

    name: str
    capacity: float | None = DEFAULT_CAPACITY

    @field_validator("name")
    @classmethod
    def non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("discipline name cannot be empty")
        return v


def _default_disciplines() -> list[DisciplineDefinition]:
    return [DisciplineDefinition(name=name) for name in DEFAULT_DISCIPLINES]


class HistoryConfig(BaseModel):
    """Configuration for undo histories."""

    max_undo_steps: int = Field(default=DEFAULT_MAX_UNDO_STEPS, ge=1)


class GanttConfig(BaseModel):
    """Configuration for Mermaid gantt output."""

    title: str = "Portfolio Schedule"
    compact: bool = False


class UnifiedConfig(BaseModel):
    """Unified configuration for portplan."""

    scheduler: SchedulingConfig = Field(default_factory=SchedulingConfig)
    disciplines: list[DisciplineDefinition] = Field(default_factory=_default_disciplines)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    gantt: GanttConfig = Field(default_factory=GanttConfig)

    @field_validator("disciplines")
    @classmethod
    def unique_names(cls, v: list[DisciplineDefinition]) -> list[DisciplineDefinition]:
        names = [d.name for d in v]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate discipline names: {', '.join(duplicates)}")
        if not v:
            raise ValueError("at least one discipline is required")
        return v

    def initial_state(self) -> PortfolioState:
        """An empty portfolio seeded with the configured disciplines."""
        return PortfolioState(
            disciplines=tuple(d.name for d in self.disciplines),
            capacities={d.name: d.capacity for d in self.disciplines},
        )


def load_unified_config(config_path: Path | str) -> UnifiedConfig:
    """Load unified configuration from YAML file.

    Args:
        config_path: Path to portplan_config.yaml

    Returns:
        UnifiedConfig with defaults for absent sections

    Raises:
        FileNotFoundError: If config file doesn't exist
        ParseError: If the file is not valid YAML
        ValueError: If config is invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse {config_path}: {e}") from e

    if data is None:
        return UnifiedConfig()
    if not isinstance(data, dict):
        raise ValueError("Config must be a mapping at the root level")

    return UnifiedConfig.model_validate(data)


def discover_config(state_path: Path | None = None, config_path: Path | None = None) -> UnifiedConfig:
    """Find and load the config, falling back to defaults.

    Search order:
    1. Explicit config_path argument
    2. Global context (set via CLI --config)
    3. State file directory / portplan_config.yaml
    4. Current directory / portplan_config.yaml
    """
    candidates: list[Path | None] = [config_path, context.get_config_path()]
    if state_path is not None:
        candidates.append(Path(state_path).parent / CONFIG_FILENAME)
    candidates.append(Path(CONFIG_FILENAME))

    for candidate in candidates:
        if candidate is not None and candidate.exists():
            return load_unified_config(candidate)
    return UnifiedConfig()
