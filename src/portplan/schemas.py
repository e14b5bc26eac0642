"""Pydantic schemas for persisted portfolio state.

Saved state arrives from files written by this package or by the original
browser app, so both key spellings are accepted. Numbers are never trusted:
anything non-finite, negative, or unparsable becomes ``None`` instead of
failing validation.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def coerce_number(value: Any) -> float | None:
    """Finite, non-negative number or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def coerce_id(value: Any) -> int | None:
    """Positive integer id or None."""
    number = coerce_number(value)
    if number is None or number <= 0 or number != int(number):
        return None
    return int(number)


class LineItemSchema(BaseModel):
    """Schema for one saved row."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = Field(validation_alias=AliasChoices("id", "uid"))
    name: str = ""
    parent_id: int | None = Field(
        default=None, validation_alias=AliasChoices("parentId", "parentProjectUid", "parent_id")
    )
    dependency_ids: list[int] = Field(
        default_factory=list,
        validation_alias=AliasChoices("dependencyIds", "dependencyUids", "dependency_ids"),
    )
    priority: float | None = Field(
        default=None, validation_alias=AliasChoices("priority", "valueScore")
    )
    duration_months: float | None = Field(
        default=None, validation_alias=AliasChoices("durationMonths", "duration_months")
    )
    requirements: dict[str, float | None] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("requirements", "resourceAllocation"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> int:
        item_id = coerce_id(v)
        if item_id is None:
            raise ValueError(f"invalid line item id: {v!r}")
        return item_id

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("parent_id", mode="before")
    @classmethod
    def coerce_parent(cls, v: Any) -> int | None:
        return coerce_id(v)

    @field_validator("dependency_ids", mode="before")
    @classmethod
    def coerce_dependencies(cls, v: Any) -> list[int]:
        if not isinstance(v, list):
            return []
        result: list[int] = []
        for raw in v:  # type: ignore[misc]
            dep_id = coerce_id(raw)
            if dep_id is not None and dep_id not in result:
                result.append(dep_id)
        return result

    @field_validator("priority", "duration_months", mode="before")
    @classmethod
    def coerce_optional_number(cls, v: Any) -> float | None:
        return coerce_number(v)

    @field_validator("requirements", mode="before")
    @classmethod
    def coerce_requirements(cls, v: Any) -> dict[str, float | None]:
        if not isinstance(v, dict):
            return {}
        return {str(key): coerce_number(raw) for key, raw in v.items()}  # type: ignore[misc]


class OverrideSchema(BaseModel):
    """Schema for one saved scheduler pin."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_month: float = Field(validation_alias=AliasChoices("startMonth", "start_month"))
    frozen: bool = False

    @field_validator("start_month", mode="before")
    @classmethod
    def require_finite(cls, v: Any) -> float:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            raise ValueError(f"invalid start month: {v!r}")
        return float(v)

    @field_validator("frozen", mode="before")
    @classmethod
    def coerce_frozen(cls, v: Any) -> bool:
        return bool(v)


class PortfolioStateSchema(BaseModel):
    """Schema for the persisted state object.

    Rows and pins are kept raw here and validated one by one by the parser,
    so a single bad row never discards the whole file.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    next_id: int = Field(default=1, validation_alias=AliasChoices("nextId", "next_id"))
    line_items: list[Any] = Field(
        default_factory=list, validation_alias=AliasChoices("lineItems", "line_items")
    )
    disciplines: list[str] | None = None
    team_capacities: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("teamCapacities", "team_capacities")
    )
    scheduler_overrides: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("schedulerOverrides", "scheduler_overrides"),
    )

    @field_validator("next_id", mode="before")
    @classmethod
    def coerce_next_id(cls, v: Any) -> int:
        return coerce_id(v) or 1

    @field_validator("line_items", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[Any]:
        return v if isinstance(v, list) else []  # type: ignore[return-value]

    @field_validator("disciplines", mode="before")
    @classmethod
    def coerce_disciplines(cls, v: Any) -> list[str] | None:
        if not isinstance(v, list):
            return None
        names: list[str] = []
        for raw in v:  # type: ignore[misc]
            name = str(raw)
            if name not in names:
                names.append(name)
        return names or None

    @field_validator("team_capacities", "scheduler_overrides", mode="before")
    @classmethod
    def ensure_dict(cls, v: Any) -> dict[str, Any]:
        if not isinstance(v, dict):
            return {}
        return {str(key): value for key, value in v.items()}  # type: ignore[misc]
