"""Configuration classes for the scheduling system."""

from pydantic import BaseModel, Field


class SchedulingConfig(BaseModel):
    """Tunables shared by every scheduling component."""

    # Months probed past a task's earliest start before placing it anyway
    probe_limit: int = Field(default=240, ge=0)
    # Slack allowed when comparing committed usage against capacity
    capacity_epsilon: float = Field(default=1e-9, ge=0.0)

    # Utilization horizon: max(min_horizon_months, latest end + horizon_padding_months)
    min_horizon_months: int = Field(default=24, ge=1)
    horizon_padding_months: int = Field(default=6, ge=0)

    # Tie-break key stride: order = project_sequence * stride + phase_sequence
    order_stride: int = Field(default=1000, ge=1)
