"""Shared Pydantic base models."""

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """Base model with strict, immutable defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")


def clamp_unit(value: float) -> float:
    """Clamp a score into the closed unit interval [0, 1]."""
    return min(1.0, max(0.0, float(value)))
