"""Shared Pydantic base models."""

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """Base model with strict, immutable defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class MutableBaseModel(BaseModel):
    """Base model for records the engine updates in place.

    Unknown fields are rejected and assignments are re-validated so that
    recomputation can never store a value of the wrong type.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
