"""
Shared pydantic bases for session and availability payloads.
"""
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Prices are stored as NUMERIC(10, 2) and rendered as JSON numbers.
Money = Annotated[
    Decimal,
    Field(max_digits=10, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class StandardizedModel(BaseModel):
    """Response base: enums render as their values."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True)


class StrictModel(BaseModel):
    """Request base: unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
