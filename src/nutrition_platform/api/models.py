"""Pydantic models for diet sheet requests."""

from typing import Literal

from pydantic import BaseModel


class AddEntryRequest(BaseModel):
    """Add a food to the diet."""

    food_id: str | None = None
    grams: float | str | None = None


class UpdateGramsRequest(BaseModel):
    """Edit the grams of an entry; any text is accepted while editing."""

    grams: float | str | None = None


class SetTargetRequest(BaseModel):
    """Set the goal or max of one nutrient."""

    field: Literal["goal", "max"]
    value: float | str | None = None


class SearchRequest(BaseModel):
    """Search-as-you-type query."""

    query: str = ""
