"""Commands accepted by the diet sheet service."""

from dataclasses import dataclass
from uuid import UUID

from nutrition_platform.domain.catalog import FoodId, NutrientId


@dataclass(frozen=True)
class AddEntry:
    food_id: FoodId | None
    grams: object


@dataclass(frozen=True)
class RemoveEntry:
    entry_id: UUID


@dataclass(frozen=True)
class SetGrams:
    entry_id: UUID
    grams: object


@dataclass(frozen=True)
class ClearEntries:
    pass


@dataclass(frozen=True)
class ToggleColumn:
    nutrient_id: NutrientId


@dataclass(frozen=True)
class SetTarget:
    nutrient_id: NutrientId
    field: str
    value: object


@dataclass(frozen=True)
class ResetTargets:
    pass


Command = (
    AddEntry
    | RemoveEntry
    | SetGrams
    | ClearEntries
    | ToggleColumn
    | SetTarget
    | ResetTargets
)
