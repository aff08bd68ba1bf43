"""Domain models for the diet sheet."""

import math
from dataclasses import dataclass, field
from uuid import UUID

from nutrition_platform.domain.catalog import FoodId, Nutrient, NutrientId


@dataclass(frozen=True)
class DietEntry:
    """A food and a gram quantity in the diet."""

    id: UUID
    food_id: FoodId
    grams: float

    @property
    def is_valid(self) -> bool:
        """Return True when grams are finite and positive."""
        return math.isfinite(self.grams) and self.grams > 0


@dataclass(frozen=True)
class InterestSet:
    """Foods and nutrients whose amount facts are currently needed."""

    food_ids: frozenset[FoodId] = frozenset()
    nutrient_ids: frozenset[NutrientId] = frozenset()

    def pairs(self) -> set[tuple[FoodId, NutrientId]]:
        """Return the cross product of foods and nutrients."""
        return {(f, n) for f in self.food_ids for n in self.nutrient_ids}


@dataclass(frozen=True)
class SheetRow:
    """One diet entry scaled to every visible nutrient."""

    entry_id: UUID
    food_id: FoodId
    food_name: str
    grams: float
    valid: bool
    values: dict[NutrientId, float]


@dataclass(frozen=True)
class DietSheet:
    """Rows and full-precision column totals."""

    rows: list[SheetRow]
    totals: dict[NutrientId, float]
    total_grams: float


@dataclass(frozen=True)
class Target:
    """Goal and max threshold for one nutrient; None means unset."""

    goal: float | None = None
    max: float | None = None


@dataclass(frozen=True)
class TargetStatus:
    """Evaluation of a column total against its target."""

    over_max: bool
    goal_reached: bool | None


@dataclass(frozen=True)
class SheetView:
    """Everything a collaborator UI needs to render the sheet."""

    columns: list[Nutrient]
    sheet: DietSheet
    statuses: dict[NutrientId, TargetStatus]
    targets: dict[NutrientId, Target]
    amounts_loading: bool = False
    amounts_error: str | None = None
    catalog_error: str | None = None
    missing_facts: list[tuple[FoodId, NutrientId]] = field(default_factory=list)
