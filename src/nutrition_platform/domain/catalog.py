"""Catalog records consumed by the engine."""

from dataclasses import dataclass

FoodId = str
NutrientId = str


@dataclass(frozen=True)
class Nutrient:
    """Nutrient metadata row."""

    id: NutrientId
    key: str
    display_name: str
    unit: str
    info_text: str | None = None
    default_goal: float | None = None
    default_max: float | None = None


@dataclass(frozen=True)
class Food:
    """Food known to the catalog; name is display-only."""

    id: FoodId
    name: str
    price_per_100g: float | None = None


@dataclass(frozen=True)
class AmountFact:
    """Amount of a nutrient present in 100g of a food."""

    food_id: FoodId
    nutrient_id: NutrientId
    amount_per_100g: float
