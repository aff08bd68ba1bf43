"""Pure derivation of sheet rows and column totals."""

import math
from collections.abc import Iterable, Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal

from nutrition_platform.domain.catalog import FoodId, NutrientId
from nutrition_platform.domain.diet import DietEntry, DietSheet, SheetRow
from nutrition_platform.services.amounts import AmountTable
from nutrition_platform.services.catalog import UNKNOWN_FOOD_NAME

_CENTS = Decimal("0.01")
_NO_FRACTION = 1e15


def aggregate(
    entries: Iterable[DietEntry],
    table: AmountTable,
    columns: Sequence[NutrientId],
    food_names: Mapping[FoodId, str] | None = None,
) -> DietSheet:
    """Scale every entry to every column and sum the columns.

    Entries with invalid grams stay in the rows, flagged, and count as zero.
    """
    names = food_names or {}
    rows: list[SheetRow] = []
    totals: dict[NutrientId, float] = {nutrient_id: 0.0 for nutrient_id in columns}
    total_grams = 0.0
    for entry in entries:
        grams = entry.grams if entry.is_valid else 0.0
        values = {
            nutrient_id: table.amount(entry.food_id, nutrient_id) * grams / 100
            for nutrient_id in columns
        }
        for nutrient_id, value in values.items():
            totals[nutrient_id] += value
        total_grams += grams
        rows.append(
            SheetRow(
                entry_id=entry.id,
                food_id=entry.food_id,
                food_name=names.get(entry.food_id, UNKNOWN_FOOD_NAME),
                grams=entry.grams if math.isfinite(entry.grams) else 0.0,
                valid=entry.is_valid,
                values=values,
            )
        )
    return DietSheet(rows=rows, totals=totals, total_grams=total_grams)


def round_display(value: float | None) -> float:
    """Round to 2 decimals, half away from zero; non-finite becomes 0."""
    if value is None or not math.isfinite(value):
        return 0.0
    if abs(value) >= _NO_FRACTION:
        return value
    return float(Decimal(repr(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))
