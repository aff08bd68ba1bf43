"""Supabase repository for per-100g nutrient amounts."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from nutrition_platform.domain.catalog import AmountFact, FoodId, NutrientId
from nutrition_platform.services.amounts import AmountRepository


@dataclass
class SupabaseAmountRepository(AmountRepository):
    """Reads `food_nutrients_global`, always scoped by explicit id sets."""

    client: Client

    async def fetch_amounts(
        self, food_ids: set[FoodId], nutrient_ids: set[NutrientId]
    ) -> list[AmountFact]:
        """Return facts for the requested foods and nutrients."""
        if not food_ids or not nutrient_ids:
            return []
        return await asyncio.to_thread(self._fetch_amounts, food_ids, nutrient_ids)

    def _fetch_amounts(
        self, food_ids: set[FoodId], nutrient_ids: set[NutrientId]
    ) -> list[AmountFact]:
        response = (
            self.client.table("food_nutrients_global")
            .select("food_id,nutrient_id,amount_per_100g")
            .in_("food_id", sorted(food_ids))
            .in_("nutrient_id", sorted(nutrient_ids))
            .execute()
        )
        return [
            AmountFact(
                food_id=str(row["food_id"]),
                nutrient_id=str(row["nutrient_id"]),
                amount_per_100g=float(row.get("amount_per_100g") or 0),
            )
            for row in response.data or []
        ]
