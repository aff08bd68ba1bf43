"""Supabase repository for the global food catalog."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from nutrition_platform.domain.catalog import Food
from nutrition_platform.services.catalog import FoodRepository


@dataclass
class SupabaseFoodRepository(FoodRepository):
    """Reads the `foods_global` table."""

    client: Client

    async def search_foods(self, query: str, limit: int) -> list[Food]:
        """Search foods by name, ordered by name."""
        return await asyncio.to_thread(self._search_foods, query, limit)

    def _search_foods(self, query: str, limit: int) -> list[Food]:
        request = self.client.table("foods_global").select("id,name,price_per_100g")
        if query:
            request = request.ilike("name", f"%{query}%")
        response = request.order("name").limit(limit).execute()
        return [_parse_food(row) for row in response.data or []]


def _parse_food(row: dict[str, object]) -> Food:
    price = row.get("price_per_100g")
    return Food(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        price_per_100g=float(price) if isinstance(price, int | float) else None,
    )
