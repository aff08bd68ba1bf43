"""Supabase repository for nutrient metadata."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from nutrition_platform.domain.catalog import Nutrient
from nutrition_platform.services.catalog import NutrientRepository

_COLUMNS = "id,key,display_name,unit,info_text,default_goal,default_max"


@dataclass
class SupabaseNutrientRepository(NutrientRepository):
    """Reads the `nutrients` table."""

    client: Client

    async def list_nutrients(self) -> list[Nutrient]:
        """Return every nutrient row."""
        return await asyncio.to_thread(self._list_nutrients)

    def _list_nutrients(self) -> list[Nutrient]:
        response = self.client.table("nutrients").select(_COLUMNS).execute()
        return [_parse_nutrient(row) for row in response.data or []]


def _parse_nutrient(row: dict[str, object]) -> Nutrient:
    key = str(row.get("key") or "")
    return Nutrient(
        id=str(row["id"]),
        key=key,
        display_name=str(row.get("display_name") or key),
        unit=str(row.get("unit") or ""),
        info_text=row.get("info_text") or None,
        default_goal=_optional_float(row.get("default_goal")),
        default_max=_optional_float(row.get("default_max")),
    )


def _optional_float(value: object) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
