"""Nutrient and food catalogs."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from nutrition_platform.domain.catalog import Food, FoodId, Nutrient, NutrientId
from nutrition_platform.domain.errors import CatalogLoadError
from nutrition_platform.services.cache import Cache
from nutrition_platform.services.retry import call_with_retry

UNKNOWN_FOOD_NAME = "Unknown food"

_logger = logging.getLogger(__name__)


class NutrientRepository(Protocol):
    """Read interface for nutrient metadata."""

    async def list_nutrients(self) -> list[Nutrient]:
        """Return every nutrient."""


class FoodRepository(Protocol):
    """Read interface for the food catalog."""

    async def search_foods(self, query: str, limit: int) -> list[Food]:
        """Return foods whose name matches the query, ordered by name."""


@dataclass
class NutrientCatalog:
    """In-memory nutrient index, loaded once per session."""

    repository: NutrientRepository
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3
    _by_id: dict[NutrientId, Nutrient] = field(default_factory=dict)
    _by_key: dict[str, Nutrient] = field(default_factory=dict)
    _loaded: bool = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self, *, force: bool = False) -> None:
        """Fetch nutrient metadata; the index is replaced only on success."""
        if self._loaded and not force:
            return
        try:
            nutrients = await call_with_retry(
                self.repository.list_nutrients,
                action="list_nutrients",
                attempts=self.retry_attempts,
                delay_seconds=self.retry_delay_seconds,
            )
        except Exception as exc:
            raise CatalogLoadError(f"Failed to load nutrients: {exc}") from exc
        by_id = {nutrient.id: nutrient for nutrient in nutrients}
        by_key = {nutrient.key: nutrient for nutrient in nutrients if nutrient.key}
        self._by_id = by_id
        self._by_key = by_key
        self._loaded = True
        _logger.info("Nutrient catalog loaded: %s nutrients", len(by_id))

    def get(self, nutrient_id: NutrientId) -> Nutrient | None:
        return self._by_id.get(nutrient_id)

    def by_key(self, key: str) -> Nutrient | None:
        return self._by_key.get(key)

    def __contains__(self, nutrient_id: object) -> bool:
        return nutrient_id in self._by_id

    def all(self) -> list[Nutrient]:
        """Return nutrients ordered by display name."""
        return sorted(
            self._by_id.values(), key=lambda n: (n.display_name.lower(), n.id)
        )

    def default_columns(
        self, preferred_keys: Sequence[str], limit: int
    ) -> list[NutrientId]:
        """Pick the initial visible columns.

        Preferred keys that exist in the catalog win, in preferred order.
        When none match, the first nutrients by display name are used.
        """
        if limit <= 0:
            return []
        chosen: list[NutrientId] = []
        for key in preferred_keys:
            nutrient = self._by_key.get(key)
            if nutrient is not None and nutrient.id not in chosen:
                chosen.append(nutrient.id)
        if not chosen:
            chosen = [nutrient.id for nutrient in self.all()]
        return chosen[:limit]


@dataclass
class FoodCatalog:
    """Id index of foods seen through search."""

    _foods: dict[FoodId, Food] = field(default_factory=dict)

    def remember(self, foods: Iterable[Food]) -> None:
        for food in foods:
            self._foods[food.id] = food

    def get(self, food_id: FoodId) -> Food | None:
        return self._foods.get(food_id)

    def __contains__(self, food_id: object) -> bool:
        return food_id in self._foods

    def name_for(self, food_id: FoodId) -> str:
        food = self._foods.get(food_id)
        return food.name if food else UNKNOWN_FOOD_NAME

    def names(self) -> dict[FoodId, str]:
        return {food_id: food.name for food_id, food in self._foods.items()}


@dataclass
class FoodSearchService:
    """Food search with caching; results feed the FoodCatalog."""

    repository: FoodRepository
    catalog: FoodCatalog
    cache: Cache
    ttl_seconds: float = 300
    default_limit: int = 200
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def search(self, query: str, limit: int | None = None) -> list[Food]:
        """Search foods by name; an empty query lists foods by name."""
        resolved_limit = limit if limit and limit > 0 else self.default_limit
        normalized = query.strip().lower()
        cache_key = ("foods", normalized, resolved_limit)
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        try:
            foods = await call_with_retry(
                lambda: self.repository.search_foods(normalized, resolved_limit),
                action=f"search_foods:{normalized!r}",
                attempts=self.retry_attempts,
                delay_seconds=self.retry_delay_seconds,
            )
        except Exception as exc:
            raise CatalogLoadError(f"Failed to search foods: {exc}") from exc
        foods = foods[:resolved_limit]
        self.catalog.remember(foods)
        self.cache.set(cache_key, foods, ttl_seconds=self.ttl_seconds)
        _logger.debug("Food search: query=%s results=%s", normalized, len(foods))
        return foods
