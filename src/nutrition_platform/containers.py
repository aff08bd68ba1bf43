"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_platform.adapters.json_target_repository import (
    JsonFileTargetRepository,
)
from nutrition_platform.adapters.supabase_amount_repository import (
    SupabaseAmountRepository,
)
from nutrition_platform.adapters.supabase_food_repository import (
    SupabaseFoodRepository,
)
from nutrition_platform.adapters.supabase_nutrient_repository import (
    SupabaseNutrientRepository,
)
from nutrition_platform.config import Settings, parse_preferred_keys
from nutrition_platform.services.amounts import AmountResolver
from nutrition_platform.services.cache import TtlCache
from nutrition_platform.services.catalog import (
    FoodCatalog,
    FoodSearchService,
    NutrientCatalog,
)
from nutrition_platform.services.search import DebouncedFoodSearch
from nutrition_platform.services.sheet import DietSheetService
from nutrition_platform.services.targets import TargetStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    food_search_service: FoodSearchService
    debounced_search: DebouncedFoodSearch
    sheet_service: DietSheetService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    retry = {
        "retry_attempts": resolved_settings.fetch_retry_attempts,
        "retry_delay_seconds": resolved_settings.fetch_retry_delay_seconds,
    }
    food_catalog = FoodCatalog()
    food_search_service = FoodSearchService(
        repository=SupabaseFoodRepository(supabase_client),
        catalog=food_catalog,
        cache=TtlCache(),
        ttl_seconds=resolved_settings.search_ttl_seconds,
        default_limit=resolved_settings.search_limit,
        **retry,
    )
    debounced_search = DebouncedFoodSearch(
        search_service=food_search_service,
        delay_seconds=resolved_settings.search_debounce_seconds,
    )
    sheet_service = DietSheetService(
        nutrients=NutrientCatalog(SupabaseNutrientRepository(supabase_client), **retry),
        foods=food_catalog,
        resolver=AmountResolver(SupabaseAmountRepository(supabase_client), **retry),
        targets=TargetStore(JsonFileTargetRepository(resolved_settings.targets_path)),
        preferred_keys=parse_preferred_keys(resolved_settings.preferred_nutrient_keys),
        max_default_columns=resolved_settings.max_default_columns,
    )

    async def close_resources() -> None:
        await sheet_service.settle()
        await debounced_search.wait()

    return AppContainer(
        settings=resolved_settings,
        food_search_service=food_search_service,
        debounced_search=debounced_search,
        sheet_service=sheet_service,
        close_resources=close_resources,
    )
