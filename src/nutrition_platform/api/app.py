"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated
from uuid import UUID

from fastapi import FastAPI, Query, Request, status
from fastapi.responses import JSONResponse

from nutrition_platform.api.models import (
    AddEntryRequest,
    SearchRequest,
    SetTargetRequest,
    UpdateGramsRequest,
)
from nutrition_platform.app_logging import configure_logging
from nutrition_platform.containers import AppContainer
from nutrition_platform.domain.catalog import Food, Nutrient
from nutrition_platform.domain.commands import (
    AddEntry,
    ClearEntries,
    RemoveEntry,
    ResetTargets,
    SetGrams,
    SetTarget,
    ToggleColumn,
)
from nutrition_platform.domain.diet import SheetView
from nutrition_platform.domain.errors import (
    AmountFetchError,
    CatalogLoadError,
    InvalidInputError,
    UnknownEntryError,
)
from nutrition_platform.services.aggregation import round_display


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.debug)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.sheet_service.load()
        except CatalogLoadError:
            logger.exception("Failed to load nutrient catalog")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(UnknownEntryError)
    async def unknown_entry(_request: Request, exc: UnknownEntryError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(InvalidInputError)
    async def invalid_input(_request: Request, exc: InvalidInputError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/nutrients")
    async def list_nutrients(request: Request) -> dict[str, object]:
        """Return the nutrient catalog ordered by display name."""
        state_container: AppContainer = request.app.state.container
        service = state_container.sheet_service
        return {
            "nutrients": [_nutrient_payload(n) for n in service.nutrients.all()],
            "catalog_error": service.catalog_error,
        }

    @app.post("/catalog/reload")
    async def reload_catalog(request: Request) -> dict[str, object]:
        """Retry loading the nutrient catalog."""
        state_container: AppContainer = request.app.state.container
        try:
            await state_container.sheet_service.load(force=True)
        except CatalogLoadError:
            logger.warning("Nutrient catalog reload failed")
        return _sheet_payload(state_container.sheet_service.view())

    @app.get("/foods")
    async def search_foods(
        request: Request,
        query: str = "",
        limit: Annotated[int | None, Query(ge=1)] = None,
    ) -> dict[str, object]:
        """Search the food catalog."""
        state_container: AppContainer = request.app.state.container
        try:
            foods = await state_container.food_search_service.search(query, limit)
        except CatalogLoadError as exc:
            return {"foods": [], "error": str(exc)}
        return {"foods": [_food_payload(food) for food in foods], "error": None}

    @app.post("/search")
    async def submit_search(
        body: SearchRequest, request: Request
    ) -> dict[str, object]:
        """Submit a debounced search query."""
        state_container: AppContainer = request.app.state.container
        state_container.debounced_search.submit(body.query)
        return _search_payload(state_container)

    @app.get("/search")
    async def search_state(request: Request, wait: bool = False) -> dict[str, object]:
        """Return the debounced search state."""
        state_container: AppContainer = request.app.state.container
        if wait:
            await state_container.debounced_search.wait()
        return _search_payload(state_container)

    @app.get("/sheet")
    async def get_sheet(request: Request) -> dict[str, object]:
        """Return rows, totals and warnings."""
        state_container: AppContainer = request.app.state.container
        return _sheet_payload(state_container.sheet_service.view())

    @app.post("/sheet/entries", status_code=status.HTTP_201_CREATED)
    async def add_entry(body: AddEntryRequest, request: Request) -> dict[str, object]:
        """Add a diet entry."""
        state_container: AppContainer = request.app.state.container
        service = state_container.sheet_service
        entry = service.dispatch(AddEntry(food_id=body.food_id, grams=body.grams))
        return {"entry_id": str(entry.id), "sheet": _sheet_payload(service.view())}

    @app.patch("/sheet/entries/{entry_id}")
    async def update_entry(
        entry_id: UUID, body: UpdateGramsRequest, request: Request
    ) -> dict[str, object]:
        """Edit the grams of an entry."""
        state_container: AppContainer = request.app.state.container
        service = state_container.sheet_service
        service.dispatch(SetGrams(entry_id=entry_id, grams=body.grams))
        return _sheet_payload(service.view())

    @app.delete("/sheet/entries/{entry_id}")
    async def remove_entry(entry_id: UUID, request: Request) -> dict[str, object]:
        """Remove an entry."""
        state_container: AppContainer = request.app.state.container
        service = state_container.sheet_service
        service.dispatch(RemoveEntry(entry_id=entry_id))
        return _sheet_payload(service.view())

    @app.delete("/sheet/entries")
    async def clear_entries(request: Request) -> dict[str, object]:
        """Remove every entry."""
        state_container: AppContainer = request.app.state.container
        service = state_container.sheet_service
        service.dispatch(ClearEntries())
        return _sheet_payload(service.view())

    @app.post("/sheet/columns/{nutrient_id}/toggle")
    async def toggle_column(nutrient_id: str, request: Request) -> dict[str, object]:
        """Show or hide a nutrient column."""
        state_container: AppContainer = request.app.state.container
        service = state_container.sheet_service
        visible = service.dispatch(ToggleColumn(nutrient_id=nutrient_id))
        return {"visible": visible, "sheet": _sheet_payload(service.view())}

    @app.put("/sheet/targets/{nutrient_id}")
    async def set_target(
        nutrient_id: str, body: SetTargetRequest, request: Request
    ) -> dict[str, object]:
        """Set a goal or max threshold."""
        state_container: AppContainer = request.app.state.container
        service = state_container.sheet_service
        service.dispatch(
            SetTarget(nutrient_id=nutrient_id, field=body.field, value=body.value)
        )
        return _sheet_payload(service.view())

    @app.post("/sheet/targets/reset")
    async def reset_targets(request: Request) -> dict[str, object]:
        """Restore every target to its default."""
        state_container: AppContainer = request.app.state.container
        service = state_container.sheet_service
        service.dispatch(ResetTargets())
        return _sheet_payload(service.view())

    @app.post("/sheet/refresh")
    async def refresh_sheet(request: Request) -> dict[str, object]:
        """Resolve amount facts now and return the settled sheet."""
        state_container: AppContainer = request.app.state.container
        service = state_container.sheet_service
        try:
            await service.refresh()
        except AmountFetchError:
            logger.warning("Amount refresh failed; serving cached facts")
        return _sheet_payload(service.view())

    return app


def _nutrient_payload(nutrient: Nutrient) -> dict[str, object]:
    return {
        "id": nutrient.id,
        "key": nutrient.key,
        "display_name": nutrient.display_name,
        "unit": nutrient.unit,
        "info_text": nutrient.info_text,
        "default_goal": nutrient.default_goal,
        "default_max": nutrient.default_max,
    }


def _food_payload(food: Food) -> dict[str, object]:
    return {"id": food.id, "name": food.name, "price_per_100g": food.price_per_100g}


def _search_payload(container: AppContainer) -> dict[str, object]:
    search = container.debounced_search
    return {
        "query": search.query,
        "loading": search.loading,
        "error": search.error,
        "foods": [_food_payload(food) for food in search.results],
    }


def _sheet_payload(view: SheetView) -> dict[str, object]:
    sheet = view.sheet
    return {
        "columns": [_nutrient_payload(nutrient) for nutrient in view.columns],
        "rows": [
            {
                "entry_id": str(row.entry_id),
                "food_id": row.food_id,
                "food_name": row.food_name,
                "grams": row.grams,
                "valid": row.valid,
                "values": {
                    nutrient_id: round_display(value)
                    for nutrient_id, value in row.values.items()
                },
            }
            for row in sheet.rows
        ],
        "totals": {
            nutrient_id: round_display(total)
            for nutrient_id, total in sheet.totals.items()
        },
        "total_grams": round_display(sheet.total_grams),
        "targets": {
            nutrient_id: {"goal": target.goal, "max": target.max}
            for nutrient_id, target in view.targets.items()
        },
        "warnings": {
            nutrient_id: target_status.over_max
            for nutrient_id, target_status in view.statuses.items()
        },
        "goal_reached": {
            nutrient_id: target_status.goal_reached
            for nutrient_id, target_status in view.statuses.items()
        },
        "missing_facts": [list(pair) for pair in view.missing_facts],
        "amounts_loading": view.amounts_loading,
        "amounts_error": view.amounts_error,
        "catalog_error": view.catalog_error,
    }
