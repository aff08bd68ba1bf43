"""Debounced food search state."""

import asyncio
import logging
from dataclasses import dataclass, field

from nutrition_platform.domain.catalog import Food
from nutrition_platform.domain.errors import CatalogLoadError
from nutrition_platform.services.catalog import FoodSearchService

_logger = logging.getLogger(__name__)


@dataclass
class DebouncedFoodSearch:
    """Search-as-you-type on top of FoodSearchService.

    A new query cancels a search still waiting out its delay window. A
    request already sent keeps running, but its result is dropped unless
    it belongs to the latest query.
    """

    search_service: FoodSearchService
    delay_seconds: float = 0.3
    limit: int | None = None
    query: str = ""
    results: list[Food] = field(default_factory=list)
    error: str | None = None
    _generation: int = 0
    _waiting: "asyncio.Task[None] | None" = None
    _current: "asyncio.Task[None] | None" = None

    @property
    def loading(self) -> bool:
        return self._current is not None and not self._current.done()

    def submit(self, query: str) -> "asyncio.Task[None]":
        """Schedule a search for `query`; must be called inside a running loop."""
        self._generation += 1
        self.query = query
        if self._waiting is not None and not self._waiting.done():
            self._waiting.cancel()
        task = asyncio.get_running_loop().create_task(
            self._run(self._generation, query)
        )
        self._waiting = task
        self._current = task
        return task

    async def wait(self) -> None:
        """Wait for the latest submitted search to settle."""
        if self._current is not None:
            await self._current

    async def _run(self, generation: int, query: str) -> None:
        await asyncio.sleep(self.delay_seconds)
        self._waiting = None
        try:
            results = await self.search_service.search(query, self.limit)
        except CatalogLoadError as exc:
            if generation == self._generation:
                self.error = str(exc)
            _logger.warning("Food search failed for %r: %s", query, exc)
            return
        if generation != self._generation:
            _logger.debug("Dropping results for superseded query %r", query)
            return
        self.results = results
        self.error = None
