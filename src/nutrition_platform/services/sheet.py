"""Diet sheet state and its single update entry point."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from nutrition_platform.domain.commands import (
    AddEntry,
    ClearEntries,
    Command,
    RemoveEntry,
    ResetTargets,
    SetGrams,
    SetTarget,
    ToggleColumn,
)
from nutrition_platform.domain.diet import DietEntry, InterestSet, SheetView
from nutrition_platform.domain.errors import (
    AmountFetchError,
    CatalogLoadError,
    InvalidInputError,
)
from nutrition_platform.services.aggregation import aggregate
from nutrition_platform.services.amounts import AmountResolver
from nutrition_platform.services.catalog import FoodCatalog, NutrientCatalog
from nutrition_platform.services.columns import ColumnSelection
from nutrition_platform.services.ledger import DietLedger
from nutrition_platform.services.targets import TargetStore

_logger = logging.getLogger(__name__)


@dataclass
class DietSheetService:
    """Owns the ledger, columns and targets; derives the sheet on demand.

    Every mutation goes through `dispatch`, which is synchronous. Entry and
    column changes schedule an amount refresh in the background; callers
    observe `amounts_loading` and `amounts_error` on the view.
    """

    nutrients: NutrientCatalog
    foods: FoodCatalog
    resolver: AmountResolver
    targets: TargetStore
    preferred_keys: Sequence[str] = ()
    max_default_columns: int = 10
    columns: ColumnSelection = field(default_factory=ColumnSelection)
    catalog_error: str | None = None
    ledger: DietLedger = field(init=False)
    _refresh_tasks: "set[asyncio.Task[bool]]" = field(default_factory=set, init=False)

    def __post_init__(self) -> None:
        self.ledger = DietLedger(food_exists=self.foods.__contains__)
        self._handlers: dict[type, Callable[..., object]] = {
            AddEntry: self._add_entry,
            RemoveEntry: self._remove_entry,
            SetGrams: self._set_grams,
            ClearEntries: self._clear_entries,
            ToggleColumn: self._toggle_column,
            SetTarget: self._set_target,
            ResetTargets: self._reset_targets,
        }

    async def load(self, *, force: bool = False) -> None:
        """Load nutrient metadata, seed targets and pick default columns."""
        try:
            await self.nutrients.load(force=force)
        except CatalogLoadError as exc:
            self.catalog_error = str(exc)
            raise
        self.catalog_error = None
        self.targets.seed(self.nutrients.all())
        kept = [
            nutrient_id for nutrient_id in self.columns if nutrient_id in self.nutrients
        ]
        self.columns.replace(
            kept
            or self.nutrients.default_columns(
                self.preferred_keys, self.max_default_columns
            )
        )
        self._schedule_refresh()

    def dispatch(self, command: Command) -> object:
        """Apply one command; invalid input raises before any state change."""
        handler = self._handlers.get(type(command))
        if handler is None:
            raise InvalidInputError(f"Unsupported command: {type(command).__name__}")
        return handler(command)

    def interest_set(self) -> InterestSet:
        return InterestSet(
            food_ids=self.ledger.food_ids(),
            nutrient_ids=frozenset(self.columns),
        )

    async def refresh(self) -> bool:
        """Resolve amount facts for the current interest set."""
        return await self.resolver.recompute(self.interest_set())

    @property
    def refreshing(self) -> bool:
        """True while a scheduled refresh has not finished."""
        return any(not task.done() for task in self._refresh_tasks)

    async def settle(self) -> None:
        """Wait for every scheduled refresh to finish."""
        while self._refresh_tasks:
            await asyncio.wait(list(self._refresh_tasks))

    def view(self) -> SheetView:
        """Derive rows, totals and warnings from the current state."""
        column_ids = [
            nutrient_id for nutrient_id in self.columns if nutrient_id in self.nutrients
        ]
        sheet = aggregate(
            self.ledger, self.resolver.table, column_ids, self.foods.names()
        )
        error = self.resolver.last_error
        return SheetView(
            columns=[self.nutrients.get(nutrient_id) for nutrient_id in column_ids],
            sheet=sheet,
            statuses=self.targets.evaluate(sheet.totals),
            targets={
                nutrient_id: self.targets.get(nutrient_id) for nutrient_id in column_ids
            },
            amounts_loading=self.resolver.loading or self.refreshing,
            amounts_error=str(error) if error else None,
            catalog_error=self.catalog_error,
            missing_facts=self.resolver.table.unknown_facts(self.interest_set()),
        )

    def _add_entry(self, command: AddEntry) -> DietEntry:
        entry = self.ledger.add(command.food_id, command.grams)
        _logger.info(
            "Added entry %s food=%s grams=%s", entry.id, entry.food_id, entry.grams
        )
        self._schedule_refresh()
        return entry

    def _remove_entry(self, command: RemoveEntry) -> DietEntry:
        entry = self.ledger.remove(command.entry_id)
        self._schedule_refresh()
        return entry

    def _set_grams(self, command: SetGrams) -> DietEntry:
        return self.ledger.update_grams(command.entry_id, command.grams)

    def _clear_entries(self, _command: ClearEntries) -> None:
        self.ledger.clear()
        self._schedule_refresh()

    def _toggle_column(self, command: ToggleColumn) -> bool:
        if command.nutrient_id not in self.nutrients:
            raise InvalidInputError(f"Unknown nutrient: {command.nutrient_id}")
        visible = self.columns.toggle(command.nutrient_id)
        self._schedule_refresh()
        return visible

    def _set_target(self, command: SetTarget) -> object:
        return self.targets.set_target(
            command.nutrient_id, command.field, command.value
        )

    def _reset_targets(self, _command: ResetTargets) -> object:
        return self.targets.reset_to_defaults()

    def _schedule_refresh(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.refresh())
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)
        task.add_done_callback(_log_refresh_failure)


def _log_refresh_failure(task: "asyncio.Task[bool]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if isinstance(exc, AmountFetchError):
        _logger.warning("Amount refresh failed: %s", exc)
    elif exc is not None:
        _logger.error("Amount refresh crashed", exc_info=exc)
