"""Incremental resolution of per-100g amount facts."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from nutrition_platform.domain.catalog import AmountFact, FoodId, NutrientId
from nutrition_platform.domain.diet import InterestSet
from nutrition_platform.domain.errors import AmountFetchError
from nutrition_platform.services.retry import call_with_retry

_logger = logging.getLogger(__name__)


class AmountRepository(Protocol):
    """Read interface for the remote amount table."""

    async def fetch_amounts(
        self, food_ids: set[FoodId], nutrient_ids: set[NutrientId]
    ) -> list[AmountFact]:
        """Return existing facts for the given ids, in any order."""


@dataclass
class AmountTable:
    """Two-level food -> nutrient -> amount container.

    A pair is *resolved* once it has been part of a completed fetch. A
    resolved pair without a fact is missing and reads as zero, which stays
    distinguishable from a stored zero through `has_fact`.
    """

    _facts: dict[FoodId, dict[NutrientId, float]] = field(default_factory=dict)
    _resolved: dict[FoodId, set[NutrientId]] = field(default_factory=dict)

    def amount(self, food_id: FoodId, nutrient_id: NutrientId) -> float:
        return self._facts.get(food_id, {}).get(nutrient_id, 0.0)

    def has_fact(self, food_id: FoodId, nutrient_id: NutrientId) -> bool:
        return nutrient_id in self._facts.get(food_id, {})

    def is_resolved(self, food_id: FoodId, nutrient_id: NutrientId) -> bool:
        return nutrient_id in self._resolved.get(food_id, set())

    def missing_pairs(self, interest: InterestSet) -> set[tuple[FoodId, NutrientId]]:
        """Return pairs of the interest set not yet resolved."""
        return {
            (food_id, nutrient_id)
            for food_id, nutrient_id in interest.pairs()
            if not self.is_resolved(food_id, nutrient_id)
        }

    def unknown_facts(
        self, interest: InterestSet
    ) -> list[tuple[FoodId, NutrientId]]:
        """Return resolved pairs that came back without a row."""
        return sorted(
            (food_id, nutrient_id)
            for food_id, nutrient_id in interest.pairs()
            if self.is_resolved(food_id, nutrient_id)
            and not self.has_fact(food_id, nutrient_id)
        )

    def apply(
        self,
        food_ids: Iterable[FoodId],
        nutrient_ids: Iterable[NutrientId],
        facts: Iterable[AmountFact],
    ) -> None:
        """Record a completed fetch scoped to `food_ids` x `nutrient_ids`."""
        nutrient_scope = set(nutrient_ids)
        for food_id in food_ids:
            self._resolved.setdefault(food_id, set()).update(nutrient_scope)
        for fact in facts:
            self._facts.setdefault(fact.food_id, {})[fact.nutrient_id] = float(
                fact.amount_per_100g
            )

    def retain_foods(self, food_ids: Iterable[FoodId]) -> None:
        """Drop facts for foods outside `food_ids`."""
        keep = set(food_ids)
        for food_id in list(self._facts):
            if food_id not in keep:
                del self._facts[food_id]
        for food_id in list(self._resolved):
            if food_id not in keep:
                del self._resolved[food_id]

    def clear(self) -> None:
        self._facts.clear()
        self._resolved.clear()

    def __len__(self) -> int:
        return sum(len(nutrients) for nutrients in self._facts.values())


@dataclass(frozen=True)
class _PendingFetch:
    generation: int
    food_ids: frozenset[FoodId]
    nutrient_ids: frozenset[NutrientId]
    task: "asyncio.Task[bool]"


@dataclass
class AmountResolver:
    """Keeps the AmountTable consistent with the current interest set.

    Each issued fetch takes the next generation number. A fetch applies
    its result only if its generation is still the latest when it
    completes, so a superseded request never overwrites newer state.
    """

    repository: AmountRepository
    table: AmountTable = field(default_factory=AmountTable)
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3
    last_error: AmountFetchError | None = None
    _generation: int = 0
    _pending: _PendingFetch | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def loading(self) -> bool:
        return self._pending is not None and not self._pending.task.done()

    async def recompute(self, interest: InterestSet) -> bool:
        """Resolve facts for `interest`.

        Returns True when the table reflects `interest` afterwards and False
        when a newer request superseded this one. Raises AmountFetchError
        when the current fetch fails; the previous table is kept.
        """
        if not interest.food_ids:
            self._supersede()
            self.table.clear()
            self.last_error = None
            return True
        self.table.retain_foods(interest.food_ids)
        if not interest.nutrient_ids:
            self._supersede()
            return True

        missing = self.table.missing_pairs(interest)
        if not missing:
            self._supersede()
            return True

        food_ids = frozenset(food_id for food_id, _ in missing)
        nutrient_ids = frozenset(nutrient_id for _, nutrient_id in missing)
        pending = self._pending
        if (
            pending is not None
            and not pending.task.done()
            and pending.food_ids == food_ids
            and pending.nutrient_ids == nutrient_ids
        ):
            return await asyncio.shield(pending.task)

        self._generation += 1
        generation = self._generation
        task = asyncio.ensure_future(self._run(generation, food_ids, nutrient_ids))
        self._pending = _PendingFetch(generation, food_ids, nutrient_ids, task)
        return await asyncio.shield(task)

    def _supersede(self) -> None:
        """Invalidate any outstanding fetch without issuing a new one."""
        if self._pending is not None:
            self._generation += 1
            self._pending = None

    async def _run(
        self,
        generation: int,
        food_ids: frozenset[FoodId],
        nutrient_ids: frozenset[NutrientId],
    ) -> bool:
        try:
            facts = await call_with_retry(
                lambda: self.repository.fetch_amounts(
                    set(food_ids), set(nutrient_ids)
                ),
                action=f"fetch_amounts:generation={generation}",
                attempts=self.retry_attempts,
                delay_seconds=self.retry_delay_seconds,
            )
        except Exception as exc:
            if generation != self._generation:
                _logger.info(
                    "Ignoring failure of superseded amount fetch generation=%s",
                    generation,
                )
                return False
            self._pending = None
            self.last_error = AmountFetchError(f"Failed to fetch amounts: {exc}")
            raise self.last_error from exc

        if generation != self._generation:
            _logger.info(
                "Discarding stale amount fetch generation=%s (current=%s)",
                generation,
                self._generation,
            )
            return False
        self._pending = None
        scoped = [
            fact
            for fact in facts
            if fact.food_id in food_ids and fact.nutrient_id in nutrient_ids
        ]
        self.table.apply(food_ids, nutrient_ids, scoped)
        self.last_error = None
        _logger.debug(
            "Applied amount fetch generation=%s foods=%s nutrients=%s facts=%s",
            generation,
            len(food_ids),
            len(nutrient_ids),
            len(scoped),
        )
        return True
