"""Ordered list of diet entries."""

import math
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field, replace
from uuid import UUID, uuid4

from nutrition_platform.domain.catalog import FoodId
from nutrition_platform.domain.diet import DietEntry
from nutrition_platform.domain.errors import InvalidInputError, UnknownEntryError


def parse_grams(value: object) -> float | None:
    """Parse user input into a finite float, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        try:
            parsed = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return parsed if math.isfinite(parsed) else None


@dataclass
class DietLedger:
    """The diet entries, in insertion order."""

    food_exists: Callable[[FoodId], bool]
    _entries: list[DietEntry] = field(default_factory=list)

    def __iter__(self) -> Iterator[DietEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[DietEntry]:
        return list(self._entries)

    def add(self, food_id: FoodId | None, grams: object) -> DietEntry:
        """Create an entry; invalid input leaves the ledger untouched."""
        if not food_id:
            raise InvalidInputError("A food must be selected")
        if not self.food_exists(food_id):
            raise InvalidInputError(f"Unknown food: {food_id}")
        parsed = parse_grams(grams)
        if parsed is None or parsed <= 0:
            raise InvalidInputError(f"Grams must be a positive number, got {grams!r}")
        entry = DietEntry(id=uuid4(), food_id=food_id, grams=parsed)
        self._entries.append(entry)
        return entry

    def update_grams(self, entry_id: UUID, grams: object) -> DietEntry:
        """Set grams in place; unparsable input is held as NaN until fixed."""
        index = self._index(entry_id)
        parsed = parse_grams(grams)
        updated = replace(
            self._entries[index], grams=parsed if parsed is not None else math.nan
        )
        self._entries[index] = updated
        return updated

    def remove(self, entry_id: UUID) -> DietEntry:
        return self._entries.pop(self._index(entry_id))

    def clear(self) -> None:
        self._entries.clear()

    def get(self, entry_id: UUID) -> DietEntry:
        return self._entries[self._index(entry_id)]

    def food_ids(self) -> frozenset[FoodId]:
        return frozenset(entry.food_id for entry in self._entries)

    def _index(self, entry_id: UUID) -> int:
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return index
        raise UnknownEntryError(f"Unknown diet entry: {entry_id}")
