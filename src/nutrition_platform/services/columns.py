"""Visible nutrient columns."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from nutrition_platform.domain.catalog import NutrientId


@dataclass
class ColumnSelection:
    """Insertion-ordered set of visible nutrient ids."""

    _ids: dict[NutrientId, None] = field(default_factory=dict)

    @classmethod
    def of(cls, nutrient_ids: Iterable[NutrientId]) -> "ColumnSelection":
        return cls(dict.fromkeys(nutrient_ids))

    def toggle(self, nutrient_id: NutrientId) -> bool:
        """Add or remove a column and return whether it is now visible."""
        if nutrient_id in self._ids:
            del self._ids[nutrient_id]
            return False
        self._ids[nutrient_id] = None
        return True

    def replace(self, nutrient_ids: Iterable[NutrientId]) -> None:
        self._ids = dict.fromkeys(nutrient_ids)

    def ids(self) -> list[NutrientId]:
        return list(self._ids)

    def __contains__(self, nutrient_id: object) -> bool:
        return nutrient_id in self._ids

    def __iter__(self) -> Iterator[NutrientId]:
        return iter(list(self._ids))

    def __len__(self) -> int:
        return len(self._ids)
