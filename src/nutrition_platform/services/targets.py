"""User-editable nutrient targets and their evaluation."""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Literal, Protocol

from pydantic import BaseModel, FiniteFloat, ValidationError

from nutrition_platform.domain.catalog import Nutrient, NutrientId
from nutrition_platform.domain.diet import Target, TargetStatus
from nutrition_platform.domain.errors import InvalidInputError

TARGETS_STORAGE_KEY = "nutrition_platform.targets.v1"
TARGETS_VERSION = 1
TARGET_FIELDS = ("goal", "max")

_logger = logging.getLogger(__name__)


class TargetRepository(Protocol):
    """Durable key-value storage for the target map."""

    def load_targets(self) -> object | None:
        """Return the persisted document, or None when nothing is stored."""

    def save_targets(self, payload: dict[str, object]) -> None:
        """Persist the target document."""


class PersistedTarget(BaseModel):
    """Stored goal/max pair."""

    goal: FiniteFloat | None = None
    max: FiniteFloat | None = None


class PersistedTargets(BaseModel):
    """Versioned target document."""

    version: Literal[1]
    targets: dict[str, PersistedTarget]


def parse_target_value(value: object) -> float | None:
    """Parse goal/max input; anything unparsable or non-finite is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        try:
            parsed = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = float(text)
        except ValueError:
            return None
    else:
        return None
    return parsed if math.isfinite(parsed) else None


def seed_targets(nutrients: Iterable[Nutrient]) -> dict[NutrientId, Target]:
    """Build the default target map from nutrient metadata."""
    return {
        nutrient.id: Target(
            goal=parse_target_value(nutrient.default_goal),
            max=parse_target_value(nutrient.default_max),
        )
        for nutrient in nutrients
    }


def is_over_max(target: Target | None, total: float) -> bool:
    """Return True only when a max is set and the total strictly exceeds it."""
    if target is None or target.max is None:
        return False
    return total > target.max


def evaluate_target(target: Target | None, total: float) -> TargetStatus:
    goal_reached = None
    if target is not None and target.goal is not None:
        goal_reached = total >= target.goal
    return TargetStatus(over_max=is_over_max(target, total), goal_reached=goal_reached)


@dataclass
class TargetStore:
    """Target map seeded from nutrient defaults, with persisted overrides."""

    repository: TargetRepository
    _defaults: dict[NutrientId, Target] = field(default_factory=dict)
    _targets: dict[NutrientId, Target] = field(default_factory=dict)
    _seeded: bool = False

    def seed(self, nutrients: Iterable[Nutrient]) -> None:
        """Install defaults and rehydrate any valid persisted map.

        Re-seeding with the same nutrient ids only refreshes the defaults;
        the in-memory targets stay authoritative.
        """
        defaults = seed_targets(nutrients)
        if self._seeded and defaults.keys() == self._defaults.keys():
            self._defaults = defaults
            return
        self._defaults = defaults
        self._targets = dict(defaults)
        self._seeded = True
        self.rehydrate()

    def rehydrate(self) -> bool:
        """Overlay the persisted map; a malformed document keeps defaults."""
        try:
            raw = self.repository.load_targets()
        except OSError:
            _logger.warning("Failed to read persisted targets", exc_info=True)
            return False
        if raw is None:
            return False
        try:
            document = PersistedTargets.model_validate(raw)
        except ValidationError as exc:
            _logger.warning(
                "Ignoring malformed persisted targets (%s errors)", exc.error_count()
            )
            return False
        for nutrient_id, stored in document.targets.items():
            if nutrient_id in self._defaults:
                self._targets[nutrient_id] = Target(goal=stored.goal, max=stored.max)
        return True

    def get(self, nutrient_id: NutrientId) -> Target:
        return self._targets.get(nutrient_id, Target())

    def all(self) -> dict[NutrientId, Target]:
        return dict(self._targets)

    def set_target(
        self, nutrient_id: NutrientId, field_name: str, value: object
    ) -> Target:
        """Set goal or max for one nutrient, leaving the other untouched."""
        if field_name not in TARGET_FIELDS:
            raise InvalidInputError(f"Unknown target field: {field_name}")
        if nutrient_id not in self._defaults:
            raise InvalidInputError(f"Unknown nutrient: {nutrient_id}")
        updated = replace(
            self.get(nutrient_id), **{field_name: parse_target_value(value)}
        )
        self._targets[nutrient_id] = updated
        self._persist()
        return updated

    def reset_to_defaults(self) -> dict[NutrientId, Target]:
        """Discard every override and re-seed from nutrient defaults."""
        self._targets = dict(self._defaults)
        self._persist()
        return self.all()

    def is_over_max(self, nutrient_id: NutrientId, total: float) -> bool:
        return is_over_max(self._targets.get(nutrient_id), total)

    def evaluate(
        self, totals: Mapping[NutrientId, float]
    ) -> dict[NutrientId, TargetStatus]:
        """Compare full-precision totals against the targets."""
        return {
            nutrient_id: evaluate_target(self._targets.get(nutrient_id), total)
            for nutrient_id, total in totals.items()
        }

    def _persist(self) -> None:
        payload: dict[str, object] = {
            "version": TARGETS_VERSION,
            "targets": {
                nutrient_id: {"goal": target.goal, "max": target.max}
                for nutrient_id, target in self._targets.items()
            },
        }
        try:
            self.repository.save_targets(payload)
        except OSError:
            _logger.warning("Failed to persist targets", exc_info=True)
