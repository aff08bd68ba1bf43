"""Error taxonomy for the diet sheet engine."""


class NutritionPlatformError(Exception):
    """Base class for recoverable engine errors."""


class CatalogLoadError(NutritionPlatformError):
    """Nutrient or food catalog could not be fetched."""


class AmountFetchError(NutritionPlatformError):
    """A batched amount fetch failed; cached facts are still usable."""


class InvalidInputError(NutritionPlatformError, ValueError):
    """User input rejected before any state change."""


class UnknownEntryError(InvalidInputError):
    """No diet entry exists with the given id."""
