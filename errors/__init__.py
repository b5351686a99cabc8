"""Custom exception hierarchy for catalogue entity resolution."""

from errors.exceptions import (
    CatalogueStoreError,
    ImageGenerationFailed,
    MatchingUnavailable,
    NoCategoriesAvailable,
    ResolutionError,
)

__all__ = [
    "CatalogueStoreError",
    "ImageGenerationFailed",
    "MatchingUnavailable",
    "NoCategoriesAvailable",
    "ResolutionError",
]
