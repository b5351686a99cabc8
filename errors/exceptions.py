"""Domain-specific exceptions for catalogue entity resolution.

These let the batch orchestrator tell per-item failures (recorded in the
batch error list) apart from setup failures that abort the whole call.
"""

from __future__ import annotations


class ResolutionError(Exception):
    """Base class for failures while resolving a reference."""

    def __init__(self, message: str, reference: str = "") -> None:
        self.reference = reference
        super().__init__(message)


class MatchingUnavailable(ResolutionError):
    """The semantic matcher could not be reached or returned unusable output."""

    def __init__(self, reference: str, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Semantic matching unavailable for '{reference}': {detail}", reference)


class NoCategoriesAvailable(ResolutionError):
    """A new entity cannot be created because the catalogue has no categories."""

    def __init__(self, reference: str = "") -> None:
        super().__init__("No material categories exist in the catalogue", reference)


class ImageGenerationFailed(ResolutionError):
    """Image generation failed; callers always recover by skipping the image."""

    def __init__(self, name: str, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Image generation failed for '{name}': {detail}", name)


class CatalogueStoreError(Exception):
    """The persistent catalogue store is unreachable or rejected an operation.

    Raised before fan-out (context load) this aborts the batch; raised inside
    an item it is recorded as that item's error.
    """

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(f"Catalogue store '{operation}' failed: {message}")
