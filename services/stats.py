"""Fold per-item outcomes into a :class:`BatchResult`."""

from __future__ import annotations

from models.resolution import BatchError, BatchResult, BatchStats, ItemOutcome


def aggregate(outcomes: list[ItemOutcome]) -> BatchResult:
    """Build the batch result; ``entity_ids`` keep the order of *outcomes*.

    ``success`` is lenient: any resolved id makes the batch successful, even
    when most items failed.  ``all_failed`` is the strict counterpart.
    """
    stats = BatchStats()
    entity_ids: list[str] = []
    errors: list[BatchError] = []

    for outcome in outcomes:
        if outcome.entity_id:
            entity_ids.append(outcome.entity_id)
            if outcome.matched:
                stats.matched += 1
            if outcome.created:
                stats.created += 1
            if outcome.image_generated:
                stats.images += 1
        if outcome.error:
            stats.errors += 1
            errors.append(BatchError(reference=outcome.reference, error=outcome.error))

    if not outcomes:
        return BatchResult(stats=stats)

    return BatchResult(
        success=stats.errors < len(entity_ids) or len(entity_ids) > 0,
        all_failed=not entity_ids and stats.errors > 0,
        entity_ids=entity_ids,
        stats=stats,
        errors=errors,
    )
