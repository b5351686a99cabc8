"""Link manager — idempotent style ↔ entity association plus usage tracking."""

from __future__ import annotations

import logging

from models.catalogue import EntityKind
from services.catalogue_store import CatalogueStore

logger = logging.getLogger(__name__)


class LinkManager:
    def __init__(self, store: CatalogueStore) -> None:
        self._store = store

    async def link(self, kind: EntityKind, entity_id: str, style_id: str) -> bool:
        """Link *entity_id* to *style_id* once; always bump the usage counter.

        Returns ``True`` if a new link row was created.  The usage counter is
        incremented even when the link already existed, so repeated runs over
        the same style keep usage monotonic.
        """
        created = False
        if await self._store.find_link(kind, style_id, entity_id) is None:
            await self._store.create_link(kind, style_id, entity_id)
            created = True
            logger.debug("Linked %s %s to style %s", kind.value, entity_id, style_id)

        await self._store.increment_usage(kind, entity_id)
        return created
