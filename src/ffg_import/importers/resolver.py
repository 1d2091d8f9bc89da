"""
Reference resolution against local entities and catalogs.

Lookups never raise on a miss: they return ``None`` and leave it to the
caller to decide whether the missing reference is fatal for the item being
built.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass

from ..models import IMPORT_ID_FLAG
from .base import CatalogService, StorageBackend
from .context import ImportContext

logger = logging.getLogger("ffg-import")


def entity_import_id(entity: dict) -> str | None:
    """Return the import id flag of an entity, if any."""
    flags = entity.get("flags") or {}
    return flags.get(IMPORT_ID_FLAG)


@dataclass
class CatalogHit:
    """A resolved reference and the catalog it came from.

    ``catalog_id`` is ``None`` for entities found among local entities.
    """

    entity: dict
    catalog_id: str | None = None


class ReferenceResolver:
    """Finds reference entities by import id or catalog-internal id.

    Catalog contents are cached on the import context the first time a
    catalog is visited. Lookups are expected to be awaited one at a time;
    two concurrent first visits to the same catalog would both fetch it.
    """

    def __init__(
        self,
        catalogs: CatalogService,
        storage: StorageBackend,
        context: ImportContext,
    ) -> None:
        self.catalogs = catalogs
        self.storage = storage
        self.context = context

    async def find_local_by_import_id(self, entity_type: str, import_id: str) -> dict | None:
        """Return the first local entity of ``entity_type`` carrying ``import_id``."""
        for entity in await self.storage.list_entities(entity_type):
            if entity_import_id(entity) == import_id:
                return entity
        return None

    async def find_by_import_id(
        self,
        entity_type: str,
        import_id: str,
        catalog_hint: str | None = None,
    ) -> dict | None:
        """Resolve a reference entity by import id.

        Local entities win over catalogs. Without a hint every catalog of
        the right type is searched in enumeration order and the first match
        wins.

        Returns:
            A deep copy of the entity, safe to mutate, or None.
        """
        hit = await self.locate_by_import_id(entity_type, import_id, catalog_hint)
        if hit is None:
            return None
        return hit.entity

    async def locate_by_import_id(
        self,
        entity_type: str,
        import_id: str,
        catalog_hint: str | None = None,
    ) -> CatalogHit | None:
        """Like ``find_by_import_id`` but also report the source catalog."""
        if not import_id:
            return None

        local = await self.find_local_by_import_id(entity_type, import_id)
        if local is not None:
            return CatalogHit(entity=copy.deepcopy(local))

        if catalog_hint:
            catalog_ids = [catalog_hint]
        else:
            catalog_ids = await self.catalogs.list_catalogs()

        for catalog_id in catalog_ids:
            entity = await self._search_catalog(catalog_id, entity_type, import_id)
            if entity is not None:
                return CatalogHit(entity=copy.deepcopy(entity), catalog_id=catalog_id)

        logger.debug(f"No {entity_type} found for import id {import_id}")
        return None

    async def find_by_id(self, entity_type: str, entity_id: str) -> dict | None:
        """Resolve a catalog entity by its catalog-internal id.

        Returns:
            A deep copy of the entity, or None.
        """
        if not entity_id:
            return None

        for catalog_id in await self.catalogs.list_catalogs():
            metadata = await self.catalogs.get_catalog_metadata(catalog_id)
            if metadata.entity_type != entity_type:
                continue

            index = await self.catalogs.get_catalog_index(catalog_id)
            if any(entry.internal_id == entity_id for entry in index):
                entity = await self.catalogs.get_catalog_entity(catalog_id, entity_id)
                if entity is not None:
                    return copy.deepcopy(entity)

        return None

    async def _search_catalog(self, catalog_id: str, entity_type: str, import_id: str) -> dict | None:
        if self.context.is_cached(catalog_id):
            logger.debug(f"Using cached content for {catalog_id}")
            return self.context.cached_entity(catalog_id, entity_type, import_id)

        metadata = await self.catalogs.get_catalog_metadata(catalog_id)
        if metadata.entity_type != entity_type:
            return None

        if metadata.locked:
            # locked catalogs are searched through their index every time
            for entry in await self.catalogs.get_catalog_index(catalog_id):
                if entry.import_id == import_id:
                    return await self.catalogs.get_catalog_entity(catalog_id, entry.internal_id)
            return None

        content = await self.catalogs.get_catalog_content(catalog_id)
        self.context.cache_catalog(catalog_id, entity_type, content, entity_import_id)
        return self.context.cached_entity(catalog_id, entity_type, import_id)
