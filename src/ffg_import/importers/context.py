"""
Import-scoped state shared by the resolver, the asset importer and the mapper.

One ``ImportContext`` is created per import run and closed when the run ends,
whether it succeeded or not, so nothing cached during one import can leak
into the next one.
"""

from __future__ import annotations

import logging
from typing import Any

from .base import ImportWarning
from .oggdude.schema import SKILLS

logger = logging.getLogger("ffg-import")


class ImportContext:
    """Per-import arena holding caches, dedup sets and key counters.

    Attributes:
        cache: catalog id → import id → reference entity. Only unlocked
            catalogs are stored here.
        stored_assets: Destination paths already uploaded during this import.
        skills: Skill key → display name table used by the modifier builder.
        warnings: Non-fatal issues collected during the import.
    """

    def __init__(self, skills: dict[str, str] | None = None) -> None:
        self.cache: dict[str, dict[str, dict]] = {}
        self.cache_types: dict[str, str] = {}
        self.stored_assets: set[str] = set()
        self.skills: dict[str, str] = dict(skills or SKILLS)
        self.warnings: list[ImportWarning] = []
        self._key_counters: dict[int, int] = {}
        self._owners: list[Any] = []
        self.closed = False

    def __enter__(self) -> "ImportContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Catalog cache
    # ------------------------------------------------------------------

    def is_cached(self, catalog_id: str) -> bool:
        return catalog_id in self.cache

    def cache_catalog(self, catalog_id: str, entity_type: str, content: list[dict], import_id_of) -> None:
        """Index a catalog's content by import id.

        Entities without an import id are not indexed. When two entities of
        the same catalog share an import id, the first one is kept.
        """
        indexed: dict[str, dict] = {}
        for entity in content:
            import_id = import_id_of(entity)
            if import_id and import_id not in indexed:
                indexed[import_id] = entity
        self.cache[catalog_id] = indexed
        self.cache_types[catalog_id] = entity_type
        logger.debug(f"Caching catalog content {catalog_id} ({len(indexed)} entities)")

    def cached_entity(self, catalog_id: str, entity_type: str, import_id: str) -> dict | None:
        if self.cache_types.get(catalog_id) != entity_type:
            return None
        return self.cache.get(catalog_id, {}).get(import_id)

    # ------------------------------------------------------------------
    # Synthetic attribute keys
    # ------------------------------------------------------------------

    def next_attribute_key(self, attributes: dict, prefix: str = "attr") -> str:
        """Allocate a fresh key for ``attributes``.

        The counter is owned by the mapping being built: it starts after the
        number of entries the mapping had when first seen and only ever goes
        up, skipping keys that are already taken.
        """
        owner = id(attributes)
        if owner not in self._key_counters:
            self._key_counters[owner] = len(attributes)
            # keep the mapping alive so its id cannot be reused mid-import
            self._owners.append(attributes)

        counter = self._key_counters[owner]
        while True:
            counter += 1
            key = f"{prefix}{counter}"
            if key not in attributes:
                break
        self._key_counters[owner] = counter
        return key

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def warn(self, phase: str, message: str) -> None:
        """Record a non-fatal issue and write it to the diagnostic log."""
        logger.warning(message)
        self.warnings.append(ImportWarning(phase=phase, message=message))

    def error(self, phase: str, message: str) -> None:
        """Record a failed phase or entry; the import carries on."""
        logger.error(message)
        self.warnings.append(ImportWarning(phase=phase, message=message))

    def close(self) -> None:
        """Drop every import-scoped structure."""
        self.cache.clear()
        self.cache_types.clear()
        self.stored_assets.clear()
        self._key_counters.clear()
        self._owners.clear()
        self.closed = True
