"""
Reference catalogs stored as JSON-lines pack files.

A packs directory holds a ``packs.json`` manifest and one pack file per
catalog, each line of which is one entity document:

    packs/
    ├── packs.json
    ├── oggdude-species.db
    └── oggdude-talents.db

Manifest entries look like::

    {"name": "oggdude-species", "entity": "Item", "locked": false, "path": "oggdude-species.db"}
"""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .importers.base import CatalogIndexEntry, CatalogMetadata, CatalogService
from .importers.resolver import entity_import_id

logger = logging.getLogger("ffg-import")

MANIFEST_FILE = "packs.json"


class PackManifestEntry(BaseModel):
    """One catalog declared in ``packs.json``."""
    name: str = Field(min_length=1, description="Catalog id")
    entity: str = Field(default="Item", description="Type of entity stored in the pack")
    locked: bool = Field(default=False, description="Locked packs are never cached")
    path: str = Field(description="Pack file, relative to the packs directory")
    label: str = Field(default="", description="Human readable catalog name")


class PackCatalogService(CatalogService):
    """``CatalogService`` reading packs from a local directory.

    The manifest is read once; pack files are read on every request so
    edits made between imports are picked up.
    """

    def __init__(self, packs_dir: str | Path) -> None:
        self.packs_dir = Path(packs_dir)
        self._manifest: dict[str, PackManifestEntry] | None = None

    def _load_manifest(self) -> dict[str, PackManifestEntry]:
        if self._manifest is not None:
            return self._manifest

        manifest_file = self.packs_dir / MANIFEST_FILE
        if not manifest_file.exists():
            logger.warning(f"No pack manifest found at {manifest_file}")
            return {}

        try:
            with open(manifest_file, "r", encoding="utf-8") as f:
                raw_entries = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid pack manifest {manifest_file}: {e}") from None
        if not isinstance(raw_entries, list):
            raise ValueError(f"Invalid pack manifest {manifest_file}: expected a list of packs")

        manifest: dict[str, PackManifestEntry] = {}
        for raw in raw_entries:
            try:
                entry = PackManifestEntry.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping invalid pack manifest entry {raw!r}: {e}")
                continue
            if entry.name in manifest:
                logger.warning(f"Duplicate pack name {entry.name} in manifest, keeping the first one")
                continue
            manifest[entry.name] = entry

        logger.debug(f"Loaded pack manifest with {len(manifest)} packs")
        self._manifest = manifest
        return manifest

    def _entry(self, catalog_id: str) -> PackManifestEntry:
        try:
            return self._load_manifest()[catalog_id]
        except KeyError:
            raise KeyError(f"Unknown catalog: {catalog_id}") from None

    def _read_pack(self, catalog_id: str) -> list[dict]:
        pack_file = self.packs_dir / self._entry(catalog_id).path
        entities = []
        with open(pack_file, "r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entities.append(json.loads(line))
                except json.JSONDecodeError as e:
                    logger.warning(f"Skipping invalid line {line_number} of {pack_file}: {e}")
        return entities

    async def list_catalogs(self) -> list[str]:
        return list(self._load_manifest())

    async def get_catalog_metadata(self, catalog_id: str) -> CatalogMetadata:
        entry = self._entry(catalog_id)
        return CatalogMetadata(entity_type=entry.entity, locked=entry.locked, label=entry.label or entry.name)

    async def get_catalog_index(self, catalog_id: str) -> list[CatalogIndexEntry]:
        return [
            CatalogIndexEntry(
                internal_id=entity["_id"],
                import_id=entity_import_id(entity),
                name=entity.get("name", ""),
            )
            for entity in self._read_pack(catalog_id)
            if entity.get("_id")
        ]

    async def get_catalog_entity(self, catalog_id: str, internal_id: str) -> dict | None:
        for entity in self._read_pack(catalog_id):
            if entity.get("_id") == internal_id:
                return entity
        return None

    async def get_catalog_content(self, catalog_id: str) -> list[dict]:
        return self._read_pack(catalog_id)
