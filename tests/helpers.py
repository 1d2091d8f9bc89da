"""
In-memory stand-ins for the host collaborators used across the test suite.
"""

from __future__ import annotations

import copy
from pathlib import Path

from ffg_import.importers.base import (
    AssetHost,
    CatalogIndexEntry,
    CatalogMetadata,
    CatalogService,
    ProgressReporter,
    StorageBackend,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "oggdude"

# 1x1 transparent PNG
PNG_PIXEL = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d00000000"
    "49454e44ae426082"
)


class FakeStorage(StorageBackend):
    """In-memory storage; entities are copied in and out like a real host."""

    def __init__(self, fail_writes: bool = False):
        self.entities: dict[str, dict[str, dict]] = {}
        self.fail_writes = fail_writes
        self.created = 0
        self.updated = 0

    def add(self, entity_type: str, entity: dict) -> None:
        self.entities.setdefault(entity_type, {})[entity["_id"]] = copy.deepcopy(entity)

    async def list_entities(self, entity_type: str) -> list[dict]:
        return [copy.deepcopy(e) for e in self.entities.get(entity_type, {}).values()]

    async def create_entity(self, entity_type: str, record: dict) -> str:
        if self.fail_writes:
            raise RuntimeError("storage is read-only")
        self.created += 1
        entity_id = f"{entity_type.lower()}{self.created}"
        self.add(entity_type, {**record, "_id": entity_id})
        return entity_id

    async def update_entity(self, entity_type: str, entity_id: str, record: dict) -> None:
        if self.fail_writes:
            raise RuntimeError("storage is read-only")
        self.updated += 1
        self.add(entity_type, {**record, "_id": entity_id})


class FakeCatalogService(CatalogService):
    """In-memory catalogs that count how often each one is read."""

    def __init__(self):
        self.catalogs: dict[str, tuple[CatalogMetadata, list[dict]]] = {}
        self.content_calls: dict[str, int] = {}
        self.index_calls: dict[str, int] = {}

    def add_catalog(self, catalog_id: str, entity_type: str, entities: list[dict], locked: bool = False) -> None:
        self.catalogs[catalog_id] = (
            CatalogMetadata(entity_type=entity_type, locked=locked, label=catalog_id),
            entities,
        )

    async def list_catalogs(self) -> list[str]:
        return list(self.catalogs)

    async def get_catalog_metadata(self, catalog_id: str) -> CatalogMetadata:
        return self.catalogs[catalog_id][0]

    async def get_catalog_index(self, catalog_id: str) -> list[CatalogIndexEntry]:
        self.index_calls[catalog_id] = self.index_calls.get(catalog_id, 0) + 1
        return [
            CatalogIndexEntry(
                internal_id=entity["_id"],
                import_id=(entity.get("flags") or {}).get("ffgimportid"),
                name=entity.get("name", ""),
            )
            for entity in self.catalogs[catalog_id][1]
        ]

    async def get_catalog_entity(self, catalog_id: str, internal_id: str) -> dict | None:
        for entity in self.catalogs[catalog_id][1]:
            if entity["_id"] == internal_id:
                return copy.deepcopy(entity)
        return None

    async def get_catalog_content(self, catalog_id: str) -> list[dict]:
        self.content_calls[catalog_id] = self.content_calls.get(catalog_id, 0) + 1
        return copy.deepcopy(self.catalogs[catalog_id][1])


class FakeAssetHost(AssetHost):
    """Asset host that refuses to recreate directories, like most real hosts."""

    def __init__(self, fail_uploads: bool = False):
        self.directories: set[tuple[str, str]] = set()
        self.uploads: dict[tuple[str, str, str], tuple[bytes, str]] = {}
        self.fail_uploads = fail_uploads
        self.upload_calls = 0

    async def ensure_directory(self, root: str, path: str) -> None:
        if (root, path) in self.directories:
            raise FileExistsError(f"{root}/{path} already exists")
        self.directories.add((root, path))

    async def upload(self, root: str, path: str, filename: str, data: bytes, mime_type: str) -> None:
        self.upload_calls += 1
        if self.fail_uploads:
            raise ConnectionError("upload rejected")
        self.uploads[(root, path, filename)] = (data, mime_type)


class RecordingProgress(ProgressReporter):
    def __init__(self):
        self.updates: list[int] = []
        self.errors: list[str] = []

    def update(self, percent: int) -> None:
        self.updates.append(percent)

    def error(self, message: str) -> None:
        self.errors.append(message)


def make_entity(internal_id: str, import_id: str | None, name: str, entity_type: str, data: dict | None = None) -> dict:
    """Build a reference entity document."""
    entity = {"_id": internal_id, "name": name, "type": entity_type, "flags": {}, "data": data or {}}
    if import_id is not None:
        entity["flags"]["ffgimportid"] = import_id
    return entity

