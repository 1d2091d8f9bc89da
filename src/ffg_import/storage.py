"""
JSON file storage for imported entities.

Each entity is one JSON document under ``<data_dir>/<type>/<id>.json``.
"""

import json
import logging
from pathlib import Path

from shortuuid import random

from .importers.base import StorageBackend

logger = logging.getLogger("ffg-import")


class JsonStorage(StorageBackend):
    """File-backed ``StorageBackend``."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    def _type_dir(self, entity_type: str) -> Path:
        return self.data_dir / entity_type.lower()

    async def list_entities(self, entity_type: str) -> list[dict]:
        type_dir = self._type_dir(entity_type)
        if not type_dir.is_dir():
            return []

        entities = []
        for entity_file in sorted(type_dir.glob("*.json")):
            try:
                with open(entity_file, "r", encoding="utf-8") as f:
                    entities.append(json.load(f))
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Skipping unreadable entity file {entity_file}: {e}")
        return entities

    async def create_entity(self, entity_type: str, record: dict) -> str:
        entity_id = random(length=16)
        self._write(entity_type, entity_id, {**record, "_id": entity_id})
        logger.debug(f"Created {entity_type} {entity_id}")
        return entity_id

    async def update_entity(self, entity_type: str, entity_id: str, record: dict) -> None:
        if not (self._type_dir(entity_type) / f"{entity_id}.json").exists():
            raise KeyError(f"No {entity_type} stored under id {entity_id}")
        self._write(entity_type, entity_id, {**record, "_id": entity_id})
        logger.debug(f"Updated {entity_type} {entity_id}")

    def _write(self, entity_type: str, entity_id: str, record: dict) -> None:
        type_dir = self._type_dir(entity_type)
        type_dir.mkdir(parents=True, exist_ok=True)
        with open(type_dir / f"{entity_id}.json", "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2)
