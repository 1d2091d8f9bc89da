"""
Base models, collaborator interfaces and exceptions for the character import system.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from ..models import CharacterRecord

logger = logging.getLogger("ffg-import")


class ImportError(Exception):
    """Raised when a character import fails.

    Provides a user-facing message explaining what went wrong
    and, where possible, how to fix it.
    """


class ParseError(ImportError):
    """The export document is not well-formed or has an unexpected shape."""


class ResolutionMiss(ImportError):
    """A reference lookup found nothing."""


class AssetError(ImportError):
    """Directory creation or upload of a binary asset failed."""


class CommitError(ImportError):
    """The storage collaborator rejected the character record."""


# ----------------------------------------------------------------------
# Collaborator interfaces
# ----------------------------------------------------------------------

@dataclass
class CatalogMetadata:
    """Metadata describing a catalog.

    Attributes:
        entity_type: Type of entity stored in the catalog (e.g. "Item").
        locked: Locked catalogs are searchable but never cached.
        label: Human readable catalog name.
    """

    entity_type: str
    locked: bool = False
    label: str = ""


@dataclass
class CatalogIndexEntry:
    """One row of a catalog index."""

    internal_id: str
    import_id: str | None = None
    name: str = ""


class StorageBackend(ABC):
    """Persistent entity storage of the host.

    Entities are plain dicts shaped like host documents
    (``_id``, ``name``, ``type``, ``flags``, ``data``...).
    """

    @abstractmethod
    async def list_entities(self, entity_type: str) -> list[dict]:
        """Return every local entity of the given type."""

    @abstractmethod
    async def create_entity(self, entity_type: str, record: dict) -> str:
        """Create a new entity and return its storage id."""

    @abstractmethod
    async def update_entity(self, entity_type: str, entity_id: str, record: dict) -> None:
        """Replace the entity stored under ``entity_id``."""


class CatalogService(ABC):
    """Library of pre-built reference entities grouped in catalogs."""

    @abstractmethod
    async def list_catalogs(self) -> list[str]:
        """Return catalog ids in enumeration order."""

    @abstractmethod
    async def get_catalog_metadata(self, catalog_id: str) -> CatalogMetadata:
        """Return the metadata of a catalog."""

    @abstractmethod
    async def get_catalog_index(self, catalog_id: str) -> list[CatalogIndexEntry]:
        """Return the lightweight index of a catalog."""

    @abstractmethod
    async def get_catalog_entity(self, catalog_id: str, internal_id: str) -> dict | None:
        """Materialize one entity of a catalog."""

    async def get_catalog_content(self, catalog_id: str) -> list[dict]:
        """Materialize every entity of a catalog.

        The default implementation walks the index; services that can load
        a whole catalog in one go should override it.
        """
        content = []
        for entry in await self.get_catalog_index(catalog_id):
            entity = await self.get_catalog_entity(catalog_id, entry.internal_id)
            if entity is not None:
                content.append(entity)
        return content


class AssetHost(ABC):
    """Binary asset hosting of the host."""

    @abstractmethod
    async def ensure_directory(self, root: str, path: str) -> None:
        """Create one directory; may raise if it already exists."""

    @abstractmethod
    async def upload(self, root: str, path: str, filename: str, data: bytes, mime_type: str) -> None:
        """Store ``data`` as ``path/filename``."""


class ProgressReporter:
    """Receives import progress and fatal error notifications."""

    def update(self, percent: int) -> None:
        raise NotImplementedError

    def error(self, message: str) -> None:
        raise NotImplementedError


class LoggingProgressReporter(ProgressReporter):
    """Progress reporter that only writes to the log."""

    def update(self, percent: int) -> None:
        logger.debug(f"Import progress: {percent}%")

    def error(self, message: str) -> None:
        logger.error(message)


# ----------------------------------------------------------------------
# Results and reports
# ----------------------------------------------------------------------

class ImportWarning(BaseModel):
    """A warning generated during import."""

    phase: str = Field(description="Import phase that produced the warning")
    message: str = Field(description="Human-readable warning message")


class ImportReport(BaseModel):
    """Structured import report with status, imported phases and warnings."""

    status: str = Field(description='Import status: "success", "success_with_warnings", or "failed"')
    character_name: str = Field(description="Name of the imported character")
    import_id: str = Field(default="", description="Stable import id of the character")
    action: str = Field(default="", description='"created" or "updated"')
    completed_phases: list[str] = Field(default_factory=list, description="Phases that ran to completion")
    item_counts: dict[str, int] = Field(default_factory=dict, description="Imported items by item type")
    warnings: list[ImportWarning] = Field(
        default_factory=list,
        description="Non-fatal issues encountered during import",
    )

    def format(self) -> str:
        """Format the report as a readable text block.

        Returns:
            Multi-line formatted string suitable for an MCP tool response.
        """
        lines: list[str] = []

        lines.append(f"OggDude Import Report - {self.character_name}")
        status_display = self.status.upper().replace("_", " ")
        lines.append(f"Status: {status_display}")
        if self.action:
            lines.append(f"Record: {self.action} ({self.import_id})")
        lines.append("")

        if self.completed_phases:
            lines.append(f"Completed phases ({len(self.completed_phases)}): {', '.join(self.completed_phases)}")
        if self.item_counts:
            counts = ", ".join(f"{count} {item_type}" for item_type, count in sorted(self.item_counts.items()))
            lines.append(f"Items: {counts}")
        lines.append("")

        if self.warnings:
            lines.append(f"Warnings ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  - [{w.phase}] {w.message}")
            lines.append("")

        return "\n".join(lines).rstrip()


class ImportResult(BaseModel):
    """Result of a character import operation."""

    record: CharacterRecord = Field(description="The assembled character record")
    entity_id: str | None = Field(default=None, description="Storage id of the committed record")
    created: bool = Field(default=False, description="True when a new record was created")
    completed_phases: list[str] = Field(default_factory=list, description="Phases that ran to completion")
    warnings: list[ImportWarning] = Field(
        default_factory=list,
        description="Non-fatal issues encountered during import (missing references, upload failures, etc.)",
    )

    def build_report(self) -> ImportReport:
        """Build a structured ImportReport from this ImportResult."""
        counts: dict[str, Any] = {}
        for item in self.record.items:
            item_type = item.get("type", "unknown")
            counts[item_type] = counts.get(item_type, 0) + 1

        if self.entity_id is None:
            status = "failed"
        elif self.warnings:
            status = "success_with_warnings"
        else:
            status = "success"

        return ImportReport(
            status=status,
            character_name=self.record.name,
            import_id=self.record.import_id,
            action="" if self.entity_id is None else ("created" if self.created else "updated"),
            completed_phases=list(self.completed_phases),
            item_counts=counts,
            warnings=list(self.warnings),
        )
