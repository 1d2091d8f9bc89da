"""
Configuration model for the FFG character importer.
"""

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class ImporterConfig(BaseModel):
    """Settings shared by the import tools and the local collaborators.

    Values normally come from the environment (or a ``.env`` file loaded by
    the server entry point) through ``from_env``.
    """

    # Storage
    data_dir: Path = Field(
        default=Path("ffg_data"),
        description="Directory holding stored entities, catalog packs and uploaded assets"
    )
    packs_dir: Path | None = Field(
        default=None,
        description="Directory holding packs.json and the pack files; defaults to <data_dir>/packs"
    )

    # Host
    world_id: str = Field(
        default="world",
        min_length=1,
        description="World identifier used to build asset destination paths"
    )
    asset_source: str = Field(
        default="data",
        min_length=1,
        description="Asset storage root passed to the asset host"
    )

    # Diagnostics
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR"
    )

    @field_validator("world_id")
    @classmethod
    def validate_world_id(cls, v: str) -> str:
        """Reject world identifiers that would escape the world folder."""
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"world_id must be a single path segment, got '{v}'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{v}'")
        return level

    @property
    def resolved_packs_dir(self) -> Path:
        return self.packs_dir if self.packs_dir is not None else self.data_dir / "packs"

    @property
    def assets_dir(self) -> Path:
        return self.data_dir / "assets"

    @classmethod
    def from_env(cls) -> "ImporterConfig":
        """Build the configuration from ``FFG_IMPORT_*`` environment variables."""
        values: dict[str, str] = {}
        for field_name, variable in (
            ("data_dir", "FFG_IMPORT_DATA_DIR"),
            ("packs_dir", "FFG_IMPORT_PACKS_DIR"),
            ("world_id", "FFG_IMPORT_WORLD"),
            ("asset_source", "FFG_IMPORT_ASSET_SOURCE"),
            ("log_level", "FFG_IMPORT_LOG_LEVEL"),
        ):
            value = os.getenv(variable)
            if value:
                values[field_name] = value
        return cls(**values)
