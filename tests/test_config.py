"""Tests for importer configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from ffg_import.config import ImporterConfig


class TestImporterConfig:
    def test_defaults(self):
        config = ImporterConfig()

        assert config.world_id == "world"
        assert config.asset_source == "data"
        assert config.log_level == "INFO"
        assert config.resolved_packs_dir == Path("ffg_data") / "packs"
        assert config.assets_dir == Path("ffg_data") / "assets"

    def test_explicit_packs_dir(self, tmp_path):
        config = ImporterConfig(data_dir=tmp_path, packs_dir=tmp_path / "compendium")

        assert config.resolved_packs_dir == tmp_path / "compendium"

    def test_log_level_normalized(self):
        assert ImporterConfig(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            ImporterConfig(log_level="LOUD")

    @pytest.mark.parametrize("world_id", ["", "a/b", "..", "a\\b"])
    def test_invalid_world(self, world_id):
        with pytest.raises(ValidationError):
            ImporterConfig(world_id=world_id)


class TestFromEnv:
    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FFG_IMPORT_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("FFG_IMPORT_WORLD", "outer-rim")
        monkeypatch.setenv("FFG_IMPORT_ASSET_SOURCE", "s3")
        monkeypatch.setenv("FFG_IMPORT_PACKS_DIR", str(tmp_path / "packs-custom"))
        monkeypatch.setenv("FFG_IMPORT_LOG_LEVEL", "warning")

        config = ImporterConfig.from_env()

        assert config.data_dir == tmp_path
        assert config.world_id == "outer-rim"
        assert config.asset_source == "s3"
        assert config.resolved_packs_dir == tmp_path / "packs-custom"
        assert config.log_level == "WARNING"

    def test_unset_and_empty_use_defaults(self, monkeypatch):
        for variable in (
            "FFG_IMPORT_DATA_DIR", "FFG_IMPORT_PACKS_DIR", "FFG_IMPORT_ASSET_SOURCE", "FFG_IMPORT_LOG_LEVEL",
        ):
            monkeypatch.delenv(variable, raising=False)
        monkeypatch.setenv("FFG_IMPORT_WORLD", "")

        assert ImporterConfig.from_env() == ImporterConfig()
