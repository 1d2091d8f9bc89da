"""
FFG Import MCP Server
Imports OggDude character generator exports as FFG character records.
"""

import logging
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

from .assets import DirectoryAssetHost
from .catalogs import PackCatalogService
from .config import ImporterConfig
from .importers import CharacterImporter, ImportError
from .storage import JsonStorage

logger = logging.getLogger("ffg-import")

env_loaded = load_dotenv()
config = ImporterConfig.from_env()

logging.basicConfig(
    level=config.log_level,
    )

if not env_loaded:
    logger.warning("❌ .env file invalid or not found! Using default settings and environment variables only.")

data_path = config.data_dir.resolve()
logger.debug(f"📂 Data path: {data_path}")

# Initialize collaborators and FastMCP server
storage = JsonStorage(data_path / "entities")
catalogs = PackCatalogService(config.resolved_packs_dir)
asset_host = DirectoryAssetHost(config.assets_dir)
logger.debug("✅ Storage, catalogs and asset host initialized")

mcp = FastMCP(
    name="ffg-import"
)


@mcp.tool
async def import_oggdude_character(
    file_path: Annotated[str, Field(description="Path to an OggDude character generator XML export")],
) -> str:
    """Import an OggDude character export as an FFG character.

    Species, career, specializations, talents, force powers and equipment are
    resolved against the configured reference packs. Importing the same
    character again updates the existing record instead of creating a copy.
    """
    if not Path(file_path).exists():
        return f"❌ File not found: {file_path}"

    importer = CharacterImporter(storage, catalogs, asset_host, config)
    try:
        result = await importer.import_file(file_path)
    except ImportError as e:
        return f"❌ Import failed: {e}"

    return result.build_report().format()


@mcp.tool
async def list_reference_catalogs() -> str:
    """List the reference packs characters are resolved against, in search order."""
    try:
        catalog_ids = await catalogs.list_catalogs()
    except ValueError as e:
        return f"❌ {e}"

    if not catalog_ids:
        return f"❌ No reference packs found in {catalogs.packs_dir}!"

    lines = [f"📚 Reference packs ({len(catalog_ids)}):"]
    for catalog_id in catalog_ids:
        metadata = await catalogs.get_catalog_metadata(catalog_id)
        lock = " 🔒" if metadata.locked else ""
        lines.append(f"  - {catalog_id} [{metadata.entity_type}] {metadata.label}{lock}")
    return "\n".join(lines)


logger.debug("✅ All tools successfully registered. FFG import server running!")

def main() -> None:
    """Main entry point for the FFG Import MCP Server."""
    mcp.run()


if __name__ == "__main__":
    main()
