"""
Relocate binary assets (portraits, item images) onto the asset host.
"""

from __future__ import annotations

import logging
import posixpath
import zipfile

from .base import AssetError, AssetHost
from .context import ImportContext
from .oggdude.schema import PACK_IMAGE_DIR

logger = logging.getLogger("ffg-import.assets")

# First four bytes, as lowercase hex → MIME type
MIME_SIGNATURES: dict[str, str] = {
    "89504e47": "image/png",
    "47494638": "image/gif",
    "ffd8ffe0": "image/jpeg",
    "ffd8ffe1": "image/jpeg",
    "ffd8ffe2": "image/jpeg",
    "ffd8ffe3": "image/jpeg",
    "ffd8ffe8": "image/jpeg",
    "52494646": "image/webp",
    "25504446": "application/pdf",
}


def sniff_mime_type(data: bytes) -> str:
    """Classify ``data`` by its magic number; ``""`` when unknown."""
    signature = data[:4].hex()
    mime_type = MIME_SIGNATURES.get(signature, "")
    if not mime_type:
        logger.debug(f"Unrecognized file signature {signature!r}")
    return mime_type


def find_image_member(archive: zipfile.ZipFile, entity_type: str, item_type: str, key: str) -> str | None:
    """Return the archive member holding the image of an exported item.

    Images are stored as ``<type>Images/<itemtype><key>.<ext>``.
    """
    wanted = f"{entity_type}Images/{item_type}{key}"
    for name in archive.namelist():
        if wanted in name:
            return name
    return None


class AssetImporter:
    """Uploads binary assets through an ``AssetHost``.

    Destinations already stored during the current import are not uploaded
    again; the dedup set lives on the import context.
    """

    def __init__(self, host: AssetHost, context: ImportContext, source: str = "data", world: str = "world") -> None:
        self.host = host
        self.context = context
        self.source = source
        self.world = world

    async def verify_path(self, path: str) -> bool:
        """Make sure every segment of ``path`` exists on the host.

        Segments are created in order. A segment the host refuses to create
        (typically because it already exists) is logged and skipped.

        Returns:
            True once every segment has been attempted.
        """
        current = ""
        for segment in (segment for segment in path.split("/") if segment):
            current = f"{current}/{segment}" if current else segment
            try:
                await self.host.ensure_directory(self.source, current)
            except Exception as e:
                logger.debug(f"Error verifying path {self.source}, {current}: {e}")

        return True

    async def store_bytes(self, directory: str, filename: str, data: bytes, mime_type: str | None = None) -> str | None:
        """Upload ``data`` as ``directory/filename``.

        Returns:
            The stored path, or None if the upload failed.
        """
        destination = f"{directory}/{filename}"
        if destination in self.context.stored_assets:
            logger.debug(f"Asset {destination} already stored during this import")
            return destination

        try:
            await self.verify_path(directory)
            if mime_type is None:
                mime_type = sniff_mime_type(data)
            try:
                await self.host.upload(self.source, directory, filename, data, mime_type)
            except Exception as e:
                raise AssetError(f"Error uploading file {filename} to {directory}: {e}") from e
        except AssetError as e:
            logger.error(str(e))
            return None

        self.context.stored_assets.add(destination)
        return destination

    async def extract_and_store(self, path_in_archive: str, archive: zipfile.ZipFile, pack_name: str) -> str | None:
        """Copy an image out of an export archive into the pack image folder.

        Args:
            path_in_archive: Member name inside the archive.
            archive: Opened export archive.
            pack_name: Catalog the image belongs to.

        Returns:
            The stored path, or None if nothing could be stored.
        """
        if not path_in_archive:
            return None

        directory = PACK_IMAGE_DIR.format(world=self.world, pack=pack_name)
        filename = posixpath.basename(path_in_archive.replace("\\", "/"))
        destination = f"{directory}/{filename}"
        if destination in self.context.stored_assets:
            return destination

        try:
            data = archive.read(path_in_archive)
        except (KeyError, zipfile.BadZipFile, OSError) as e:
            logger.error(f"Error Uploading File: {path_in_archive} to {directory} ({e})")
            return None

        return await self.store_bytes(directory, filename, data)
