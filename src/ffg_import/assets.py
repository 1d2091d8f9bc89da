"""
Asset host writing uploads to a local directory tree.
"""

import logging
from pathlib import Path

from .importers.base import AssetHost

logger = logging.getLogger("ffg-import.assets")


class DirectoryAssetHost(AssetHost):
    """``AssetHost`` storing files under ``<base_dir>/<root>/<path>``.

    Like the remote hosts it stands in for, it refuses to create a
    directory that already exists.
    """

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)

    def _resolve(self, root: str, path: str) -> Path:
        target = (self.base_dir / root / path).resolve()
        if not target.is_relative_to(self.base_dir.resolve()):
            raise ValueError(f"Path {root}/{path} escapes the asset directory")
        return target

    async def ensure_directory(self, root: str, path: str) -> None:
        target = self._resolve(root, path)
        target.parent.mkdir(parents=True, exist_ok=True)
        # raises FileExistsError when the directory is already there
        target.mkdir()
        logger.debug(f"Created asset directory {root}/{path}")

    async def upload(self, root: str, path: str, filename: str, data: bytes, mime_type: str) -> None:
        directory = self._resolve(root, path)
        if not directory.is_dir():
            raise FileNotFoundError(f"Asset directory {root}/{path} does not exist")
        target = self._resolve(root, f"{path}/{filename}")
        target.write_bytes(data)
        logger.debug(f"Uploaded {root}/{path}/{filename} ({mime_type or 'unknown type'}, {len(data)} bytes)")
