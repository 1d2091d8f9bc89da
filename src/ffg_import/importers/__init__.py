"""
Character import from external character generators.

Currently supports:
- OggDude's character generator (XML export, local file or raw text)
"""

from .base import ImportResult, ImportReport, ImportError
from .flatten import build_update_data, flatten_update
from .oggdude.mapper import CharacterImporter
from .oggdude.reader import normalize_xml, read_export_file

__all__ = [
    "CharacterImporter",
    "normalize_xml",
    "read_export_file",
    "flatten_update",
    "build_update_data",
    "ImportResult",
    "ImportReport",
    "ImportError",
]
