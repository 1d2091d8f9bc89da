"""
FFG character importer - brings OggDude character generator exports into FFG character records.
"""

from .config import ImporterConfig
from .models import CharacterRecord

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("ffg-character-import")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = ["ImporterConfig", "CharacterRecord"]
