"""
Read and normalize OggDude character exports.

The generator writes loosely schematized XML. This module turns it into a
plain nested structure of dicts, lists and strings (a NormalizedNode tree):

- repeated sibling elements become a list,
- XML attributes become ``$name`` keys,
- text of an element that also has attributes or children is kept under ``_``,
- an element with no text, attributes or children becomes ``None``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from lxml import etree

from ..base import ParseError

logger = logging.getLogger("ffg-import")

BYTE_ORDER_MARK = "\ufeff"
XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


def _parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


def _local_name(tag: str) -> str:
    # strip "{namespace}" prefixes
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def element_to_node(element: etree._Element) -> Any:
    """Convert one element (and its subtree) to a NormalizedNode."""
    node: dict[str, Any] = {}

    for name, value in element.attrib.items():
        node[f"${_local_name(name)}"] = value

    for child in element:
        if not isinstance(child.tag, str):
            # processing instructions and other non-element nodes
            continue
        tag = _local_name(child.tag)
        value = element_to_node(child)
        if tag in node:
            existing = node[tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[tag] = [existing, value]
        else:
            node[tag] = value

    text = (element.text or "").strip()
    if not node:
        return text if text else None
    if text:
        node["_"] = text
    return node


def normalize_xml(data: str | bytes) -> dict[str, Any]:
    """Parse export markup into a NormalizedNode tree.

    Args:
        data: Raw XML text, optionally starting with a byte-order mark.

    Returns:
        Mapping with a single key, the root element tag.

    Raises:
        ParseError: If the document is not well-formed XML.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"Character export is not valid UTF-8: {e}") from None

    if data.startswith(BYTE_ORDER_MARK):
        data = data[len(BYTE_ORDER_MARK):]

    if not data.strip():
        raise ParseError("Character export is empty")

    try:
        # the text is already decoded; lxml refuses str input with an encoding declaration
        root = etree.fromstring(XML_DECLARATION.sub("", data, count=1), parser=_parser())
    except etree.XMLSyntaxError as e:
        raise ParseError(f"Character export is not well-formed XML: {e}") from None

    return {_local_name(root.tag): element_to_node(root)}


def read_export_file(file_path: str | Path) -> str:
    """
    Read a local OggDude character export.

    Args:
        file_path: Path to the exported ``.xml`` file

    Returns:
        The export text, without a byte-order mark

    Raises:
        ParseError: If the file cannot be found or read
    """
    path = Path(file_path)

    try:
        with path.open("r", encoding="utf-8-sig") as f:
            text = f.read()
    except FileNotFoundError:
        raise ParseError(
            f"Character export not found: {file_path}"
        ) from None
    except UnicodeDecodeError as e:
        raise ParseError(
            f"Character export is not valid UTF-8: {e}"
        ) from None
    except OSError as e:
        raise ParseError(
            f"Failed to read character export: {e}"
        ) from None

    logger.debug(f"Read character export {path} ({len(text)} characters)")
    return text


def format_sources(sources: Any) -> str:
    """Render a ``Sources`` block as host rich text.

    Accepts the node found under an item's ``Sources`` element: either a
    single source, or a mapping holding one or many ``Source`` entries.
    Each source is plain text or a mapping with a ``$Page`` attribute and
    ``_`` text.
    """
    if not sources:
        return ""

    if isinstance(sources, dict) and "Source" in sources:
        entries = sources["Source"]
    else:
        entries = sources
    if not isinstance(entries, list):
        entries = [entries]

    parts = []
    for source in entries:
        if isinstance(source, dict):
            page = source.get("$Page", "")
            title = source.get("_", "")
        else:
            page = ""
            title = source or ""
        parts.append(f"[H4]Page {page} - {title}[h4]")

    return f"[P][H3]Sources:[h3]{''.join(parts)}"
