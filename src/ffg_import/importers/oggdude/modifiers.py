"""
Convert OggDude modifier descriptors into host attribute modifiers.

A descriptor is a normalized ``<Mod>`` or ``<DieModifier>`` element: a
``Key`` naming a characteristic, skill or stat, an optional ``Count`` and
optional die counters (``BoostCount``, ``SetbackCount``...).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator

from shortuuid import random

from ...models import AttributeModifier, ModType
from .document import as_list, xml_bool, xml_int
from .schema import (
    CHARACTERISTIC_CODES,
    DEFENSIVE_QUALITY,
    DIE_MODIFIER_FIELDS,
    ENCUMBRANCE_KEY,
    SKILLS,
    STAT_ATTRIBUTE_FIELDS,
)

if TYPE_CHECKING:
    from ..resolver import ReferenceResolver

logger = logging.getLogger("ffg-import")


def characteristic_name(code: str | None) -> str | None:
    """Map a characteristic code (``BR``, ``AG``...) to its display name."""
    if code is None:
        return None
    return CHARACTERISTIC_CODES.get(code)


def _present(value: Any) -> bool:
    return value is not None and value != ""


def build_modifier(descriptor: dict[str, Any], skills: dict[str, str] | None = None) -> AttributeModifier | None:
    """Build the modifier described by one descriptor.

    Args:
        descriptor: Normalized modifier element.
        skills: Skill key → display name table; defaults to the core skills.

    Returns:
        The modifier, or None when the key is not a characteristic, skill or
        the encumbrance code.
    """
    skills = SKILLS if skills is None else skills
    key = descriptor.get("Key")
    value = xml_int(descriptor.get("Count"))

    if key in CHARACTERISTIC_CODES:
        return AttributeModifier(mod=CHARACTERISTIC_CODES[key], modtype=ModType.CHARACTERISTIC, value=value)

    if key in skills:
        modtype = ModType.SKILL_RANK
        if xml_bool(descriptor.get("SkillIsCareer")):
            modtype = ModType.CAREER_SKILL
        else:
            for counter, counter_modtype in DIE_MODIFIER_FIELDS:
                if _present(descriptor.get(counter)):
                    modtype = ModType(counter_modtype)
                    value = xml_int(descriptor[counter])
        return AttributeModifier(mod=skills[key], modtype=modtype, value=value)

    if key == ENCUMBRANCE_KEY:
        return AttributeModifier(mod="Encumbrance", modtype=ModType.STAT, value=value)

    return None


def iter_descriptors(node: Any) -> Iterator[dict[str, Any]]:
    """Yield every modifier descriptor found in ``node``.

    ``node`` can be a single descriptor, a list of descriptors, a block
    holding ``Mod`` entries, or a ``DieModifiers`` block whose entries name
    their skill through ``SkillKey``.
    """
    if isinstance(node, list):
        for entry in node:
            yield from iter_descriptors(entry)
        return
    if not isinstance(node, dict):
        return

    if "Mod" in node:
        yield from iter_descriptors(node["Mod"])
        return

    if node.get("Key"):
        yield node
        return

    die_modifiers = node.get("DieModifiers")
    if isinstance(die_modifiers, dict):
        node = die_modifiers
    for die_modifier in as_list(node.get("DieModifier")):
        if isinstance(die_modifier, dict):
            yield {"Key": die_modifier.get("SkillKey"), **die_modifier}


def build_modifier_map(node: Any, skills: dict[str, str] | None = None) -> dict[str, dict[str, Any]]:
    """Fold all resolvable descriptors of ``node`` into an attributes mapping.

    The mapping is keyed by the modifier target name; a later descriptor for
    the same target replaces an earlier one.
    """
    attributes: dict[str, dict[str, Any]] = {}
    for descriptor in iter_descriptors(node):
        modifier = build_modifier(descriptor, skills)
        if modifier is None:
            logger.debug(f"Skipping unrecognized modifier {descriptor.get('Key')}")
            continue
        attributes[modifier.mod] = modifier.to_attribute()
    return attributes


def build_stat_attributes(node: dict[str, Any] | None) -> dict[str, dict[str, Any]]:
    """Map an item stat block (soak, defence, thresholds...) to Stat attributes."""
    attributes: dict[str, dict[str, Any]] = {}
    if not isinstance(node, dict):
        return attributes

    for element, stat in STAT_ATTRIBUTE_FIELDS.items():
        if _present(node.get(element)):
            modifier = AttributeModifier(mod=stat, modtype=ModType.STAT, value=xml_int(node[element]))
            attributes[stat] = modifier.to_attribute()
    return attributes


@dataclass
class QualitySet:
    """Item qualities rendered as description text plus derived attributes."""
    qualities: list[str] = field(default_factory=list)
    attributes: dict[str, dict[str, Any]] = field(default_factory=dict)


async def build_qualities(quality_list: Any, resolver: ReferenceResolver) -> QualitySet | None:
    """Resolve item qualities against journal entries.

    Each quality becomes an entity link when a journal entry with the
    quality key exists, plain text otherwise. ``DEFENSIVE`` also grants a
    melee defence attribute.

    Returns:
        The rendered qualities, or None when the list is empty.
    """
    entries = [entry for entry in as_list(quality_list) if isinstance(entry, dict)]
    if not entries:
        return None

    result = QualitySet()
    for quality in entries:
        key = quality.get("Key")
        count = quality.get("Count")
        label = f"{key} {count if _present(count) else ''}".rstrip()

        hit = await resolver.locate_by_import_id("JournalEntry", key)
        if hit is not None and hit.catalog_id:
            result.qualities.append(
                f'<a class="entity-link" draggable="true" data-pack="{hit.catalog_id}" '
                f'data-id="{hit.entity.get("_id", "")}">{label}</a>'
            )
        else:
            result.qualities.append(label)

        if key == DEFENSIVE_QUALITY:
            result.attributes[f"attr{random(length=16)}"] = {
                "isCheckbox": False,
                "mod": "Defence-Melee",
                "modtype": ModType.STAT.value,
                "value": xml_int(count),
            }

    return result
