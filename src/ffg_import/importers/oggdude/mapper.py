"""
Assemble a host character record from an OggDude export.

The import runs as a fixed sequence of phases. Each phase is wrapped so a
failure is logged and recorded as a warning while the remaining phases still
run; only an unreadable document or a failed commit abort the import.
Inside the equipment, specialization, talent and force power phases every
entry is wrapped as well, so one bad reference never takes its siblings down.
"""

from __future__ import annotations

import base64
import binascii
import inspect
import logging
from pathlib import Path
from typing import Any

from ...config import ImporterConfig
from ...models import AttributeModifier, CharacterRecord, ModType, TalentSlot
from ..assets import AssetImporter
from ..base import (
    AssetError,
    AssetHost,
    CatalogService,
    CommitError,
    ImportResult,
    LoggingProgressReporter,
    ProgressReporter,
    ResolutionMiss,
    StorageBackend,
)
from ..context import ImportContext
from ..resolver import ReferenceResolver
from .document import CharacterDocument, CharItem, CharTalent, decode_document, xml_int
from .modifiers import characteristic_name
from .reader import normalize_xml, read_export_file
from .schema import (
    CHARACTER_IMAGE_DIR,
    CHARACTERISTIC_NAMES,
    CUSTOM_SKILLS,
    FORCE_BASE_ABILITY_COUNT,
    PROGRESS_ARMOR,
    PROGRESS_CAREER,
    PROGRESS_DONE,
    PROGRESS_FORCE_POWERS,
    PROGRESS_GEAR,
    PROGRESS_PARSED,
    PROGRESS_PORTRAIT,
    PROGRESS_SPECIALIZATIONS,
    PROGRESS_SPECIES,
    PROGRESS_WEAPONS,
    TALENT_DEFAULTS,
)

logger = logging.getLogger("ffg-import")


# ----------------------------------------------------------------------
# Record skeleton
# ----------------------------------------------------------------------

def new_character_record(document: CharacterDocument, skills: dict[str, str]) -> CharacterRecord:
    """Create the record with every characteristic and skill at zero."""
    characteristics = {name: {"value": 0} for name in CHARACTERISTIC_NAMES}

    skill_table: dict[str, dict[str, Any]] = {}
    for key, name in skills.items():
        skill_table[name] = {"rank": 0, "careerskill": False, "Key": key, **CUSTOM_SKILLS.get(key, {})}

    experience = document.experience
    return CharacterRecord(
        name=document.name,
        import_id=document.key,
        characteristics=characteristics,
        skills=skill_table,
        stats={
            "forcePool": {"max": 0},
            "credits": {"value": document.credits},
        },
        experience={
            "total": experience.total,
            "available": experience.total - experience.used,
        },
    )


def _item_attributes(item: dict) -> dict[str, Any]:
    data = item.setdefault("data", {})
    attributes = data.get("attributes")
    if not isinstance(attributes, dict):
        attributes = {}
        data["attributes"] = attributes
    return attributes


def _same_value(left: Any, right: Any) -> bool:
    try:
        return xml_int(left) == xml_int(right)
    except (TypeError, ValueError):
        return left == right


# ----------------------------------------------------------------------
# Characteristics and skills
# ----------------------------------------------------------------------

def map_characteristics(document: CharacterDocument, record: CharacterRecord, context: ImportContext) -> None:
    """Copy purchased characteristic ranks onto the record."""
    for characteristic in document.characteristics:
        name = characteristic_name(characteristic.key)
        if name is None:
            context.warn("characteristics", f"Unknown characteristic {characteristic.key}, skipped")
            continue

        if name not in record.attributes:
            record.attributes[name] = AttributeModifier(
                mod=name, modtype=ModType.CHARACTERISTIC, value=0
            ).to_attribute(key=name)

        purchased = characteristic.rank.purchased_ranks
        if purchased:
            record.characteristics[name]["value"] = purchased
            record.attributes[name]["value"] = purchased


def map_skills(
    document: CharacterDocument,
    record: CharacterRecord,
    context: ImportContext,
    species_skills: list[dict[str, Any]],
) -> None:
    """Copy skill ranks and career flags onto the record.

    Ranks granted by the species are not written to the character; they are
    collected in ``species_skills`` and merged into the species item later.
    """
    for skill in document.skills:
        name = context.skills.get(skill.key or "")
        if name is None or name not in record.skills:
            context.warn("skills", f"Unknown skill {skill.key}, skipped")
            continue

        entry = record.skills[name]
        if skill.is_career:
            entry["careerskill"] = True

        if name not in record.attributes:
            record.attributes[name] = AttributeModifier(
                mod=name, modtype=ModType.SKILL_RANK, value=0
            ).to_attribute(key=name)

        if skill.rank.purchased_ranks:
            entry["rank"] = skill.rank.purchased_ranks
            record.attributes[name]["value"] = skill.rank.purchased_ranks
        elif skill.rank.species_ranks:
            species_skills.append(
                AttributeModifier(
                    mod=name, modtype=ModType.SKILL_RANK, value=skill.rank.species_ranks
                ).to_attribute(key=name)
            )
        else:
            entry["rank"] = 0
            record.attributes[name]["value"] = 0


def apply_skill_grants(item: dict, skill_keys: list[str], context: ImportContext, phase: str) -> None:
    """Add one rank per granted skill to an item's ``Skill Rank`` attributes.

    An existing attribute for the skill is incremented (and gets its
    missing ``key`` backfilled); otherwise a new attribute worth 1 is added
    under a freshly allocated key.
    """
    attributes = _item_attributes(item)
    for key in skill_keys:
        name = context.skills.get(key)
        if name is None:
            context.warn(phase, f"Unknown skill {key} granted by {item.get('name', 'item')}, skipped")
            continue

        attr_id = next(
            (
                attr_id
                for attr_id, attribute in attributes.items()
                if isinstance(attribute, dict)
                and attribute.get("modtype") == ModType.SKILL_RANK.value
                and attribute.get("mod") == name
            ),
            None,
        )

        if attr_id is not None:
            attribute = attributes[attr_id]
            attribute["value"] = xml_int(attribute.get("value")) + 1
            if not attribute.get("key"):
                attribute["key"] = name
        else:
            attributes[context.next_attribute_key(attributes)] = AttributeModifier(
                mod=name, modtype=ModType.SKILL_RANK, value=1
            ).to_attribute(key=name)


# ----------------------------------------------------------------------
# Species, career and specializations
# ----------------------------------------------------------------------

async def map_species(
    document: CharacterDocument,
    record: CharacterRecord,
    resolver: ReferenceResolver,
    context: ImportContext,
    species_skills: list[dict[str, Any]],
) -> None:
    """Add the species item, merged with the species-granted skill ranks."""
    key = document.species.species_key
    if not key:
        context.warn("species", "Character has no species")
        return

    species = await resolver.find_by_import_id("Item", key)
    if species is None:
        raise ResolutionMiss(f"Unable to add species {key} to character.")

    attributes = _item_attributes(species)
    for skill in species_skills:
        # the generator does not say whether a species skill was chosen by
        # the player or is built into the species template
        found = any(
            isinstance(attribute, dict)
            and attribute.get("mod") == skill["mod"]
            and attribute.get("modtype") == skill["modtype"]
            and _same_value(attribute.get("value"), skill["value"])
            for attribute in attributes.values()
        )
        if not found:
            attributes[context.next_attribute_key(attributes)] = skill

    record.items.append(species)


async def map_career(
    document: CharacterDocument,
    record: CharacterRecord,
    resolver: ReferenceResolver,
    context: ImportContext,
) -> None:
    """Add the career item with the career skills chosen in the generator."""
    key = document.career.career_key
    if not key:
        context.warn("career", "Character has no career")
        return

    career = await resolver.find_by_import_id("Item", key)
    if career is None:
        raise ResolutionMiss(f"Unable to add career {key} to character.")

    apply_skill_grants(career, document.career.career_skills, context, "career")
    record.items.append(career)


async def learn_talent(
    slot: dict[str, Any],
    talent: CharTalent,
    resolver: ReferenceResolver,
    context: ImportContext,
) -> dict[str, Any]:
    """Fill a specialization talent slot with a purchased talent.

    Template fields of the slot are kept; rank and activation come from the
    talent item referenced by the slot.
    """
    learned = TalentSlot.model_validate({"itemId": slot.get("itemId"), **TALENT_DEFAULTS})

    template = await resolver.find_by_id("Item", slot.get("itemId"))
    if template is None:
        context.warn("talents", f"Unable to find talent {talent.key} ({slot.get('itemId')}), imported without rank data")
    else:
        data = template.get("data") or {}
        ranks = data.get("ranks") or {}
        activation = data.get("activation") or {}
        learned.is_ranked = bool(ranks.get("ranked", False))
        learned.rank = xml_int(ranks.get("current"))
        learned.activation = activation.get("value") or TALENT_DEFAULTS["activation"]
    learned.islearned = True

    merged = {**slot, **learned.model_dump(by_alias=True, exclude={"attributes"})}
    attributes = merged.get("attributes")
    merged["attributes"] = dict(attributes) if isinstance(attributes, dict) else {}

    for bonus in talent.bonus_chars:
        name = characteristic_name(bonus.char_key)
        if name is None:
            context.warn("talents", f"Unknown characteristic bonus {bonus.char_key} on talent {talent.key}")
            continue
        modifier = AttributeModifier(mod=name, modtype=ModType.CHARACTERISTIC, value=bonus.bonus)
        merged["attributes"][context.next_attribute_key(merged["attributes"])] = {
            "isCheckbox": False,
            **modifier.to_attribute(),
        }

    return merged


async def apply_talents(
    specialization: dict,
    talents: list[CharTalent],
    resolver: ReferenceResolver,
    context: ImportContext,
) -> None:
    """Mark the purchased talents of a specialization tree as learned."""
    slots = specialization.setdefault("data", {}).setdefault("talents", {})
    for index, talent in enumerate(talents):
        if not talent.purchased:
            continue

        slot_key = f"talent{index}"
        slot = slots.get(slot_key)
        if not isinstance(slot, dict):
            context.warn("talents", f"Specialization {specialization.get('name')} has no slot {slot_key} for talent {talent.key}")
            continue

        try:
            slots[slot_key] = await learn_talent(slot, talent, resolver, context)
        except Exception as e:
            context.error("talents", f"Unable to add talent {talent.key} to {specialization.get('name')}: {e}")


async def map_specializations(
    document: CharacterDocument,
    record: CharacterRecord,
    resolver: ReferenceResolver,
    context: ImportContext,
) -> None:
    """Add the starting specialization and every additional one with its talents."""
    career = document.career
    starting = None
    if career.starting_spec_key:
        starting = await resolver.find_by_import_id("Item", career.starting_spec_key)
        if starting is None:
            context.warn("specializations", f"Unable to add specialization {career.starting_spec_key} to character.")
        else:
            apply_skill_grants(starting, career.career_spec_skills, context, "specializations")

    single = len(document.specializations) == 1
    starting_added = False
    for spec in document.specializations:
        is_starting = spec.is_starting_spec or single or (
            bool(spec.key) and spec.key == career.starting_spec_key
        )
        try:
            if is_starting and starting is not None:
                await apply_talents(starting, spec.talents, resolver, context)
                if not starting_added:
                    record.items.append(starting)
                    starting_added = True
                continue

            specialization = await resolver.find_by_import_id("Item", spec.key or "")
            if specialization is None:
                raise ResolutionMiss(f"Unable to add specialization {spec.key} to character.")
            await apply_talents(specialization, spec.talents, resolver, context)
            record.items.append(specialization)
        except ResolutionMiss as e:
            context.warn("specializations", str(e))
        except Exception as e:
            context.error("specializations", f"Unable to add specialization {spec.key} to character: {e}")

    if starting is not None and not starting_added:
        record.items.append(starting)


# ----------------------------------------------------------------------
# Force powers and equipment
# ----------------------------------------------------------------------

async def map_force_powers(
    document: CharacterDocument,
    record: CharacterRecord,
    resolver: ReferenceResolver,
    context: ImportContext,
) -> None:
    """Add force powers that have at least one purchased ability."""
    for power in document.force_powers:
        if not power.has_purchased_ability:
            continue

        try:
            force = await resolver.find_by_import_id("Item", power.key or "")
            if force is None:
                raise ResolutionMiss(f"Unable to add force power {power.key} to character.")

            upgrades = force.setdefault("data", {}).setdefault("upgrades", {})
            for index, ability in enumerate(power.abilities):
                if index < FORCE_BASE_ABILITY_COUNT or not ability.purchased:
                    continue
                upgrade_key = f"upgrade{index - FORCE_BASE_ABILITY_COUNT}"
                upgrade = upgrades.get(upgrade_key)
                if not isinstance(upgrade, dict):
                    context.warn("force_powers", f"Force power {power.key} has no {upgrade_key} for ability {ability.key}")
                    continue
                upgrade["islearned"] = True

            record.items.append(force)
        except ResolutionMiss as e:
            context.warn("force_powers", str(e))
        except Exception as e:
            context.error("force_powers", f"Unable to add force power {power.key} to character: {e}")


async def map_equipment(
    entries: list[CharItem],
    label: str,
    record: CharacterRecord,
    resolver: ReferenceResolver,
    context: ImportContext,
) -> None:
    """Add weapons, armor or gear; unresolved entries are skipped."""
    for entry in entries:
        if not entry.item_key:
            logger.debug(f"Skipping {label} entry without an item key")
            continue

        try:
            item = await resolver.find_by_import_id("Item", entry.item_key)
            if item is None:
                raise ResolutionMiss(f"Unable to add {label} ({entry.item_key}) to character.")
            try:
                count = entry.count
            except ValueError:
                context.warn(label, f"Ignoring invalid count {entry.count_text!r} on {label} ({entry.item_key}).")
                count = None
            if count is not None:
                item.setdefault("data", {})["quantity"] = {"value": count}
            record.items.append(item)
        except ResolutionMiss as e:
            context.warn(label, str(e))
        except Exception as e:
            context.error(label, f"Unable to add {label} ({entry.item_key}) to character: {e}")


async def map_portrait(
    document: CharacterDocument,
    record: CharacterRecord,
    assets: AssetImporter,
) -> None:
    """Upload the embedded portrait and point the record at it."""
    if not document.portrait:
        return

    try:
        data = base64.b64decode(document.portrait)
    except (binascii.Error, ValueError) as e:
        raise AssetError(f"Character portrait is not valid base64: {e}") from None

    directory = CHARACTER_IMAGE_DIR.format(world=assets.world)
    path = await assets.store_bytes(directory, f"{document.key}.png", data)
    if path is None:
        raise AssetError("Failed to upload character portrait.")
    record.img = path


# ----------------------------------------------------------------------
# Orchestration
# ----------------------------------------------------------------------

class CharacterImporter:
    """Imports OggDude exports into a host through its collaborators.

    Usage:
        importer = CharacterImporter(storage, catalogs, asset_host, config)
        result = await importer.import_file("exports/Kira.xml")
        print(result.build_report().format())
    """

    def __init__(
        self,
        storage: StorageBackend,
        catalogs: CatalogService,
        assets: AssetHost,
        config: ImporterConfig | None = None,
        progress: ProgressReporter | None = None,
        skills: dict[str, str] | None = None,
    ) -> None:
        self.storage = storage
        self.catalogs = catalogs
        self.assets = assets
        self.config = config or ImporterConfig()
        self.progress = progress or LoggingProgressReporter()
        self.skills = skills

    async def import_file(self, file_path: str | Path) -> ImportResult:
        """Read an export from disk and import it."""
        try:
            text = read_export_file(file_path)
        except Exception:
            self.progress.error("An error occurred while importing the character!")
            raise
        return await self.import_character(text)

    async def import_character(self, data: str | bytes) -> ImportResult:
        """Import one character export.

        Raises:
            ParseError: If the export cannot be read.
            CommitError: If the host refuses the record.
        """
        context = ImportContext(self.skills)
        try:
            return await self._import(data, context)
        except Exception as e:
            logger.error(f"Error while importing character: {e}")
            self.progress.error("An error occurred while importing the character!")
            raise
        finally:
            context.close()

    async def _import(self, data: str | bytes, context: ImportContext) -> ImportResult:
        document = decode_document(normalize_xml(data))
        record = new_character_record(document, context.skills)
        logger.info(f"Importing character {record.name} ({record.import_id})")

        resolver = ReferenceResolver(self.catalogs, self.storage, context)
        assets = AssetImporter(
            self.assets, context, source=self.config.asset_source, world=self.config.world_id
        )
        completed: list[str] = []
        species_skills: list[dict[str, Any]] = []

        await self._run_phase("characteristics", context, completed, map_characteristics, document, record, context)
        await self._run_phase("skills", context, completed, map_skills, document, record, context, species_skills)
        self.progress.update(PROGRESS_PARSED)

        await self._run_phase("species", context, completed, map_species, document, record, resolver, context, species_skills)
        self.progress.update(PROGRESS_SPECIES)

        await self._run_phase("career", context, completed, map_career, document, record, resolver, context)
        self.progress.update(PROGRESS_CAREER)

        await self._run_phase("specializations", context, completed, map_specializations, document, record, resolver, context)
        self.progress.update(PROGRESS_SPECIALIZATIONS)

        await self._run_phase("force_powers", context, completed, map_force_powers, document, record, resolver, context)
        self.progress.update(PROGRESS_FORCE_POWERS)

        await self._run_phase("weapons", context, completed, map_equipment, document.weapons, "weapon", record, resolver, context)
        self.progress.update(PROGRESS_WEAPONS)

        await self._run_phase("armor", context, completed, map_equipment, document.armor, "armor", record, resolver, context)
        self.progress.update(PROGRESS_ARMOR)

        await self._run_phase("gear", context, completed, map_equipment, document.gear, "gear", record, resolver, context)
        self.progress.update(PROGRESS_GEAR)

        await self._run_phase("portrait", context, completed, map_portrait, document, record, assets)
        self.progress.update(PROGRESS_PORTRAIT)

        entity_id, created = await self._commit(record, resolver)
        completed.append("commit")
        self.progress.update(PROGRESS_DONE)

        return ImportResult(
            record=record,
            entity_id=entity_id,
            created=created,
            completed_phases=completed,
            warnings=list(context.warnings),
        )

    async def _run_phase(self, name: str, context: ImportContext, completed: list[str], func, *args) -> None:
        try:
            result = func(*args)
            if inspect.isawaitable(result):
                await result
        except ResolutionMiss as e:
            context.warn(name, str(e))
            return
        except Exception as e:
            context.error(name, f"Failed to import {name}: {e}")
            return
        completed.append(name)

    async def _commit(self, record: CharacterRecord, resolver: ReferenceResolver) -> tuple[str, bool]:
        try:
            existing = await resolver.find_local_by_import_id("Actor", record.import_id)
            if existing is not None:
                entity_id = existing["_id"]
                await self.storage.update_entity("Actor", entity_id, record.to_entity(entity_id))
                logger.info(f"Updated character {record.name} ({entity_id})")
                return entity_id, False

            entity_id = await self.storage.create_entity("Actor", record.to_entity())
            logger.info(f"Created character {record.name} ({entity_id})")
            return entity_id, True
        except CommitError:
            raise
        except Exception as e:
            raise CommitError(f"Unable to save character {record.name}: {e}") from e
