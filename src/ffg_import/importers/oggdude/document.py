"""
Typed view of a normalized OggDude character export.

The normalized tree still mirrors the XML: a collection holding one entry
is a single mapping, two entries are a list, and an empty container is
``None``. The models below settle all of that once, at decode time, so the
mapper only ever sees lists, ints and bools.
"""

from __future__ import annotations

import math
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, model_validator

from ..base import ParseError


# ----------------------------------------------------------------------
# Leaf coercion
# ----------------------------------------------------------------------

def as_list(value: Any) -> list:
    """Wrap a single value into a list; ``None`` and ``""`` become ``[]``."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def unwrap(tag: str):
    """Build a validator turning a ``<Container><tag/>...</Container>`` node into a list."""
    def _unwrap(value: Any) -> list:
        if value is None or value == "":
            return []
        if isinstance(value, dict):
            return as_list(value.get(tag))
        raise ValueError(f"expected a container of <{tag}> elements")
    return _unwrap


def _text(value: Any) -> Any:
    # elements with attributes keep their text under "_"
    if isinstance(value, list):
        raise ValueError(f"expected a single element, found {len(value)}")
    if isinstance(value, dict):
        return value.get("_")
    return value


def xml_int(value: Any) -> int:
    value = _text(value)
    if value is None or value == "":
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    try:
        number = float(value)
    except TypeError:
        raise ValueError(f"{value!r} is not a number") from None
    if not math.isfinite(number):
        raise ValueError(f"{value!r} is not a finite number")
    return int(number)


def _to_optional_int(value: Any) -> int | None:
    if _text(value) in (None, ""):
        return None
    return xml_int(value)


def xml_bool(value: Any) -> bool:
    value = _text(value)
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() == "true"


XmlStr = Annotated[str | None, BeforeValidator(_text)]
XmlInt = Annotated[int, BeforeValidator(xml_int)]
XmlOptInt = Annotated[int | None, BeforeValidator(_to_optional_int)]
XmlBool = Annotated[bool, BeforeValidator(xml_bool)]
KeyList = Annotated[list[Annotated[str, BeforeValidator(_text)]], BeforeValidator(unwrap("Key"))]


class XmlModel(BaseModel):
    """Base for export elements; an empty element decodes as all defaults."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _empty_element(cls, data: Any) -> Any:
        if data is None or data == "":
            return {}
        return data


# ----------------------------------------------------------------------
# Export elements
# ----------------------------------------------------------------------

class Ranks(XmlModel):
    purchased_ranks: XmlInt = Field(default=0, alias="PurchasedRanks")
    species_ranks: XmlInt = Field(default=0, alias="SpeciesRanks")


class CharCharacteristic(XmlModel):
    key: XmlStr = Field(default=None, alias="Key")
    rank: Ranks = Field(default_factory=Ranks, alias="Rank")


class CharSkill(XmlModel):
    key: XmlStr = Field(default=None, alias="Key")
    is_career: XmlBool = Field(default=False, alias="isCareer")
    rank: Ranks = Field(default_factory=Ranks, alias="Rank")


class BonusChar(XmlModel):
    char_key: XmlStr = Field(default=None, alias="CharKey")
    bonus: XmlInt = Field(default=0, alias="Bonus")


class CharTalent(XmlModel):
    key: XmlStr = Field(default=None, alias="Key")
    purchased: XmlBool = Field(default=False, alias="Purchased")
    bonus_chars: Annotated[list[BonusChar], BeforeValidator(unwrap("BonusChar"))] = Field(
        default_factory=list, alias="BonusChars"
    )


class CharSpecialization(XmlModel):
    key: XmlStr = Field(default=None, alias="Key")
    is_starting_spec: XmlBool = Field(default=False, alias="isStartingSpec")
    talents: Annotated[list[CharTalent], BeforeValidator(unwrap("CharTalent"))] = Field(
        default_factory=list, alias="Talents"
    )


class CharForceAbility(XmlModel):
    key: XmlStr = Field(default=None, alias="Key")
    purchased: XmlBool = Field(default=False, alias="Purchased")


class CharForcePower(XmlModel):
    key: XmlStr = Field(default=None, alias="Key")
    abilities: Annotated[list[CharForceAbility], BeforeValidator(unwrap("CharForceAbility"))] = Field(
        default_factory=list, alias="ForceAbilities"
    )

    @property
    def has_purchased_ability(self) -> bool:
        return any(ability.purchased for ability in self.abilities)


class CharItem(XmlModel):
    """A weapon, armor or gear entry."""
    item_key: XmlStr = Field(default=None, alias="ItemKey")
    count_text: XmlStr = Field(default=None, alias="Count")

    @property
    def count(self) -> int | None:
        """Quantity of the entry, None when absent.

        Raises:
            ValueError: If the count is not a number.
        """
        return _to_optional_int(self.count_text)


class Career(XmlModel):
    career_key: XmlStr = Field(default=None, alias="CareerKey")
    career_skills: KeyList = Field(default_factory=list, alias="CareerSkills")
    starting_spec_key: XmlStr = Field(default=None, alias="StartingSpecKey")
    career_spec_skills: KeyList = Field(default_factory=list, alias="CareerSpecSkills")


class Species(XmlModel):
    species_key: XmlStr = Field(default=None, alias="SpeciesKey")


class Description(XmlModel):
    char_name: XmlStr = Field(default=None, alias="CharName")


class ExperienceRanks(XmlModel):
    starting_ranks: XmlInt = Field(default=0, alias="StartingRanks")
    species_ranks: XmlInt = Field(default=0, alias="SpeciesRanks")
    purchased_ranks: XmlInt = Field(default=0, alias="PurchasedRanks")
    used_experience: XmlOptInt = Field(default=None, alias="UsedExperience")


class Experience(XmlModel):
    experience_ranks: ExperienceRanks = Field(default_factory=ExperienceRanks, alias="ExperienceRanks")
    used_experience: XmlOptInt = Field(default=None, alias="UsedExperience")

    @property
    def total(self) -> int:
        ranks = self.experience_ranks
        return ranks.starting_ranks + ranks.species_ranks + ranks.purchased_ranks

    @property
    def used(self) -> int:
        # some exports nest the counter under ExperienceRanks, others do not
        if self.experience_ranks.used_experience is not None:
            return self.experience_ranks.used_experience
        return self.used_experience or 0


class CharacterDocument(XmlModel):
    """The ``<Character>`` root of an export."""
    key: Annotated[str, BeforeValidator(_text)] = Field(alias="Key", min_length=1)
    description: Description = Field(default_factory=Description, alias="Description")
    credits: XmlInt = Field(default=0, alias="Credits")
    experience: Experience = Field(default_factory=Experience, alias="Experience")
    characteristics: Annotated[list[CharCharacteristic], BeforeValidator(unwrap("CharCharacteristic"))] = Field(
        default_factory=list, alias="Characteristics"
    )
    skills: Annotated[list[CharSkill], BeforeValidator(unwrap("CharSkill"))] = Field(
        default_factory=list, alias="Skills"
    )
    species: Species = Field(default_factory=Species, alias="Species")
    career: Career = Field(default_factory=Career, alias="Career")
    specializations: Annotated[list[CharSpecialization], BeforeValidator(unwrap("CharSpecialization"))] = Field(
        default_factory=list, alias="Specializations"
    )
    force_powers: Annotated[list[CharForcePower], BeforeValidator(unwrap("CharForcePower"))] = Field(
        default_factory=list, alias="ForcePowers"
    )
    weapons: Annotated[list[CharItem], BeforeValidator(unwrap("CharWeapon"))] = Field(
        default_factory=list, alias="Weapons"
    )
    armor: Annotated[list[CharItem], BeforeValidator(unwrap("CharArmor"))] = Field(
        default_factory=list, alias="Armor"
    )
    gear: Annotated[list[CharItem], BeforeValidator(unwrap("CharGear"))] = Field(
        default_factory=list, alias="Gear"
    )
    portrait: XmlStr = Field(default=None, alias="Portrait")

    @property
    def name(self) -> str:
        return self.description.char_name or "No Name"


def decode_document(tree: dict[str, Any]) -> CharacterDocument:
    """Decode a normalized export into a ``CharacterDocument``.

    Args:
        tree: Output of ``normalize_xml``.

    Raises:
        ParseError: If the root is not ``<Character>`` or an element has an
            unexpected shape.
    """
    root = tree.get("Character") if isinstance(tree, dict) else None
    if not isinstance(root, dict):
        raise ParseError(
            "Unrecognized character export: missing <Character> root element. "
            "Ensure this is an OggDude character generator export."
        )

    try:
        return CharacterDocument.model_validate(root)
    except ValidationError as e:
        raise ParseError(f"Invalid character export: {e}") from None
