"""
Data models for the FFG character importer.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# Flag carrying the stable import id on every entity we create or look up
IMPORT_ID_FLAG = "ffgimportid"


class ModType(str, Enum):
    """Category of an attribute modifier."""
    CHARACTERISTIC = "Characteristic"
    CAREER_SKILL = "Career Skill"
    SKILL_BOOST = "Skill Boost"
    SKILL_SETBACK = "Skill Setback"
    SKILL_REMOVE_SETBACK = "Skill Remove Setback"
    SKILL_ADD_ADVANTAGE = "Skill Add Advantage"
    SKILL_ADD_THREAT = "Skill Add Threat"
    SKILL_ADD_SUCCESS = "Skill Add Success"
    SKILL_ADD_FAILURE = "Skill Add Failure"
    SKILL_RANK = "Skill Rank"
    STAT = "Stat"


class AttributeModifier(BaseModel):
    """A canonical bonus record: target, category and magnitude."""
    mod: str = Field(description="Canonical target name (skill, characteristic or stat)")
    modtype: ModType = Field(description="How downstream consumers interpret the value")
    value: int | bool = Field(default=0, description="Magnitude of the modifier")

    def to_attribute(self, key: str | None = None) -> dict[str, Any]:
        """Render as an entry of an entity ``attributes`` mapping."""
        attribute = self.model_dump(mode="json")
        if key is not None:
            attribute = {"key": key, **attribute}
        return attribute


class TalentSlot(BaseModel):
    """A talent position on a specialization template."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    item_id: str | None = Field(default=None, alias="itemId", description="Internal id of the talent template")
    is_ranked: bool = Field(default=False, alias="isRanked")
    rank: int = 0
    activation: str = "Passive"
    islearned: bool = False
    attributes: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def to_data(self) -> dict[str, Any]:
        """Render in the host's camelCase shape, keeping unknown template fields."""
        return self.model_dump(by_alias=True)


class CharacterRecord(BaseModel):
    """Canonical character record handed to the storage collaborator."""
    name: str = "No Name"
    type: str = "character"
    import_id: str = Field(description="Stable import id taken from the export root key")
    characteristics: dict[str, dict[str, Any]] = Field(default_factory=dict)
    skills: dict[str, dict[str, Any]] = Field(default_factory=dict)
    stats: dict[str, dict[str, Any]] = Field(default_factory=dict)
    experience: dict[str, int] = Field(default_factory=lambda: {"total": 0, "available": 0})
    attributes: dict[str, dict[str, Any]] = Field(default_factory=dict)
    items: list[dict[str, Any]] = Field(default_factory=list)
    img: str | None = None

    def to_entity(self, entity_id: str | None = None) -> dict[str, Any]:
        """Render the record as a host actor document.

        Args:
            entity_id: Existing storage id; included as ``_id`` for updates.
        """
        entity: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "flags": {IMPORT_ID_FLAG: self.import_id},
            "data": {
                "attributes": self.attributes,
                "characteristics": self.characteristics,
                "skills": self.skills,
                "stats": self.stats,
                "experience": self.experience,
            },
            "items": self.items,
        }
        if self.img:
            entity["img"] = self.img
        if entity_id is not None:
            entity["_id"] = entity_id
        return entity
