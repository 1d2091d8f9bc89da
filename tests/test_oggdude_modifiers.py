"""Tests for modifier descriptor conversion."""

import pytest

from ffg_import.importers.context import ImportContext
from ffg_import.importers.oggdude.modifiers import (
    build_modifier,
    build_modifier_map,
    build_qualities,
    build_stat_attributes,
    characteristic_name,
    iter_descriptors,
)
from ffg_import.importers.oggdude.reader import normalize_xml
from ffg_import.importers.resolver import ReferenceResolver
from ffg_import.models import ModType

from .helpers import make_entity


class TestCharacteristicName:
    def test_known_codes(self):
        assert characteristic_name("BR") == "Brawn"
        assert characteristic_name("PR") == "Presence"

    def test_unknown(self):
        assert characteristic_name("LUCK") is None
        assert characteristic_name(None) is None


class TestBuildModifier:
    """Test the descriptor → modifier rules."""

    def test_characteristic(self):
        modifier = build_modifier({"Key": "AG", "Count": "1"})

        assert modifier.mod == "Agility"
        assert modifier.modtype == ModType.CHARACTERISTIC
        assert modifier.value == 1

    def test_skill_rank(self):
        modifier = build_modifier({"Key": "ATHL", "Count": "2"})

        assert modifier.mod == "Athletics"
        assert modifier.modtype == ModType.SKILL_RANK
        assert modifier.value == 2

    def test_career_skill(self):
        modifier = build_modifier({"Key": "PERC", "SkillIsCareer": "true", "BoostCount": "1"})

        assert modifier.modtype == ModType.CAREER_SKILL
        assert modifier.value == 0

    def test_boost(self):
        """A boost counter turns the modifier into a Skill Boost."""
        modifier = build_modifier({"Key": "ATHL", "BoostCount": "2"})

        assert modifier.to_attribute() == {"mod": "Athletics", "modtype": "Skill Boost", "value": 2}

    def test_later_counter_wins(self):
        """When several counters are present, the last one in order is kept."""
        modifier = build_modifier({"Key": "ATHL", "BoostCount": "1", "FailureCount": "1"})

        assert modifier.modtype == ModType.SKILL_ADD_FAILURE
        assert modifier.value == 1

    @pytest.mark.parametrize("counter,modtype", [
        ("AddSetbackCount", ModType.SKILL_SETBACK),
        ("SetbackCount", ModType.SKILL_REMOVE_SETBACK),
        ("AdvantageCount", ModType.SKILL_ADD_ADVANTAGE),
        ("ThreatCount", ModType.SKILL_ADD_THREAT),
        ("SuccessCount", ModType.SKILL_ADD_SUCCESS),
    ])
    def test_die_counters(self, counter, modtype):
        modifier = build_modifier({"Key": "COOL", counter: "1"})

        assert modifier.modtype == modtype

    def test_encumbrance(self):
        modifier = build_modifier({"Key": "ENCTADD", "Count": "3"})

        assert modifier.mod == "Encumbrance"
        assert modifier.modtype == ModType.STAT
        assert modifier.value == 3

    def test_unknown_key(self):
        assert build_modifier({"Key": "SOMETHINGELSE", "Count": "1"}) is None

    def test_custom_skill_table(self):
        modifier = build_modifier({"Key": "SLICE", "Count": "1"}, skills={"SLICE": "Slicing"})

        assert modifier.mod == "Slicing"


class TestDescriptors:
    """Test gathering descriptors from normalized elements."""

    def test_mod_block(self):
        node = normalize_xml(
            "<BaseMods><Mod><Key>BR</Key><Count>1</Count></Mod><Mod><Key>ATHL</Key><Count>1</Count></Mod></BaseMods>"
        )["BaseMods"]

        assert [d["Key"] for d in iter_descriptors(node)] == ["BR", "ATHL"]

    def test_die_modifiers(self):
        """DieModifier entries name their skill through SkillKey."""
        node = normalize_xml(
            "<Item><DieModifiers><DieModifier><SkillKey>STEAL</SkillKey><BoostCount>1</BoostCount>"
            "</DieModifier></DieModifiers></Item>"
        )["Item"]

        descriptors = list(iter_descriptors(node))

        assert descriptors == [{"Key": "STEAL", "SkillKey": "STEAL", "BoostCount": "1"}]

    def test_modifier_map(self):
        """Unknown descriptors are skipped and later ones replace earlier ones."""
        node = [
            {"Key": "ATHL", "Count": "1"},
            {"Key": "UNKNOWN", "Count": "1"},
            {"Key": "ATHL", "BoostCount": "2"},
        ]

        attributes = build_modifier_map(node)

        assert attributes == {"Athletics": {"mod": "Athletics", "modtype": "Skill Boost", "value": 2}}

    def test_empty(self):
        assert build_modifier_map(None) == {}


class TestStatAttributes:
    def test_stats(self):
        attributes = build_stat_attributes({"SoakValue": "2", "DefenseMelee": "1", "Price": "500"})

        assert attributes == {
            "Soak": {"mod": "Soak", "modtype": "Stat", "value": 2},
            "Defence-Melee": {"mod": "Defence-Melee", "modtype": "Stat", "value": 1},
        }

    def test_not_a_mapping(self):
        assert build_stat_attributes(None) == {}


@pytest.mark.anyio
class TestQualities:
    """Test quality rendering against journal entries."""

    async def test_linked_and_plain(self, storage, catalogs):
        catalogs.add_catalog("oggdude-qualities", "JournalEntry", [
            make_entity("j1", "PIERCE", "Pierce", "base"),
        ])
        resolver = ReferenceResolver(catalogs, storage, ImportContext())

        result = await build_qualities(
            [{"Key": "PIERCE", "Count": "2"}, {"Key": "STUN"}], resolver
        )

        assert result.qualities[0] == (
            '<a class="entity-link" draggable="true" data-pack="oggdude-qualities" data-id="j1">PIERCE 2</a>'
        )
        assert result.qualities[1] == "STUN"
        assert result.attributes == {}

    async def test_defensive(self, storage, catalogs):
        """The defensive quality grants melee defence under a random key."""
        resolver = ReferenceResolver(catalogs, storage, ImportContext())

        result = await build_qualities({"Key": "DEFENSIVE", "Count": "1"}, resolver)

        (key, attribute), = result.attributes.items()
        assert key.startswith("attr")
        assert len(key) == 20
        assert attribute == {"isCheckbox": False, "mod": "Defence-Melee", "modtype": "Stat", "value": 1}

    async def test_empty(self, storage, catalogs):
        resolver = ReferenceResolver(catalogs, storage, ImportContext())

        assert await build_qualities(None, resolver) is None
