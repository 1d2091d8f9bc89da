"""
OggDude character export constants and lookup tables.

These map the generator's internal keys and codes to the names used by the
Star Wars FFG system on the host side.
"""

# ---------------------------------------------------------------------------
# Characteristics
# ---------------------------------------------------------------------------

CHARACTERISTIC_CODES: dict[str, str] = {
    "BR": "Brawn",
    "AG": "Agility",
    "INT": "Intellect",
    "CUN": "Cunning",
    "WIL": "Willpower",
    "PR": "Presence",
}

CHARACTERISTIC_NAMES: list[str] = list(CHARACTERISTIC_CODES.values())

# ---------------------------------------------------------------------------
# Skills: generator key → display name
# ---------------------------------------------------------------------------

SKILLS: dict[str, str] = {
    "ASTRO": "Astrogation",
    "ATHL": "Athletics",
    "BRAWL": "Brawl",
    "CHARM": "Charm",
    "COERC": "Coercion",
    "COMP": "Computers",
    "COOL": "Cool",
    "COORD": "Coordination",
    "DECEP": "Deception",
    "DISC": "Discipline",
    "GUNN": "Gunnery",
    "LEAD": "Leadership",
    "LTSABER": "Lightsaber",
    "MECH": "Mechanics",
    "MED": "Medicine",
    "MELEE": "Melee",
    "NEG": "Negotiation",
    "PERC": "Perception",
    "PILOTPL": "Piloting: Planetary",
    "PILOTSP": "Piloting: Space",
    "RANGHVY": "Ranged: Heavy",
    "RANGLT": "Ranged: Light",
    "RESIL": "Resilience",
    "SKUL": "Skulduggery",
    "STEAL": "Stealth",
    "SW": "Streetwise",
    "SURV": "Survival",
    "VIGIL": "Vigilance",
    "CORE": "Knowledge: Core Worlds",
    "EDU": "Knowledge: Education",
    "LORE": "Knowledge: Lore",
    "OUT": "Knowledge: Outer Rim",
    "UND": "Knowledge: Underworld",
    "WARF": "Knowledge: Warfare",
    "XEN": "Knowledge: Xenology",
    "CYBERNETICS": "Cybernetics",
}

# Skills that are not part of the core rulebook list and need extra metadata
CUSTOM_SKILLS: dict[str, dict] = {
    "CYBERNETICS": {
        "custom": True,
        "type": "General",
        "characteristic": "Intellect",
        "label": "Cybernetics",
    },
}

# ---------------------------------------------------------------------------
# Modifiers
# ---------------------------------------------------------------------------

ENCUMBRANCE_KEY = "ENCTADD"

# Die modifier counters in the order they are applied; a later present
# counter replaces both the modtype and value picked by an earlier one.
DIE_MODIFIER_FIELDS: list[tuple[str, str]] = [
    ("BoostCount", "Skill Boost"),
    ("AddSetbackCount", "Skill Setback"),
    ("SetbackCount", "Skill Remove Setback"),
    ("AdvantageCount", "Skill Add Advantage"),
    ("ThreatCount", "Skill Add Threat"),
    ("SuccessCount", "Skill Add Success"),
    ("FailureCount", "Skill Add Failure"),
]

# Item stat block element → host Stat attribute name
STAT_ATTRIBUTE_FIELDS: dict[str, str] = {
    "SoakValue": "Soak",
    "ForceRating": "ForcePool",
    "StrainThreshold": "Strain",
    "DefenseRanged": "Defence-Ranged",
    "DefenseMelee": "Defence-Melee",
    "WoundThreshold": "Wounds",
}

DEFENSIVE_QUALITY = "DEFENSIVE"

# ---------------------------------------------------------------------------
# Talents and force powers
# ---------------------------------------------------------------------------

TALENT_DEFAULTS: dict = {
    "isRanked": False,
    "rank": 0,
    "activation": "Passive",
    "islearned": False,
}

# The first four abilities of a force power are the base power rows; the
# rest map onto upgrade slots in order.
FORCE_BASE_ABILITY_COUNT = 4

# ---------------------------------------------------------------------------
# Import progress checkpoints (percent)
# ---------------------------------------------------------------------------

PROGRESS_PARSED = 10
PROGRESS_SPECIES = 20
PROGRESS_CAREER = 30
PROGRESS_SPECIALIZATIONS = 40
PROGRESS_FORCE_POWERS = 50
PROGRESS_WEAPONS = 60
PROGRESS_ARMOR = 70
PROGRESS_GEAR = 80
PROGRESS_PORTRAIT = 90
PROGRESS_DONE = 100

# ---------------------------------------------------------------------------
# Asset locations
# ---------------------------------------------------------------------------

CHARACTER_IMAGE_DIR = "worlds/{world}/images/characters"
PACK_IMAGE_DIR = "worlds/{world}/images/packs/{pack}"
