"""
Pytest configuration and fixtures for ffg-character-import tests.

Provides in-memory collaborators and a set of reference packs matching the
sample export in ``fixtures/oggdude``.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path to allow importing ffg_import
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from .helpers import (  # noqa: E402
    FIXTURES_DIR,
    FakeAssetHost,
    FakeCatalogService,
    FakeStorage,
    RecordingProgress,
    make_entity,
)


# Configure anyio to only use asyncio (not trio)
@pytest.fixture
def anyio_backend():
    return "asyncio"


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def catalogs() -> FakeCatalogService:
    return FakeCatalogService()


@pytest.fixture
def asset_host() -> FakeAssetHost:
    return FakeAssetHost()


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def sample_export() -> str:
    """Load the sample OggDude export."""
    with open(FIXTURES_DIR / "kira_voss.xml", encoding="utf-8") as f:
        return f.read()


@pytest.fixture
def reference_catalogs(catalogs: FakeCatalogService) -> FakeCatalogService:
    """Reference packs covering the sample export (minus a few deliberate misses)."""
    catalogs.add_catalog("oggdude-species", "Item", [
        make_entity("sp1", "HUMAN", "Human", "species", {
            "attributes": {
                "attr1": {"mod": "Brawn", "modtype": "Characteristic", "value": 2},
            },
        }),
    ])
    catalogs.add_catalog("oggdude-careers", "Item", [
        make_entity("ca1", "SEEKER", "Seeker", "career", {
            "attributes": {
                "attr1": {"mod": "Athletics", "modtype": "Skill Rank", "value": 3},
            },
        }),
    ])
    catalogs.add_catalog("oggdude-specializations", "Item", [
        make_entity("spec1", "ASCETIC", "Ascetic", "specialization", {
            "attributes": {},
            "talents": {
                "talent0": {"name": "Grit", "itemId": "tal1", "islearned": False, "attributes": {}},
                "talent1": {"name": "Parry", "itemId": "tal2", "islearned": False, "attributes": {}},
                "talent2": {"name": "Dedication", "itemId": "tal3", "islearned": False, "attributes": {}},
            },
        }),
    ])
    catalogs.add_catalog("oggdude-talents", "Item", [
        make_entity("tal1", "GRIT", "Grit", "talent", {
            "ranks": {"ranked": True, "current": 1},
            "activation": {"value": "Passive"},
        }),
        make_entity("tal2", "PARRY", "Parry", "talent", {
            "ranks": {"ranked": True, "current": 1},
            "activation": {"value": "Active (Incidental, Out of Turn)"},
        }),
        make_entity("tal3", "DEDI", "Dedication", "talent", {
            "ranks": {"ranked": True, "current": 2},
            "activation": {"value": "Passive"},
        }),
    ], locked=True)
    catalogs.add_catalog("oggdude-forcepowers", "Item", [
        make_entity("fp1", "SENSE", "Sense", "forcepower", {
            "upgrades": {
                "upgrade0": {"name": "Control", "islearned": False},
                "upgrade1": {"name": "Strength", "islearned": False},
            },
        }),
    ])
    catalogs.add_catalog("oggdude-weapons", "Item", [
        make_entity("w1", "BLASTPIST", "Blaster Pistol", "weapon", {"damage": {"value": 6}}),
    ])
    catalogs.add_catalog("oggdude-armor", "Item", [
        make_entity("a1", "HEAVYCLOTH", "Heavy Clothing", "armour", {"soak": {"value": 1}}),
    ])
    catalogs.add_catalog("oggdude-gear", "Item", [
        make_entity("g1", "STIMPACK", "Stimpack", "gear", {"quantity": {"value": 1}}),
    ])
    return catalogs
