"""Tests for the per-import context."""

from ffg_import.importers.context import ImportContext
from ffg_import.importers.oggdude.schema import SKILLS


class TestAttributeKeys:
    """Test synthetic attribute key allocation."""

    def test_starts_after_existing(self):
        context = ImportContext()
        attributes = {"attr1": {}, "attr2": {}}

        assert context.next_attribute_key(attributes) == "attr3"

    def test_monotonic(self):
        """Keys keep increasing even when entries are removed."""
        context = ImportContext()
        attributes: dict = {}

        first = context.next_attribute_key(attributes)
        attributes[first] = {}
        del attributes[first]
        second = context.next_attribute_key(attributes)

        assert (first, second) == ("attr1", "attr2")

    def test_skips_taken_keys(self):
        context = ImportContext()
        attributes = {"attr2": {}}

        keys = [context.next_attribute_key(attributes) for _ in range(2)]

        assert keys == ["attr3", "attr4"]

    def test_counters_per_owner(self):
        """Each mapping gets its own counter."""
        context = ImportContext()
        first: dict = {}
        second: dict = {}

        context.next_attribute_key(first)
        context.next_attribute_key(first)

        assert context.next_attribute_key(second) == "attr1"

    def test_prefix(self):
        assert ImportContext().next_attribute_key({}, prefix="upgrade") == "upgrade1"


class TestCache:
    def test_first_duplicate_kept(self):
        context = ImportContext()
        content = [
            {"_id": "a", "flags": {"ffgimportid": "X"}},
            {"_id": "b", "flags": {"ffgimportid": "X"}},
            {"_id": "c"},
        ]

        context.cache_catalog("pack", "Item", content, lambda e: (e.get("flags") or {}).get("ffgimportid"))

        assert context.cached_entity("pack", "Item", "X")["_id"] == "a"
        assert len(context.cache["pack"]) == 1

    def test_type_mismatch(self):
        context = ImportContext()
        context.cache_catalog("pack", "Item", [{"flags": {"ffgimportid": "X"}}], lambda e: e["flags"]["ffgimportid"])

        assert context.cached_entity("pack", "JournalEntry", "X") is None


class TestLifecycle:
    def test_default_skills(self):
        assert ImportContext().skills == SKILLS

    def test_close(self):
        """Closing drops caches and dedup state but keeps warnings."""
        context = ImportContext()
        context.cache_catalog("pack", "Item", [], lambda e: None)
        context.stored_assets.add("worlds/world/a.png")
        context.next_attribute_key({})
        context.warn("species", "Unable to add species X to character.")

        context.close()

        assert context.closed is True
        assert context.cache == {}
        assert context.stored_assets == set()
        assert len(context.warnings) == 1

    def test_context_manager(self):
        with ImportContext() as context:
            context.stored_assets.add("a")

        assert context.closed is True
        assert context.stored_assets == set()
