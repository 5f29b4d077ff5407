"""
Tests 201-206: Configuration cache lifecycle.

EMPTY -> POPULATED on first read, -> EMPTY on any write, with generation
checks so a load that raced an invalidation is discarded.
"""
from fieldops.services.cache import CUSTOM_ROLES, EFFECTIVE_PERMISSIONS, ConfigCache


class TestConfigCache:

    def test_201_starts_empty(self):
        cache = ConfigCache()
        assert cache.get(EFFECTIVE_PERMISSIONS) is None
        assert cache.size() == 0

    def test_202_set_with_current_generation_populates(self):
        cache = ConfigCache()
        assert cache.set(EFFECTIVE_PERMISSIONS, {"ADMIN": frozenset()}, cache.generation)
        assert cache.get(EFFECTIVE_PERMISSIONS) == {"ADMIN": frozenset()}

    def test_203_invalidate_clears_every_slot(self):
        cache = ConfigCache()
        cache.set(EFFECTIVE_PERMISSIONS, {}, cache.generation)
        cache.set(CUSTOM_ROLES, (), cache.generation)
        assert cache.size() == 2
        cache.invalidate()
        assert cache.size() == 0

    def test_204_invalidate_advances_generation(self):
        cache = ConfigCache()
        before = cache.generation
        cache.invalidate()
        assert cache.generation == before + 1

    def test_205_stale_load_is_discarded(self):
        """A value loaded before an invalidation must not repopulate the cache."""
        cache = ConfigCache()
        observed = cache.generation
        cache.invalidate()
        assert not cache.set(EFFECTIVE_PERMISSIONS, {"STALE": frozenset()}, observed)
        assert cache.get(EFFECTIVE_PERMISSIONS) is None

    def test_206_independent_instances(self):
        a, b = ConfigCache(), ConfigCache()
        a.set(CUSTOM_ROLES, ("X",), a.generation)
        assert b.get(CUSTOM_ROLES) is None
