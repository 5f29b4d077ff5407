"""
Tests 401-423: Permission configuration store.

The override document fully replaces the compiled defaults; custom roles the
override does not mention keep their own permission set.
"""
import json

import pytest

from fieldops.errors import InvalidRequest
from fieldops.rbac import (
    BUILT_IN_ROLE_NAMES,
    DEFAULT_ROLE_PERMISSIONS,
    ROLE_PERMISSIONS_KEY,
    Permission,
)
from fieldops.services.cache import EFFECTIVE_PERMISSIONS
from fieldops.services.role_registry import RoleDefinition

P = Permission


class TestEffectiveConfiguration:

    async def test_401_defaults_when_no_override(self, config):
        assert await config.get_effective() == DEFAULT_ROLE_PERMISSIONS
        assert not await config.is_override_active()

    async def test_402_get_defaults_is_a_copy(self, config):
        defaults = config.get_defaults()
        defaults.pop("ADMIN")
        assert "ADMIN" in config.get_defaults()

    async def test_403_override_fully_replaces_defaults(self, config):
        """Roles omitted from the override end up with no permissions."""
        await config.set_effective({"SENIOR_ADMIN": ["MANAGE_SYSTEM_SETTINGS"]})
        effective = await config.get_effective()
        assert effective == {"SENIOR_ADMIN": frozenset({P.MANAGE_SYSTEM_SETTINGS})}
        assert await config.permissions_for("ADMIN") == frozenset()
        assert await config.is_override_active()

    async def test_404_round_trip(self, config):
        new_map = {
            "ADMIN": [],
            "CUSTOMER": ["VIEW_OWN_ORDERS", "VIEW_PAYMENT_REQUESTS"],
            "STAFF": ["VIEW_MAINTENANCE_REQUESTS"],
        }
        await config.set_effective(new_map)
        assert await config.get_effective() == {
            role: frozenset(P(p) for p in perms) for role, perms in new_map.items()
        }

    async def test_405_set_effective_persists_sorted_json(self, config, store):
        await config.set_effective({"CUSTOMER": ["VIEW_OWN_ORDERS", "CREATE_REVIEWS"]})
        stored = json.loads(await store.get_config_blob(ROLE_PERMISSIONS_KEY))
        assert stored == {"CUSTOMER": ["CREATE_REVIEWS", "VIEW_OWN_ORDERS"]}

    async def test_406_unknown_role_rejected(self, config, store):
        with pytest.raises(InvalidRequest) as exc_info:
            await config.set_effective({"GHOST": ["VIEW_KPI"]})
        assert exc_info.value.details["unknown_roles"] == ["GHOST"]
        assert not await store.has_config_blob(ROLE_PERMISSIONS_KEY)

    async def test_407_unknown_permission_rejected(self, config, store):
        with pytest.raises(InvalidRequest) as exc_info:
            await config.set_effective({"ADMIN": ["VIEW_KPI", "TIME_TRAVEL"]})
        assert exc_info.value.details["unknown_permissions"] == ["TIME_TRAVEL"]
        assert not await store.has_config_blob(ROLE_PERMISSIONS_KEY)

    async def test_408_reset_restores_defaults(self, config):
        await config.set_effective({"ADMIN": []})
        await config.reset()
        assert await config.get_effective() == config.get_defaults()
        assert not await config.is_override_active()

    async def test_409_reset_without_override_is_harmless(self, config):
        await config.reset()
        assert await config.get_effective() == config.get_defaults()

    async def test_410_unparsable_override_falls_back_to_defaults(self, config, store):
        await store.set_config_blob(ROLE_PERMISSIONS_KEY, "[[[")
        assert await config.get_effective() == DEFAULT_ROLE_PERMISSIONS
        assert await config.is_override_active()

    async def test_411_unknown_stored_permission_dropped(self, config, store):
        await store.set_config_blob(
            ROLE_PERMISSIONS_KEY,
            json.dumps({"CUSTOMER": ["VIEW_OWN_ORDERS", "RETIRED_PERMISSION"]}),
        )
        assert await config.permissions_for("CUSTOMER") == {P.VIEW_OWN_ORDERS}

    async def test_412_stored_entry_for_unknown_role_dropped(self, config, store):
        await store.set_config_blob(
            ROLE_PERMISSIONS_KEY,
            json.dumps({"CUSTOMER": ["VIEW_OWN_ORDERS"], "DELETED_ROLE": ["VIEW_KPI"]}),
        )
        assert set(await config.get_effective()) == {"CUSTOMER"}


class TestCustomRoleLayering:

    async def test_413_custom_role_permissions_layered_on_defaults(self, config, registry):
        await registry.create_custom_role(
            RoleDefinition(name="AUDITOR", permissions=frozenset({P.VIEW_KPI}))
        )
        effective = await config.get_effective()
        assert effective["AUDITOR"] == {P.VIEW_KPI}
        for name in BUILT_IN_ROLE_NAMES:
            assert effective.get(name, frozenset()) == DEFAULT_ROLE_PERMISSIONS.get(name, frozenset())

    async def test_414_override_entry_wins_over_definition(self, config, registry):
        await registry.create_custom_role(
            RoleDefinition(name="AUDITOR", permissions=frozenset({P.VIEW_KPI}))
        )
        await config.set_effective({"AUDITOR": ["VIEW_ASSETS"]})
        assert await config.permissions_for("AUDITOR") == {P.VIEW_ASSETS}

    async def test_415_custom_role_kept_under_override_that_omits_it(self, config, registry):
        await registry.create_custom_role(
            RoleDefinition(name="AUDITOR", permissions=frozenset({P.VIEW_KPI}))
        )
        await config.set_effective({"ADMIN": []})
        assert await config.permissions_for("AUDITOR") == {P.VIEW_KPI}

    async def test_416_deleted_role_mapping_purged(self, config, registry):
        await registry.create_custom_role(RoleDefinition(name="AUDITOR"))
        await config.set_effective({"AUDITOR": ["VIEW_KPI"], "ADMIN": []})
        await registry.delete_custom_role("AUDITOR")
        effective = await config.get_effective()
        assert "AUDITOR" not in effective
        assert await config.permissions_for("AUDITOR") == frozenset()

    async def test_417_role_update_visible_immediately(self, config, registry):
        await registry.create_custom_role(RoleDefinition(name="AUDITOR"))
        assert await config.permissions_for("AUDITOR") == frozenset()
        await registry.update_custom_role(
            RoleDefinition(name="AUDITOR", permissions=frozenset({P.VIEW_ASSETS}))
        )
        assert await config.permissions_for("AUDITOR") == {P.VIEW_ASSETS}


class TestConfigurationCaching:

    async def test_418_effective_map_is_cached(self, config, cache):
        await config.get_effective()
        assert cache.get(EFFECTIVE_PERMISSIONS) is not None

    async def test_419_returned_map_does_not_alias_cache(self, config):
        effective = await config.get_effective()
        effective["CUSTOMER"] = frozenset()
        assert await config.permissions_for("CUSTOMER") == DEFAULT_ROLE_PERMISSIONS["CUSTOMER"]

    async def test_420_write_visible_on_very_next_read(self, config):
        assert Permission.VIEW_PAYMENT_REQUESTS in await config.permissions_for("ADMIN")
        await config.set_effective({"ADMIN": []})
        assert await config.permissions_for("ADMIN") == frozenset()
        await config.reset()
        assert Permission.VIEW_PAYMENT_REQUESTS in await config.permissions_for("ADMIN")


class TestOverrideFollowsRoleWrites:

    async def test_421_recreated_role_does_not_inherit_old_mapping(self, config, registry, store):
        await registry.create_custom_role(RoleDefinition(name="AUDITOR"))
        await config.set_effective({"AUDITOR": ["MANAGE_SYSTEM_SETTINGS"], "ADMIN": []})
        await registry.delete_custom_role("AUDITOR")
        assert json.loads(await store.get_config_blob(ROLE_PERMISSIONS_KEY)) == {"ADMIN": []}

        await registry.create_custom_role(
            RoleDefinition(name="AUDITOR", permissions=frozenset({P.VIEW_KPI}))
        )
        assert await config.permissions_for("AUDITOR") == {P.VIEW_KPI}

    async def test_422_update_revokes_permission_listed_in_override(self, config, registry):
        await registry.create_custom_role(
            RoleDefinition(name="AUDITOR", permissions=frozenset({P.VIEW_ASSETS}))
        )
        await config.set_effective({"AUDITOR": ["VIEW_ASSETS"], "ADMIN": []})
        await registry.update_custom_role(RoleDefinition(name="AUDITOR"))
        assert await config.permissions_for("AUDITOR") == frozenset()
        assert await config.permissions_for("ADMIN") == frozenset()

    async def test_423_role_write_leaves_override_without_entry_alone(self, config, registry, store):
        await config.set_effective({"ADMIN": []})
        await registry.create_custom_role(
            RoleDefinition(name="AUDITOR", permissions=frozenset({P.VIEW_KPI}))
        )
        assert json.loads(await store.get_config_blob(ROLE_PERMISSIONS_KEY)) == {"ADMIN": []}
        assert await config.permissions_for("AUDITOR") == {P.VIEW_KPI}
