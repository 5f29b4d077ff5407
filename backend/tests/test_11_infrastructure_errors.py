"""
Tests 1101-1106: Record-store failures.

An unreachable or timing-out store must surface as a retryable
``InfrastructureError``, never as "no override" or "no custom roles".
"""
import pytest

from conftest import BASE_URL
from fieldops.errors import InfrastructureError
from fieldops.models import SystemSetting
from fieldops.services.cache import EFFECTIVE_PERMISSIONS


async def _drop_settings_table(engine):
    async with engine.begin() as conn:
        await conn.run_sync(SystemSetting.__table__.drop)


class TestInfrastructureErrors:

    async def test_1101_read_failure_is_not_treated_as_defaults(self, config, engine, cache):
        await _drop_settings_table(engine)
        with pytest.raises(InfrastructureError) as exc_info:
            await config.get_effective()
        assert exc_info.value.retryable
        assert exc_info.value.details == {"retryable": True}
        assert cache.get(EFFECTIVE_PERMISSIONS) is None

    async def test_1102_registry_read_failure(self, registry, engine):
        await _drop_settings_table(engine)
        with pytest.raises(InfrastructureError):
            await registry.get_custom_roles()

    async def test_1103_failed_write_still_invalidates(self, config, engine, cache):
        cache.set(EFFECTIVE_PERMISSIONS, {}, cache.generation)
        generation = cache.generation
        await _drop_settings_table(engine)
        with pytest.raises(InfrastructureError):
            await config.set_effective({"ADMIN": []})
        assert cache.generation > generation

    async def test_1104_timeout_surfaces_as_infrastructure_error(self, store, db, monkeypatch):
        async def _timeout(*args, **kwargs):
            raise TimeoutError("statement timeout")

        monkeypatch.setattr(db, "execute", _timeout)
        with pytest.raises(InfrastructureError, match="find_user_by_email"):
            await store.find_user_by_email("someone@example.com")

    async def test_1105_error_payload_shape(self):
        exc = InfrastructureError("Storage unavailable", details={"retryable": True})
        assert exc.to_dict() == {
            "detail": "Storage unavailable",
            "code": "INFRASTRUCTURE_ERROR",
            "retryable": True,
        }
        assert exc.status_code == 503

    async def test_1106_http_surface_returns_503(self, client, senior_headers, engine):
        await _drop_settings_table(engine)
        r = await client.get(f"{BASE_URL}/api/admin/role-permissions", headers=senior_headers)
        assert r.status_code == 503
        assert r.json()["code"] == "INFRASTRUCTURE_ERROR"
        assert r.json()["retryable"] is True
