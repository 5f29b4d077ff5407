"""Record store used by the access-control engine.

A thin wrapper over an ``AsyncSession`` exposing only the lookups and writes
the engine needs. Database failures and timeouts surface as
``InfrastructureError`` so callers never mistake an outage for "no data".
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.errors import InfrastructureError
from fieldops.models import SystemSetting, User

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _guard(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except (SQLAlchemyError, TimeoutError) as exc:
            logger.error(f"Record store {operation} failed: {exc}")
            await self._safe_rollback()
            raise InfrastructureError(
                f"Storage unavailable during {operation}. Please retry.",
                details={"retryable": True},
            ) from exc

    async def _safe_rollback(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError as exc:
            logger.warning(f"Rollback after storage failure also failed: {exc}")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def find_user_by_id(self, user_id: int) -> User | None:
        return await self._guard("find_user_by_id", self.db.get(User, user_id))

    async def find_user_by_email(self, email: str) -> User | None:
        async def _query() -> User | None:
            result = await self.db.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()

        return await self._guard("find_user_by_email", _query())

    async def count_users_with_role(self, role: str) -> int:
        async def _query() -> int:
            stmt = select(func.count()).select_from(User).where(User.role == role)
            result = await self.db.execute(stmt)
            return int(result.scalar() or 0)

        return await self._guard("count_users_with_role", _query())

    async def list_users(self, role: str | None = None) -> list[User]:
        async def _query() -> list[User]:
            stmt = select(User).order_by(User.id)
            if role is not None:
                stmt = stmt.where(User.role == role)
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

        return await self._guard("list_users", _query())

    async def add_user(self, user: User) -> User:
        async def _write() -> User:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
            return user

        return await self._guard("add_user", _write())

    async def set_user_role(self, user: User, role: str) -> User:
        async def _write() -> User:
            user.role = role
            await self.db.commit()
            await self.db.refresh(user)
            return user

        return await self._guard("set_user_role", _write())

    # ------------------------------------------------------------------
    # Configuration blobs
    # ------------------------------------------------------------------

    async def get_config_blob(self, key: str) -> str | None:
        async def _query() -> str | None:
            result = await self.db.execute(
                select(SystemSetting.value).where(SystemSetting.key == key)
            )
            return result.scalar_one_or_none()

        return await self._guard("get_config_blob", _query())

    async def has_config_blob(self, key: str) -> bool:
        async def _query() -> bool:
            result = await self.db.execute(
                select(func.count()).select_from(SystemSetting).where(SystemSetting.key == key)
            )
            return bool(result.scalar())

        return await self._guard("has_config_blob", _query())

    async def set_config_blob(self, key: str, value: str) -> None:
        """Upsert the document under *key* and commit immediately."""

        async def _write() -> None:
            existing = await self.db.get(SystemSetting, key)
            if existing is None:
                self.db.add(SystemSetting(key=key, value=value))
            else:
                existing.value = value
            await self.db.commit()

        await self._guard("set_config_blob", _write())

    async def delete_config_blob(self, key: str) -> bool:
        """Delete the document under *key*. Returns ``False`` if it was absent."""

        async def _write() -> bool:
            existing = await self.db.get(SystemSetting, key)
            if existing is None:
                return False
            await self.db.delete(existing)
            await self.db.commit()
            return True

        return await self._guard("delete_config_blob", _write())
