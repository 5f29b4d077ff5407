"""User model for authentication and role assignment."""
from __future__ import annotations

from sqlalchemy import Boolean, String, true
from sqlalchemy.orm import Mapped, mapped_column

from fieldops.database import Base
from fieldops.models.base import IntegerPrimaryKeyMixin, TimestampMixin


class User(IntegerPrimaryKeyMixin, TimestampMixin, Base):
    """A platform user: staff, artisan, customer, property manager or contractor.

    ``role`` holds either a built-in role name or the name of a custom role.
    It is validated against the role registry when assigned, not on read.
    """
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(200), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    role: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    contractor_company_name: Mapped[str | None] = mapped_column(String(200))
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=true()
    )

    def __repr__(self) -> str:
        return f"<User {self.email!r} role={self.role!r}>"
