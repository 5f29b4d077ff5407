"""Key/value system settings used for persisted access-control configuration."""
from __future__ import annotations

import datetime

from sqlalchemy import String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from fieldops.database import Base


class SystemSetting(Base):
    """One serialized configuration document per key.

    The role-permission override and the custom-role collection each live
    under a single key, so a write always replaces the whole document.
    """
    __tablename__ = "system_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<SystemSetting {self.key!r}>"
