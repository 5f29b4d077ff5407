"""Base model utilities.

Provides an integer primary-key mixin and created/updated timestamp columns
shared by every table.
"""
from __future__ import annotations

import datetime

from sqlalchemy import func
from sqlalchemy.orm import Mapped, mapped_column


class IntegerPrimaryKeyMixin:
    """Mixin that adds an autoincrementing integer primary key named ``id``."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)


class TimestampMixin:
    created_at: Mapped[datetime.datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
