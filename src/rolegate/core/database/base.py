"""SQLAlchemy declarative base and common mixins."""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from rolegate.core.constants import MAX_MORPH_KEY_LENGTH, MAX_MORPH_TYPE_LENGTH, MAX_SCOPE_LENGTH


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ScopeMixin:
    """Mixin that adds the tenancy scope discriminator.

    A NULL scope means the row is visible from every scope.
    """

    scope: Mapped[str | None] = mapped_column(
        String(MAX_SCOPE_LENGTH),
        index=True,
        nullable=True,
    )


class BoundaryMixin:
    """Mixin that adds a polymorphic boundary (context) reference."""

    boundary_id: Mapped[str | None] = mapped_column(
        String(MAX_MORPH_KEY_LENGTH),
        nullable=True,
    )
    boundary_type: Mapped[str | None] = mapped_column(
        String(MAX_MORPH_TYPE_LENGTH),
        nullable=True,
    )
