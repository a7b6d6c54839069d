"""Database layer - base models, mixins, sessions and scoping."""

from rolegate.core.database.base import Base, BoundaryMixin, ScopeMixin, TimestampMixin
from rolegate.core.database.scope import Scope
from rolegate.core.database.session import (
    create_db_engine,
    create_session_factory,
    enable_sqlite_foreign_keys,
    session_scope,
)


__all__ = [
    "Base",
    "BoundaryMixin",
    "Scope",
    "ScopeMixin",
    "TimestampMixin",
    "create_db_engine",
    "create_session_factory",
    "enable_sqlite_foreign_keys",
    "session_scope",
]
