"""Role, ability, assignment and permission models.

Actors (users, roles, or any other model acting as an authority) and
subjects are referenced polymorphically through ``*_type`` / ``*_id``
column pairs, so any mapped class can take part without a foreign key.
"""

from typing import Any

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rolegate.core.constants import (
    DEFAULT_GUARD,
    MAX_GUARD_LENGTH,
    MAX_MORPH_KEY_LENGTH,
    MAX_MORPH_TYPE_LENGTH,
    MAX_NAME_LENGTH,
    MAX_TITLE_LENGTH,
)
from rolegate.core.database.base import Base, BoundaryMixin, ScopeMixin, TimestampMixin
from rolegate.modules.identity.titles import ability_title, role_title


def compile_identifier(
    name: str,
    subject_type: str | None = None,
    subject_id: str | None = None,
    only_owned: bool = False,
) -> str:
    """Build a readable identifier for logs and reprs.

    Not unique: matching always compares the underlying columns.

    Examples:
        >>> compile_identifier("edit", "Post", "5")
        'edit-Post-5'
        >>> compile_identifier("*", "Post", only_owned=True)
        '*-Post-owned'
    """
    parts = [name, subject_type, subject_id, "owned" if only_owned else None]
    return "-".join(part for part in parts if part is not None)


class Ability(Base, ScopeMixin, BoundaryMixin, TimestampMixin):
    """A named permission unit, optionally bound to a subject type or instance.

    A NULL subject_type is a simple ability. A subject_type with a NULL
    subject_id is a blanket grant over the whole type. A subject_type of
    ``"*"`` covers every type.
    """

    __tablename__ = "abilities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), index=True)
    title: Mapped[str | None] = mapped_column(String(MAX_TITLE_LENGTH), nullable=True)
    guard_name: Mapped[str] = mapped_column(
        String(MAX_GUARD_LENGTH),
        default=DEFAULT_GUARD,
        index=True,
    )
    subject_type: Mapped[str | None] = mapped_column(
        String(MAX_MORPH_TYPE_LENGTH),
        nullable=True,
    )
    subject_id: Mapped[str | None] = mapped_column(
        String(MAX_MORPH_KEY_LENGTH),
        nullable=True,
    )
    only_owned: Mapped[bool] = mapped_column(Boolean, default=False)
    options: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    permissions: Mapped[list["Permission"]] = relationship(
        back_populates="ability",
        cascade="all, delete-orphan",
    )

    @property
    def identifier(self) -> str:
        return compile_identifier(self.name, self.subject_type, self.subject_id, bool(self.only_owned))

    def __repr__(self) -> str:
        return f"<Ability(id={self.id}, identifier={self.identifier!r})>"


class Role(Base, ScopeMixin, TimestampMixin):
    """A named group of abilities assignable to actors."""

    __tablename__ = "roles"
    __table_args__ = (UniqueConstraint("name", "guard_name", "scope", name="uq_role_name_guard_scope"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(MAX_NAME_LENGTH), index=True)
    title: Mapped[str | None] = mapped_column(String(MAX_TITLE_LENGTH), nullable=True)
    guard_name: Mapped[str] = mapped_column(
        String(MAX_GUARD_LENGTH),
        default=DEFAULT_GUARD,
        index=True,
    )

    assignments: Mapped[list["AssignedRole"]] = relationship(
        back_populates="role",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name!r}, guard={self.guard_name!r})>"


class AssignedRole(Base, ScopeMixin, BoundaryMixin):
    """Edge recording that an actor holds a role."""

    __tablename__ = "assigned_roles"
    __table_args__ = (
        UniqueConstraint(
            "role_id",
            "actor_id",
            "actor_type",
            "boundary_id",
            "boundary_type",
            "scope",
            name="uq_assigned_role",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    role_id: Mapped[int] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"),
        index=True,
    )
    actor_id: Mapped[str] = mapped_column(String(MAX_MORPH_KEY_LENGTH))
    actor_type: Mapped[str] = mapped_column(String(MAX_MORPH_TYPE_LENGTH))
    restricted_to_id: Mapped[str | None] = mapped_column(
        String(MAX_MORPH_KEY_LENGTH),
        nullable=True,
    )
    restricted_to_type: Mapped[str | None] = mapped_column(
        String(MAX_MORPH_TYPE_LENGTH),
        nullable=True,
    )

    role: Mapped["Role"] = relationship(back_populates="assignments")

    def __repr__(self) -> str:
        return f"<AssignedRole(role_id={self.role_id}, actor={self.actor_type}:{self.actor_id})>"


class Permission(Base, ScopeMixin, BoundaryMixin):
    """Edge granting (or forbidding) an ability to an actor.

    A NULL actor_id grants the ability to everyone.
    """

    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint(
            "ability_id",
            "actor_id",
            "actor_type",
            "boundary_id",
            "boundary_type",
            "forbidden",
            "scope",
            name="uq_permission",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ability_id: Mapped[int] = mapped_column(
        ForeignKey("abilities.id", ondelete="CASCADE"),
        index=True,
    )
    actor_id: Mapped[str | None] = mapped_column(
        String(MAX_MORPH_KEY_LENGTH),
        nullable=True,
    )
    actor_type: Mapped[str | None] = mapped_column(
        String(MAX_MORPH_TYPE_LENGTH),
        nullable=True,
    )
    forbidden: Mapped[bool] = mapped_column(Boolean, default=False)

    ability: Mapped["Ability"] = relationship(back_populates="permissions")

    def __repr__(self) -> str:
        actor = "everyone" if self.actor_id is None else f"{self.actor_type}:{self.actor_id}"
        return f"<Permission(ability_id={self.ability_id}, actor={actor}, forbidden={self.forbidden})>"


@event.listens_for(Ability, "before_insert")
def _set_ability_title(mapper: Any, connection: Any, target: Ability) -> None:
    if target.title is None:
        target.title = ability_title(target)


@event.listens_for(Role, "before_insert")
def _set_role_title(mapper: Any, connection: Any, target: Role) -> None:
    if target.title is None:
        target.title = role_title(target)
