"""Conductors that grant, forbid and revoke abilities.

Usage through a Gatekeeper:
    gate.allow(user).to("edit", post)
    gate.allow("admin").everything()
    gate.forbid(user).to("delete", User)
    gate.allow_everyone().to("view", Post)
    gate.disallow(user).to_own(Account)

Every terminal method writes immediately on the context session and then
refreshes the clipboard.
"""

from enum import Enum
from typing import Any

import structlog
from sqlalchemy import ColumnElement, and_, delete, insert, select

from rolegate.core.constants import WILDCARD
from rolegate.core.errors import ModelNotPersistedError
from rolegate.modules.conductors.context import ConductorContext
from rolegate.modules.conductors.lookups import AbilityLookup, find_or_create_role, find_role
from rolegate.modules.identity.models import Permission, Role


log = structlog.get_logger()


class AbilityConductor:
    """Builder for one permission write.

    Args:
        ctx: Session, registry, scope and clipboard to write through
        actor: A persisted model, a Role, a role name, or None for everyone
    """

    forbidding = False
    removing = False

    def __init__(self, ctx: ConductorContext, actor: Any = None) -> None:
        self.ctx = ctx
        self.actor = actor
        self.boundary: Any = None

    def within(self, boundary: Any) -> "AbilityConductor":
        """Tag the written permissions with a boundary model."""
        self.boundary = boundary
        return self

    def to(self, abilities: Any, subject: Any = None, attributes: dict[str, Any] | None = None) -> list[int]:
        """Write permissions for the given abilities.

        Args:
            abilities: Ability names, ids, models, enum members or a ``{name: subject}`` map
            subject: Model class, persisted instance, ``"*"`` or a list of them
            attributes: Columns for abilities that get created (``title``, ``options``, ``only_owned``)

        Returns:
            Ids of the abilities written (or removed)

        Raises:
            ModelNotPersistedError: If the actor or a subject instance is unsaved
        """
        actor = self._resolve_actor()
        if actor is _ROLE_NOT_FOUND:
            return []

        lookup = AbilityLookup(self.ctx, create=not self.removing)
        ids = lookup.ability_ids(abilities, subject, attributes)

        if self.removing:
            self._disassociate(actor, ids)
        else:
            self._associate(actor, ids)

        self._refresh(actor)
        return ids

    def everything(self, attributes: dict[str, Any] | None = None) -> list[int]:
        """Every ability on every subject."""
        return self.to(WILDCARD, WILDCARD, attributes)

    def to_manage(self, subject: Any, attributes: dict[str, Any] | None = None) -> list[int]:
        """Every ability on a class or instance."""
        return self.to(WILDCARD, subject, attributes)

    def to_own(
        self,
        subject: Any,
        abilities: Any = WILDCARD,
        attributes: dict[str, Any] | None = None,
    ) -> list[int]:
        """Abilities on a subject that only apply when the actor owns it."""
        owned = {**(attributes or {}), "only_owned": True}
        return self.to(abilities, subject, owned)

    def to_own_everything(self, abilities: Any = WILDCARD, attributes: dict[str, Any] | None = None) -> list[int]:
        return self.to_own(WILDCARD, abilities, attributes)

    # ============================================================
    # Internals
    # ============================================================

    def _resolve_actor(self) -> Any:
        actor = self.actor
        if actor is None:
            return None

        if isinstance(actor, Enum):
            actor = actor.value
        if isinstance(actor, str):
            if not self.removing:
                return find_or_create_role(self.ctx, actor)
            role = find_role(self.ctx, actor)
            if role is None:
                log.info("role_not_found", role=actor, guard=self.ctx.guard_name)
                return _ROLE_NOT_FOUND
            return role

        if not self.ctx.registry.exists(actor):
            raise ModelNotPersistedError(actor)
        return actor

    def _actor_clause(self, actor: Any) -> ColumnElement[bool]:
        if actor is None:
            return Permission.actor_id.is_(None)
        ref = self.ctx.registry.reference(actor)
        return and_(Permission.actor_type == ref.type, Permission.actor_id == ref.key)

    def _boundary_clause(self) -> ColumnElement[bool]:
        if self.boundary is None:
            return and_(Permission.boundary_id.is_(None), Permission.boundary_type.is_(None))
        ref = self.ctx.registry.reference(self.boundary)
        return and_(Permission.boundary_id == ref.key, Permission.boundary_type == ref.type)

    def _associate(self, actor: Any, ability_ids: list[int]) -> None:
        if not ability_ids:
            return

        stmt = select(Permission.ability_id).where(
            self._actor_clause(actor),
            self._boundary_clause(),
            Permission.forbidden == self.forbidding,
            Permission.ability_id.in_(ability_ids),
        )
        stmt = self.ctx.scope.apply_to_relation_query(stmt, Permission)
        existing = set(self.ctx.session.scalars(stmt).all())

        edge: dict[str, Any] = {"actor_id": None, "actor_type": None, "forbidden": self.forbidding}
        if actor is not None:
            edge.update(self.ctx.morph_attributes("actor", actor))
        edge.update(self.ctx.morph_attributes("boundary", self.boundary))
        edge.update(self.ctx.scope.get_attach_attributes(for_role=isinstance(actor, Role)))

        rows = [{"ability_id": ability_id, **edge} for ability_id in ability_ids if ability_id not in existing]
        if rows:
            self.ctx.session.execute(insert(Permission), rows)
            self.ctx.session.flush()

        log.debug(
            "permissions_written",
            forbidden=self.forbidding,
            inserted=len(rows),
            skipped=len(ability_ids) - len(rows),
        )

    def _disassociate(self, actor: Any, ability_ids: list[int]) -> None:
        if not ability_ids:
            return

        stmt = delete(Permission).where(
            self._actor_clause(actor),
            Permission.forbidden == self.forbidding,
            Permission.ability_id.in_(ability_ids),
        )
        if self.boundary is not None:
            stmt = stmt.where(self._boundary_clause())
        stmt = self.ctx.scope.apply_to_relation_query(stmt, Permission)

        result = self.ctx.session.execute(stmt)
        log.debug("permissions_removed", forbidden=self.forbidding, deleted=result.rowcount)

    def _refresh(self, actor: Any) -> None:
        if actor is None or isinstance(actor, Role):
            self.ctx.clipboard.refresh()
        else:
            self.ctx.clipboard.refresh_for(actor)


class GivesAbilities(AbilityConductor):
    """``allow(actor)``"""


class ForbidsAbilities(AbilityConductor):
    """``forbid(actor)``"""

    forbidding = True


class RemovesAbilities(AbilityConductor):
    """``disallow(actor)`` - removes grants, leaves forbids alone."""

    removing = True


class UnforbidsAbilities(AbilityConductor):
    """``unforbid(actor)`` - removes forbids; previously removed grants stay removed."""

    forbidding = True
    removing = True


_ROLE_NOT_FOUND = object()
