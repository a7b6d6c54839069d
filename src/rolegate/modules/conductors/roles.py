"""Conductors that assign roles to actors and retract them."""

from typing import Any

import structlog
from sqlalchemy import and_, delete, insert, select

from rolegate.core.errors import ModelNotPersistedError
from rolegate.modules.conductors.context import ConductorContext
from rolegate.modules.conductors.lookups import as_list, find_or_create_roles, find_role_ids
from rolegate.modules.identity.models import AssignedRole, Role


log = structlog.get_logger()


def _persisted_actors(ctx: ConductorContext, actors: Any) -> list[Any]:
    actors = as_list(actors)
    for actor in actors:
        if not ctx.registry.exists(actor):
            raise ModelNotPersistedError(actor)
    return actors


class AssignsRoles:
    """``assign(roles).to(actors)``

    Roles given by name are created when missing. Actors are grouped by
    type so each type costs one lookup and one insert, whatever the number
    of actors.

    Example:
        gate.assign(["editor", "reviewer"]).within(team).to([alice, bob])
    """

    def __init__(self, ctx: ConductorContext, roles: Any) -> None:
        self.ctx = ctx
        self.roles = roles
        self.boundary: Any = None
        self.restricted: Any = None

    def within(self, boundary: Any) -> "AssignsRoles":
        self.boundary = boundary
        return self

    def restricted_to(self, model: Any) -> "AssignsRoles":
        """Record the model the assignment is restricted to."""
        self.restricted = model
        return self

    def to(self, actors: Any) -> list[Role]:
        """Assign the roles to one or more persisted actors.

        Returns:
            The assigned Role rows

        Raises:
            ModelNotPersistedError: If an actor has not been saved
        """
        actors = _persisted_actors(self.ctx, actors)
        roles = find_or_create_roles(self.ctx, self.roles)
        role_ids = [role.id for role in roles]
        if not role_ids or not actors:
            return roles

        edge: dict[str, Any] = {}
        edge.update(self.ctx.morph_attributes("boundary", self.boundary))
        edge.update(self.ctx.morph_attributes("restricted_to", self.restricted))
        edge.update(self.ctx.scope.get_attach_attributes())

        inserted = 0
        for actor_type, keys in self.ctx.registry.group_by_type(actors).items():
            existing = self._existing_pairs(actor_type, keys, role_ids)
            rows = [
                {"role_id": role_id, "actor_id": key, "actor_type": actor_type, **edge}
                for role_id in role_ids
                for key in keys
                if (role_id, key) not in existing
            ]
            if rows:
                self.ctx.session.execute(insert(AssignedRole), rows)
                inserted += len(rows)

        self.ctx.session.flush()
        for actor in actors:
            self.ctx.clipboard.refresh_for(actor)

        log.debug("roles_assigned", roles=[role.name for role in roles], inserted=inserted)
        return roles

    def _existing_pairs(self, actor_type: str, keys: list[str], role_ids: list[int]) -> set[tuple[int, str]]:
        stmt = select(AssignedRole.role_id, AssignedRole.actor_id).where(
            AssignedRole.actor_type == actor_type,
            AssignedRole.actor_id.in_(keys),
            AssignedRole.role_id.in_(role_ids),
        )
        if self.boundary is None:
            stmt = stmt.where(AssignedRole.boundary_id.is_(None))
        else:
            ref = self.ctx.registry.reference(self.boundary)
            stmt = stmt.where(
                and_(AssignedRole.boundary_id == ref.key, AssignedRole.boundary_type == ref.type)
            )
        stmt = self.ctx.scope.apply_to_relation_query(stmt, AssignedRole)
        return {(role_id, actor_id) for role_id, actor_id in self.ctx.session.execute(stmt)}


class RemovesRoles:
    """``retract(roles).from_(actors)``

    Role names are resolved to ids first; names that do not exist are
    ignored.
    """

    def __init__(self, ctx: ConductorContext, roles: Any) -> None:
        self.ctx = ctx
        self.roles = roles

    def from_(self, actors: Any) -> int:
        """Retract the roles from one or more actors.

        Returns:
            Number of assignment rows deleted
        """
        actors = _persisted_actors(self.ctx, actors)
        role_ids = find_role_ids(self.ctx, self.roles)
        if not role_ids or not actors:
            return 0

        deleted = 0
        for actor_type, keys in self.ctx.registry.group_by_type(actors).items():
            stmt = delete(AssignedRole).where(
                AssignedRole.actor_type == actor_type,
                AssignedRole.actor_id.in_(keys),
                AssignedRole.role_id.in_(role_ids),
            )
            stmt = self.ctx.scope.apply_to_relation_query(stmt, AssignedRole)
            deleted += self.ctx.session.execute(stmt).rowcount

        for actor in actors:
            self.ctx.clipboard.refresh_for(actor)

        log.debug("roles_retracted", role_ids=role_ids, deleted=deleted)
        return deleted
