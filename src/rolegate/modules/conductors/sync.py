"""Replace an actor's roles or abilities with an exact set."""

from enum import Enum
from typing import Any

import structlog
from sqlalchemy import delete, select

from rolegate.core.errors import ModelNotPersistedError
from rolegate.modules.conductors.abilities import ForbidsAbilities, GivesAbilities
from rolegate.modules.conductors.context import ConductorContext
from rolegate.modules.conductors.lookups import AbilityLookup, find_or_create_role, find_or_create_roles
from rolegate.modules.conductors.roles import AssignsRoles
from rolegate.modules.identity.models import Ability, AssignedRole, Permission, Role


log = structlog.get_logger()


class SyncsRolesAndAbilities:
    """``sync(actor).roles(...)`` / ``.abilities(...)`` / ``.forbidden_abilities(...)``

    Detaches what is not in the given set, then attaches what is missing.
    Both steps run in the caller's transaction, so readers see the old set
    or the new one once the caller commits. Only rows of the current guard
    are touched.

    Args:
        ctx: Session, registry, scope and clipboard to write through
        actor: A persisted model, a Role, or a role name
    """

    def __init__(self, ctx: ConductorContext, actor: Any) -> None:
        self.ctx = ctx
        if isinstance(actor, Enum):
            actor = actor.value
        if isinstance(actor, str):
            actor = find_or_create_role(ctx, actor)
        elif not ctx.registry.exists(actor):
            raise ModelNotPersistedError(actor)
        self.actor = actor

    def roles(self, roles: Any) -> list[Role]:
        """Make the actor hold exactly these roles.

        Returns:
            The Role rows now assigned
        """
        ref = self.ctx.registry.reference(self.actor)
        wanted = find_or_create_roles(self.ctx, roles)
        wanted_ids = {role.id for role in wanted}

        current = (
            select(AssignedRole.role_id)
            .join(Role, Role.id == AssignedRole.role_id)
            .where(
                AssignedRole.actor_type == ref.type,
                AssignedRole.actor_id == ref.key,
                Role.guard_name == self.ctx.guard_name,
            )
        )
        current = self.ctx.scope.apply_to_relation_query(current, AssignedRole)
        detach = set(self.ctx.session.scalars(current).all()) - wanted_ids

        if detach:
            stmt = delete(AssignedRole).where(
                AssignedRole.actor_type == ref.type,
                AssignedRole.actor_id == ref.key,
                AssignedRole.role_id.in_(detach),
            )
            stmt = self.ctx.scope.apply_to_relation_query(stmt, AssignedRole)
            self.ctx.session.execute(stmt)

        if wanted:
            AssignsRoles(self.ctx, wanted).to(self.actor)
        else:
            self.ctx.clipboard.refresh_for(self.actor)

        log.debug("roles_synced", actor_type=ref.type, detached=len(detach), wanted=len(wanted))
        return wanted

    def abilities(self, abilities: Any) -> list[int]:
        """Make the actor's direct grants exactly these abilities.

        Forbids are left alone.
        """
        return self._sync_abilities(abilities, forbidden=False)

    def forbidden_abilities(self, abilities: Any) -> list[int]:
        """Make the actor's direct forbids exactly these abilities."""
        return self._sync_abilities(abilities, forbidden=True)

    def _sync_abilities(self, abilities: Any, forbidden: bool) -> list[int]:
        ref = self.ctx.registry.reference(self.actor)
        wanted = AbilityLookup(self.ctx).ability_ids(abilities)

        current = (
            select(Permission.ability_id)
            .join(Ability, Ability.id == Permission.ability_id)
            .where(
                Permission.actor_type == ref.type,
                Permission.actor_id == ref.key,
                Permission.forbidden == forbidden,
                Ability.guard_name == self.ctx.guard_name,
            )
        )
        current = self.ctx.scope.apply_to_relation_query(current, Permission)
        detach = set(self.ctx.session.scalars(current).all()) - set(wanted)

        if detach:
            stmt = delete(Permission).where(
                Permission.actor_type == ref.type,
                Permission.actor_id == ref.key,
                Permission.forbidden == forbidden,
                Permission.ability_id.in_(detach),
            )
            stmt = self.ctx.scope.apply_to_relation_query(stmt, Permission)
            self.ctx.session.execute(stmt)

        conductor = ForbidsAbilities if forbidden else GivesAbilities
        conductor(self.ctx, self.actor).to(wanted)

        log.debug("abilities_synced", actor_type=ref.type, forbidden=forbidden, detached=len(detach))
        return wanted
