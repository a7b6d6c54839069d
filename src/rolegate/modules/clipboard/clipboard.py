"""Clipboard that queries the database on every check."""

from typing import Any

from rolegate.modules.clipboard.base import BaseClipboard, CheckResult, RolesLookup
from rolegate.modules.clipboard.queries import abilities_for_actor, has_ability_query, roles_for_actor
from rolegate.modules.identity.models import Ability
from rolegate.modules.identity.schemas import AbilityData
from rolegate.modules.matching.matcher import AbilityRequest, build_request


class Clipboard(BaseClipboard):
    """Real-time clipboard.

    Changes are visible to the very next check, at the cost of two queries
    per check. Suitable for tests and low-traffic paths.
    """

    def check_get_id(self, actor: Any, ability: Any, subject: Any = None) -> CheckResult:
        request = build_request(self.registry, actor, ability, subject)

        # Forbids are checked first and win unconditionally
        if self._first_matching_id(actor, request, allowed=False) is not None:
            return False

        return self._first_matching_id(actor, request, allowed=True)

    def get_abilities(self, actor: Any, allowed: bool = True) -> list[AbilityData]:
        stmt = abilities_for_actor(self.registry, self.scope, actor, self.guard_name, allowed)
        abilities = self.session.scalars(stmt.order_by(Ability.id)).all()
        return [AbilityData.model_validate(ability) for ability in abilities]

    def get_roles_lookup(self, actor: Any) -> RolesLookup:
        rows = self.session.execute(roles_for_actor(self.registry, self.scope, actor, self.guard_name))
        return RolesLookup.from_pairs((row.id, row.name) for row in rows)

    def for_guard(self, guard_name: str) -> "Clipboard":
        return Clipboard(self.session, self.registry, self.scope, guard_name)

    def _first_matching_id(self, actor: Any, request: AbilityRequest, allowed: bool) -> int | None:
        stmt = has_ability_query(
            self.registry,
            self.scope,
            actor,
            self.guard_name,
            request.ability,
            request.subject,
            request.owned,
            allowed,
        )
        return self.session.scalar(stmt.with_only_columns(Ability.id).order_by(Ability.id).limit(1))
