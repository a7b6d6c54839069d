"""Gatekeeper - the single entry point for granting and checking access.

A Gatekeeper bundles everything one unit of work needs: the SQLAlchemy
session, the model registry, the tenancy scope, the guard and the
clipboard. Nothing is global; create one per request (or per worker) and
share the registry between them.

Example:
    gate = Gatekeeper(session, registry)

    gate.allow("admin").to("ban-users")
    gate.assign("admin").to(user)
    session.commit()

    if gate.can(user, "ban-users"):
        ...
"""

from typing import Any

from sqlalchemy import Select
from sqlalchemy.orm import Session

from rolegate.config import settings
from rolegate.core.cache.memory import MemoryCacheStore
from rolegate.core.cache.store import CacheStore
from rolegate.core.constants import ROLE_CHECK_ANY
from rolegate.core.database.scope import Scope
from rolegate.modules.clipboard.base import BaseClipboard, Decision
from rolegate.modules.clipboard.cached import CachedClipboard
from rolegate.modules.clipboard.clipboard import Clipboard
from rolegate.modules.clipboard.queries import actors_with_roles
from rolegate.modules.conductors.abilities import (
    ForbidsAbilities,
    GivesAbilities,
    RemovesAbilities,
    UnforbidsAbilities,
)
from rolegate.modules.conductors.checks import ChecksRoles
from rolegate.modules.conductors.context import ConductorContext
from rolegate.modules.conductors.lookups import as_list
from rolegate.modules.conductors.roles import AssignsRoles, RemovesRoles
from rolegate.modules.conductors.sync import SyncsRolesAndAbilities
from rolegate.modules.identity.models import Role
from rolegate.modules.identity.registry import ModelRegistry, OwnershipRule
from rolegate.modules.maintenance.cleanup import AbilityCleaner, CleanupResult
from rolegate.modules.matching.matcher import normalize_ability_name


class Gatekeeper:
    """Facade over the conductors and the clipboard.

    Args:
        session: Session every read and write runs on; the caller commits
        registry: Type tags, keys and ownership rules (a fresh one by default)
        scope: Tenancy scope (unscoped by default)
        guard_name: Permission universe to work in
        store: Cache store; when given, checks go through a CachedClipboard
    """

    def __init__(
        self,
        session: Session,
        registry: ModelRegistry | None = None,
        scope: Scope | None = None,
        guard_name: str | None = None,
        store: CacheStore | None = None,
        clipboard: BaseClipboard | None = None,
    ) -> None:
        self.session = session
        self.registry = registry if registry is not None else ModelRegistry()
        self.scope = scope if scope is not None else Scope()
        self.guard_name = guard_name or settings.guard
        self.store = store
        self.clipboard = clipboard if clipboard is not None else self._make_clipboard()

    # ============================================================
    # Writes
    # ============================================================

    def allow(self, actor: Any) -> GivesAbilities:
        """Grant abilities to a model, a Role or a role name (created if missing)."""
        return GivesAbilities(self.context(), actor)

    def allow_everyone(self) -> GivesAbilities:
        return GivesAbilities(self.context(), None)

    def disallow(self, actor: Any) -> RemovesAbilities:
        """Remove granted abilities; forbids are untouched."""
        return RemovesAbilities(self.context(), actor)

    def disallow_everyone(self) -> RemovesAbilities:
        return RemovesAbilities(self.context(), None)

    def forbid(self, actor: Any) -> ForbidsAbilities:
        """Forbid abilities; a matching forbid always beats a grant."""
        return ForbidsAbilities(self.context(), actor)

    def forbid_everyone(self) -> ForbidsAbilities:
        return ForbidsAbilities(self.context(), None)

    def unforbid(self, actor: Any) -> UnforbidsAbilities:
        return UnforbidsAbilities(self.context(), actor)

    def unforbid_everyone(self) -> UnforbidsAbilities:
        return UnforbidsAbilities(self.context(), None)

    def assign(self, roles: Any) -> AssignsRoles:
        return AssignsRoles(self.context(), roles)

    def retract(self, roles: Any) -> RemovesRoles:
        return RemovesRoles(self.context(), roles)

    def sync(self, actor: Any) -> SyncsRolesAndAbilities:
        return SyncsRolesAndAbilities(self.context(), actor)

    # ============================================================
    # Checks
    # ============================================================

    def can(self, actor: Any, ability: Any, subject: Any = None) -> bool:
        return self.clipboard.check(actor, ability, subject)

    def cannot(self, actor: Any, ability: Any, subject: Any = None) -> bool:
        return not self.can(actor, ability, subject)

    def can_any(self, actor: Any, abilities: Any, subject: Any = None) -> bool:
        """Check whether any of several abilities is allowed."""
        return any(self.can(actor, ability, subject) for ability in as_list(abilities))

    def decide(self, actor: Any, ability: Any, subject: Any = None) -> Decision:
        """Resolve a request without collapsing Deny and Abstain.

        Integrations that consult other authorization sources should fall
        through on ABSTAIN and stop on DENY.
        """
        return self.clipboard.decide(actor, ability, subject)

    def is_(self, actor: Any) -> ChecksRoles:
        return ChecksRoles(self.clipboard, actor)

    def actors_with_roles(self, model: type, roles: Any, mode: str = ROLE_CHECK_ANY) -> Select[Any]:
        """Build a select of ``model`` rows holding any, all or none of the roles.

        Args:
            model: Actor class to select
            roles: Role names, enum members or Role instances
            mode: ``"or"``, ``"and"`` or ``"not"``
        """
        names = [
            role.name if isinstance(role, Role) else normalize_ability_name(role)
            for role in as_list(roles)
        ]
        return actors_with_roles(self.registry, self.scope, model, names, mode, self.guard_name)

    # ============================================================
    # Guards
    # ============================================================

    def guard(self, guard_name: str) -> "Gatekeeper":
        """Get a Gatekeeper for another guard sharing this one's session, registry, scope and cache."""
        return Gatekeeper(
            self.session,
            self.registry,
            self.scope,
            guard_name,
            self.store,
            self.clipboard.for_guard(guard_name),
        )

    # ============================================================
    # Cache
    # ============================================================

    def cache(self, store: CacheStore | None = None) -> "Gatekeeper":
        """Route checks through a CachedClipboard backed by ``store``.

        Defaults to a process-local MemoryCacheStore.
        """
        self.store = store if store is not None else MemoryCacheStore()
        self.clipboard = self._make_clipboard()
        return self

    def dont_cache(self) -> "Gatekeeper":
        self.store = None
        self.clipboard = self._make_clipboard()
        return self

    @property
    def uses_cached_clipboard(self) -> bool:
        return isinstance(self.clipboard, CachedClipboard)

    def refresh(self, actor: Any = None) -> "Gatekeeper":
        """Drop cached permissions for one actor, or for everyone."""
        self.clipboard.refresh(actor)
        return self

    def refresh_for(self, actor: Any) -> "Gatekeeper":
        self.clipboard.refresh_for(actor)
        return self

    # ============================================================
    # Configuration and maintenance
    # ============================================================

    def owned_via(self, model: Any, attribute: OwnershipRule | None = None) -> "Gatekeeper":
        """Configure ownership on the registry; see ``ModelRegistry.owned_via``."""
        self.registry.owned_via(model, attribute)
        return self

    def get_clipboard(self) -> BaseClipboard:
        return self.clipboard

    def context(self) -> ConductorContext:
        """Bundle the state conductors write through."""
        return ConductorContext(
            session=self.session,
            registry=self.registry,
            scope=self.scope,
            clipboard=self.clipboard,
            guard_name=self.guard_name,
        )

    def clean(self, unassigned: bool = True, orphaned: bool = True) -> CleanupResult:
        """Delete unassigned and orphaned abilities, then refresh the cache."""
        result = AbilityCleaner(self.session, self.registry).clean(unassigned=unassigned, orphaned=orphaned)
        if result.total:
            self.clipboard.refresh()
        return result

    def _make_clipboard(self) -> BaseClipboard:
        if self.store is None:
            return Clipboard(self.session, self.registry, self.scope, self.guard_name)
        return CachedClipboard(self.session, self.registry, self.scope, self.store, self.guard_name)
