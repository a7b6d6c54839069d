"""Clipboard contract shared by the cached and uncached implementations.

A clipboard answers questions about one guard's permission universe:
which abilities an actor holds, which are forbidden, which roles it has,
and whether a given ability request is allowed.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from sqlalchemy.orm import Session

from rolegate.core.constants import (
    DEFAULT_GUARD,
    ROLE_CHECK_ALL,
    ROLE_CHECK_ANY,
    ROLE_CHECK_MODES,
    ROLE_CHECK_NONE,
)
from rolegate.core.database.scope import Scope
from rolegate.core.errors import InvalidRoleIdentifierError, UsageError
from rolegate.core.utils.text import is_uuid_or_ulid
from rolegate.modules.identity.models import Role
from rolegate.modules.identity.registry import ModelRegistry
from rolegate.modules.identity.schemas import AbilityData


class Decision(Enum):
    """Outcome of resolving one ability request."""

    ALLOW = "allow"
    DENY = "deny"
    ABSTAIN = "abstain"


CheckResult = int | Literal[False] | None


@dataclass
class RolesLookup:
    """An actor's roles indexed both ways."""

    ids: dict[int, str] = field(default_factory=dict)
    names: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[int, str]]) -> "RolesLookup":
        lookup = cls()
        for role_id, name in pairs:
            lookup.ids[role_id] = name
            lookup.names[name] = role_id
        return lookup


class BaseClipboard(ABC):
    """Shared resolution logic on top of the storage lookups.

    Subclasses provide ``check_get_id``, ``get_abilities`` and
    ``get_roles_lookup``; everything else is derived from them.
    """

    def __init__(
        self,
        session: Session,
        registry: ModelRegistry,
        scope: Scope,
        guard_name: str = DEFAULT_GUARD,
    ) -> None:
        self.session = session
        self.registry = registry
        self.scope = scope
        self.guard_name = guard_name

    @abstractmethod
    def check_get_id(self, actor: Any, ability: Any, subject: Any = None) -> CheckResult:
        """Resolve a request.

        Returns:
            False if a forbid matches, the id of an allowing ability if one
            matches, or None when nothing matches
        """

    @abstractmethod
    def get_abilities(self, actor: Any, allowed: bool = True) -> list[AbilityData]:
        """Get the abilities granted (or forbidden) to an actor, directly or via roles."""

    @abstractmethod
    def get_roles_lookup(self, actor: Any) -> RolesLookup:
        """Get the actor's roles indexed by id and by name."""

    @abstractmethod
    def for_guard(self, guard_name: str) -> "BaseClipboard":
        """Get a clipboard of the same kind bound to another guard."""

    def check(self, actor: Any, ability: Any, subject: Any = None) -> bool:
        return bool(self.check_get_id(actor, ability, subject))

    def decide(self, actor: Any, ability: Any, subject: Any = None) -> Decision:
        """Resolve a request to Allow, Deny (a forbid matched) or Abstain."""
        result = self.check_get_id(actor, ability, subject)
        if result is False:
            return Decision.DENY
        if result is None:
            return Decision.ABSTAIN
        return Decision.ALLOW

    def get_forbidden_abilities(self, actor: Any) -> list[AbilityData]:
        return self.get_abilities(actor, allowed=False)

    def get_roles(self, actor: Any) -> list[str]:
        return list(self.get_roles_lookup(actor).names)

    def is_owned_by(self, actor: Any, subject: Any) -> bool:
        return self.registry.is_owned_by(actor, subject)

    def check_role(self, actor: Any, roles: Any, mode: str = ROLE_CHECK_ANY) -> bool:
        """Check the actor's role membership.

        Args:
            actor: The actor model instance
            roles: One role or a list of role names, ids or Role instances
            mode: ``"or"`` for any, ``"and"`` for all, ``"not"`` for none

        Returns:
            Whether the membership condition holds

        Raises:
            InvalidRoleIdentifierError: If a role value cannot be resolved
            UsageError: If the mode is unknown
        """
        if mode not in ROLE_CHECK_MODES:
            raise UsageError(f"Unknown role check mode: {mode}")

        role_list = list(roles) if isinstance(roles, (list, tuple, set)) else [roles]
        count = self._count_matching_roles(actor, role_list)

        if mode == ROLE_CHECK_ANY:
            return count > 0
        if mode == ROLE_CHECK_NONE:
            return count == 0
        if mode == ROLE_CHECK_ALL:
            return count == len(role_list)
        return False

    def refresh(self, actor: Any = None) -> "BaseClipboard":
        """Drop cached entries; a no-op for clipboards without a cache."""
        return self

    def refresh_for(self, actor: Any) -> "BaseClipboard":
        return self

    def _count_matching_roles(self, actor: Any, roles: list[Any]) -> int:
        lookup = self.get_roles_lookup(actor)
        string_ids = {str(role_id) for role_id in lookup.ids}
        count = 0

        for role in roles:
            if isinstance(role, Enum):
                role = role.value
            if isinstance(role, Role):
                matched = role.id in lookup.ids
            elif isinstance(role, bool):
                raise InvalidRoleIdentifierError(role)
            elif isinstance(role, int):
                matched = role in lookup.ids
            elif isinstance(role, str):
                matched = role in string_ids if is_uuid_or_ulid(role) else role in lookup.names
            else:
                raise InvalidRoleIdentifierError(role)
            count += int(matched)

        return count
