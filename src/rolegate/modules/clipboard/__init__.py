"""Clipboard - the read side of the authorization engine."""

from rolegate.modules.clipboard.base import BaseClipboard, CheckResult, Decision, RolesLookup
from rolegate.modules.clipboard.cached import CachedClipboard
from rolegate.modules.clipboard.clipboard import Clipboard
from rolegate.modules.clipboard.queries import (
    abilities_for_actor,
    actors_with_roles,
    has_ability_query,
    roles_for_actor,
)


__all__ = [
    "BaseClipboard",
    "CachedClipboard",
    "CheckResult",
    "Clipboard",
    "Decision",
    "RolesLookup",
    "abilities_for_actor",
    "actors_with_roles",
    "has_ability_query",
    "roles_for_actor",
]
