"""Role membership checks: ``is_(user).a("admin")``."""

from typing import Any

from rolegate.core.constants import ROLE_CHECK_ALL, ROLE_CHECK_ANY, ROLE_CHECK_NONE
from rolegate.modules.clipboard.base import BaseClipboard


class ChecksRoles:
    """Answers role questions about one actor through a clipboard.

    Roles may be names, ids, UUID/ULID-shaped id strings or Role instances.
    """

    def __init__(self, clipboard: BaseClipboard, actor: Any) -> None:
        self.clipboard = clipboard
        self.actor = actor

    def a(self, *roles: Any) -> bool:
        """Whether the actor has any of the roles."""
        return self.clipboard.check_role(self.actor, list(roles), ROLE_CHECK_ANY)

    def an(self, *roles: Any) -> bool:
        return self.a(*roles)

    def not_a(self, *roles: Any) -> bool:
        """Whether the actor has none of the roles."""
        return self.clipboard.check_role(self.actor, list(roles), ROLE_CHECK_NONE)

    def not_an(self, *roles: Any) -> bool:
        return self.not_a(*roles)

    def all(self, *roles: Any) -> bool:
        """Whether the actor has every one of the roles."""
        return self.clipboard.check_role(self.actor, list(roles), ROLE_CHECK_ALL)
