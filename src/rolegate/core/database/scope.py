"""Tenancy scope applied to authorization queries and writes.

The scope is an explicit object owned by a Gatekeeper rather than a
process-wide global. When a scope value is set, newly created rows are
tagged with it and queries only see rows tagged with the same value or
with no scope at all.
"""

from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy import or_


T = TypeVar("T")
Statement = TypeVar("Statement")


class Scope:
    """Current tenancy scope and the rules for applying it.

    Two switches narrow where the scope applies:

    - ``only_relations()`` leaves roles and abilities global and scopes
      only the assignment and permission edges.
    - ``dont_scope_role_abilities()`` stores permissions granted to roles
      without a scope so a role's abilities are shared by every tenant.
    """

    def __init__(self, value: Any = None) -> None:
        self._scope: str | None = None
        self._only_relations = False
        self._scope_role_abilities = True
        self.to(value)

    def to(self, value: Any) -> "Scope":
        """Set the current scope; None removes it."""
        self._scope = None if value is None else str(value)
        return self

    def get(self) -> str | None:
        """Get the current scope value."""
        return self._scope

    def only_relations(self, boolean: bool = True) -> "Scope":
        """Scope only the edge tables and leave roles and abilities global."""
        self._only_relations = boolean
        return self

    @property
    def scopes_only_relations(self) -> bool:
        return self._only_relations

    def dont_scope_role_abilities(self) -> "Scope":
        """Store permissions granted to roles without a scope."""
        self._scope_role_abilities = False
        return self

    def append_to_cache_key(self, key: str) -> str:
        """Append the current scope to a cache key.

        Args:
            key: The base cache key

        Returns:
            The key suffixed with ``-<scope>`` when a scope is set
        """
        if self._scope is None:
            return key
        return f"{key}-{self._scope}"

    def apply_to_model(self, model: T) -> T:
        """Tag a new role or ability with the current scope.

        Does nothing in relation-only mode.
        """
        if not self._only_relations and self._scope is not None:
            model.scope = self._scope  # type: ignore[attr-defined]
        return model

    def apply_to_model_query(self, statement: Statement, entity: Any) -> Statement:
        """Filter a roles or abilities query by scope.

        Args:
            statement: A select, update or delete statement
            entity: The mapped class (or alias) whose scope column is filtered

        Returns:
            The filtered statement, unchanged in relation-only mode
        """
        if self._only_relations:
            return statement
        return self._apply(statement, entity)

    def apply_to_relation_query(self, statement: Statement, entity: Any) -> Statement:
        """Filter an assignments or permissions query by scope."""
        return self._apply(statement, entity)

    def get_attach_attributes(self, for_role: bool = False) -> dict[str, str]:
        """Get the extra column values to store on a new edge row.

        Args:
            for_role: Whether the edge grants something to a role

        Returns:
            ``{"scope": value}`` or an empty dict when no scope applies
        """
        if self._scope is None:
            return {}
        if for_role and not self._scope_role_abilities:
            return {}
        return {"scope": self._scope}

    def once_to(self, value: Any, callback: Callable[[], T]) -> T:
        """Run a callback with a temporary scope, restoring the previous one after."""
        previous = self._scope
        self.to(value)
        try:
            return callback()
        finally:
            self._scope = previous

    def remove(self) -> "Scope":
        """Clear the current scope."""
        self._scope = None
        return self

    def remove_once(self, callback: Callable[[], T]) -> T:
        """Run a callback with no scope."""
        return self.once_to(None, callback)

    def _apply(self, statement: Any, entity: Any) -> Any:
        if self._scope is None:
            return statement.where(entity.scope.is_(None))
        return statement.where(or_(entity.scope.is_(None), entity.scope == self._scope))
