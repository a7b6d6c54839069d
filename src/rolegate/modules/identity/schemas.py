"""Pydantic snapshots of roles and abilities.

Clipboards return these instead of live ORM rows so that cached and
uncached lookups produce the same, hashable values.
"""

from pydantic import BaseModel, ConfigDict


class AbilityData(BaseModel):
    """Read-only view of a stored ability."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    name: str
    title: str | None = None
    guard_name: str
    subject_type: str | None = None
    subject_id: str | None = None
    only_owned: bool = False
    scope: str | None = None

    @property
    def is_simple(self) -> bool:
        return self.subject_type is None


class RoleData(BaseModel):
    """Read-only view of a role held by an actor."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    name: str
