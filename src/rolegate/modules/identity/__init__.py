"""Identity model: abilities, roles and the edges that bind them to actors."""

from rolegate.modules.identity.models import (
    Ability,
    AssignedRole,
    Permission,
    Role,
    compile_identifier,
)
from rolegate.modules.identity.registry import ModelRef, ModelRegistry
from rolegate.modules.identity.schemas import AbilityData, RoleData
from rolegate.modules.identity.titles import ability_title, role_title


__all__ = [
    "Ability",
    "AbilityData",
    "AssignedRole",
    "ModelRef",
    "ModelRegistry",
    "Permission",
    "Role",
    "RoleData",
    "ability_title",
    "compile_identifier",
    "role_title",
]
