"""rolegate - role and ability authorization on SQLAlchemy."""

from rolegate.core.cache import MemoryCacheStore, RedisCacheStore
from rolegate.core.database import Base, Scope
from rolegate.core.errors import ConfigurationError, RolegateError, UsageError
from rolegate.gatekeeper import Gatekeeper
from rolegate.modules.clipboard import CachedClipboard, Clipboard, Decision
from rolegate.modules.identity import Ability, AssignedRole, ModelRegistry, Permission, Role


__all__ = [
    "Ability",
    "AssignedRole",
    "Base",
    "CachedClipboard",
    "Clipboard",
    "ConfigurationError",
    "Decision",
    "Gatekeeper",
    "MemoryCacheStore",
    "ModelRegistry",
    "Permission",
    "RedisCacheStore",
    "Role",
    "RolegateError",
    "Scope",
    "UsageError",
]
