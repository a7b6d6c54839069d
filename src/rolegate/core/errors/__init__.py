"""Typed errors raised by rolegate."""

from rolegate.core.errors.exceptions import (
    CacheConfigurationError,
    ConfigurationError,
    ConflictingKeyMapsError,
    InvalidRoleIdentifierError,
    InvalidSubjectError,
    ModelNotPersistedError,
    MorphKeyViolationError,
    RolegateError,
    UnknownModelTypeError,
    UsageError,
)


__all__ = [
    "CacheConfigurationError",
    "ConfigurationError",
    "ConflictingKeyMapsError",
    "InvalidRoleIdentifierError",
    "InvalidSubjectError",
    "ModelNotPersistedError",
    "MorphKeyViolationError",
    "RolegateError",
    "UnknownModelTypeError",
    "UsageError",
]
