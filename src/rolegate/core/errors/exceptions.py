"""Exceptions raised by the authorization engine.

Usage errors signal a programming mistake at the call site and are raised
immediately. Configuration errors are raised while the engine is being set
up, never during a permission check. A check that finds no permission is
not an error.
"""

from typing import Any


class RolegateError(Exception):
    """Base exception for all rolegate errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        details: Additional error details
    """

    message: str = "An unexpected authorization error occurred"
    error_code: str = "rolegate_error"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================
# Usage Errors
# ============================================================


class UsageError(RolegateError):
    """Raised when the engine is called with arguments it cannot act on."""

    message = "Invalid usage"
    error_code = "usage_error"


class ModelNotPersistedError(UsageError):
    """Raised when granting against a model instance that is not saved.

    Example:
        gatekeeper.allow(user).to("edit", Post(title="draft"))
    """

    message = (
        "The model does not exist. To edit access to all models, "
        "use the class instead"
    )
    error_code = "model_not_persisted"

    def __init__(self, model: Any = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        if model is not None:
            details["model"] = type(model).__name__
        super().__init__(details=details, **kwargs)


class UnknownModelTypeError(UsageError):
    """Raised when a type tag or class is not known to the registry."""

    message = "Unknown model type"
    error_code = "unknown_model_type"

    def __init__(self, model_type: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        message = kwargs.pop("message", None)
        if model_type is not None:
            details["model_type"] = model_type
            message = message or f"Unknown model type: {model_type}"
        super().__init__(message=message, details=details, **kwargs)


class InvalidSubjectError(UsageError):
    """Raised when a subject is not None, a wildcard, a model class or a model."""

    message = "Subjects must be a mapped model class, a mapped model instance or '*'"
    error_code = "invalid_subject"


class InvalidRoleIdentifierError(UsageError):
    """Raised when a role check receives a value it cannot resolve to a role.

    Example:
        gatekeeper.is_(user).a(3.5)
    """

    message = "Role identifiers must be names, ids or Role instances"
    error_code = "invalid_role_identifier"

    def __init__(self, value: Any = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        if value is not None:
            details["value"] = repr(value)
        super().__init__(details=details, **kwargs)


class MorphKeyViolationError(UsageError):
    """Raised when a strict key map is enforced and a class is not mapped."""

    message = "No key mapping configured for model"
    error_code = "morph_key_violation"

    def __init__(self, model_class: str | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        message = kwargs.pop("message", None)
        if model_class is not None:
            details["model_class"] = model_class
            message = message or f"No key mapping configured for model [{model_class}]"
        super().__init__(message=message, details=details, **kwargs)


# ============================================================
# Configuration Errors
# ============================================================


class ConfigurationError(RolegateError):
    """Raised when the engine is configured in a contradictory way."""

    message = "Invalid configuration"
    error_code = "configuration_error"


class ConflictingKeyMapsError(ConfigurationError):
    """Raised when both a lenient and a strict key map are configured."""

    message = "Cannot configure both a lenient and an enforced morph key map"
    error_code = "conflicting_key_maps"


class CacheConfigurationError(ConfigurationError):
    """Raised when a cache store cannot honour the requested refresh mode."""

    message = "Cache store does not support the requested operation"
    error_code = "cache_configuration"
