"""Unit tests for rolegate exceptions."""

import pytest

from rolegate.core.errors import (
    CacheConfigurationError,
    ConfigurationError,
    ConflictingKeyMapsError,
    InvalidRoleIdentifierError,
    ModelNotPersistedError,
    MorphKeyViolationError,
    RolegateError,
    UnknownModelTypeError,
    UsageError,
)
from tests.models import Post


pytestmark = pytest.mark.unit


class TestErrorHierarchy:
    @pytest.mark.parametrize(
        "error_class",
        [ModelNotPersistedError, UnknownModelTypeError, InvalidRoleIdentifierError, MorphKeyViolationError],
    )
    def test_usage_errors(self, error_class):
        assert issubclass(error_class, UsageError)
        assert issubclass(error_class, RolegateError)

    @pytest.mark.parametrize("error_class", [ConflictingKeyMapsError, CacheConfigurationError])
    def test_configuration_errors(self, error_class):
        assert issubclass(error_class, ConfigurationError)


class TestErrorDetails:
    """Tests for messages, codes and details."""

    def test_defaults(self):
        error = RolegateError()

        assert error.message == "An unexpected authorization error occurred"
        assert error.error_code == "rolegate_error"
        assert error.details == {}
        assert str(error) == error.message

    def test_custom_message(self):
        error = UsageError("Nope")

        assert str(error) == "Nope"
        assert error.error_code == "usage_error"

    def test_model_not_persisted(self):
        error = ModelNotPersistedError(Post(title="draft"))

        assert error.error_code == "model_not_persisted"
        assert error.details == {"model": "Post"}
        assert "use the class instead" in error.message

    def test_unknown_model_type(self):
        error = UnknownModelTypeError("Spaceship")

        assert error.message == "Unknown model type: Spaceship"

    def test_invalid_role_identifier(self):
        error = InvalidRoleIdentifierError(3.5)

        assert error.details == {"value": "3.5"}

    def test_morph_key_violation(self):
        error = MorphKeyViolationError("User")

        assert error.message == "No key mapping configured for model [User]"
        assert error.details == {"model_class": "User"}
