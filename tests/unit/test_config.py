"""Unit tests for settings and logging setup."""

from unittest.mock import patch

import pytest

from rolegate.config import Settings
from rolegate.core.logging import configure as configure_module
from rolegate.core.logging import configure_logging


pytestmark = pytest.mark.unit


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("ROLEGATE_GUARD", raising=False)

        config = Settings(_env_file=None)

        assert config.guard == "web"
        assert config.cache_tag == "rolegate"
        assert config.migrator_batch_size == 500
        assert not config.is_production

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("ROLEGATE_GUARD", "api")
        monkeypatch.setenv("ROLEGATE_ENVIRONMENT", "production")
        monkeypatch.setenv("ROLEGATE_MIGRATOR_BATCH_SIZE", "50")

        config = Settings(_env_file=None)

        assert config.guard == "api"
        assert config.is_production
        assert config.migrator_batch_size == 50


class TestConfigureLogging:
    def test_configures_once(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(configure_module, "_configured", False)

        with patch.object(configure_module.structlog, "configure") as configure:
            configure_logging()
            configure_logging()

        assert configure.call_count == 1

    def test_force_reconfigures(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(configure_module, "_configured", False)

        with patch.object(configure_module.structlog, "configure") as configure:
            configure_logging()
            configure_logging(force=True)

        assert configure.call_count == 2

    def test_production_renders_json(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(configure_module, "_configured", False)
        monkeypatch.setenv("ROLEGATE_ENVIRONMENT", "production")

        with patch.object(configure_module.structlog, "configure") as configure:
            configure_logging(Settings(_env_file=None))

        processors = configure.call_args.kwargs["processors"]
        assert isinstance(processors[-1], configure_module.structlog.processors.JSONRenderer)
