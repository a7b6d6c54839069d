"""Structured logging configuration."""

from rolegate.core.logging.configure import configure_logging


__all__ = [
    "configure_logging",
]
