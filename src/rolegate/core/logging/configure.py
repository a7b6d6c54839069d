"""structlog setup shared by applications embedding rolegate."""

import logging

import structlog

from rolegate.config import Settings, settings


_configured = False


def configure_logging(config: Settings | None = None, force: bool = False) -> None:
    """Configure structlog for JSON output in production and console output otherwise.

    Args:
        config: Settings to read the environment and log level from
        force: Reconfigure even if logging was already configured
    """
    global _configured
    if _configured and not force:
        return

    config = config or settings
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if config.is_production
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True
