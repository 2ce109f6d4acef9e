"""structlog configuration."""

import logging

import structlog

from product_catalog.infrastructure.config import settings


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Configure structlog processors and the stdlib root level.

    Args:
        level: Log level name; defaults to ``settings.log_level``.
        json_output: Render JSON lines; defaults to ``not settings.debug``.
    """
    level_name = (level or settings.log_level).upper()
    if json_output is None:
        json_output = not settings.debug

    logging.basicConfig(format="%(message)s", level=level_name)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level_name)
        ),
        cache_logger_on_first_use=True,
    )
