"""
Logging setup.

Engine internals log through the stdlib ``logging`` module; extensions get
a structlog logger bound to their name. ``configure_logging`` wires both to
the same level and output format.

Usage:
    from extkit.core.config import get_settings
    from extkit.utils.logging import configure_logging

    configure_logging(get_settings())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from extkit.core.config import EngineSettings

EXTENSION_LOGGER_NAME = "extkit.extensions"


def configure_logging(settings: "EngineSettings") -> None:
    """Configure stdlib logging and structlog from engine settings."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format="%(message)s")

    renderer: Any
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


def get_extension_logger(owner: str) -> Any:
    """Get a structlog logger bound to an extension (or "core")."""
    return structlog.get_logger(EXTENSION_LOGGER_NAME).bind(extension=owner)
