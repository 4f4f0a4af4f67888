"""structlog output for the strict_csp loggers, driven by StrictCspSettings."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

from strict_csp.config.loader import StrictCspSettings, get_settings

PACKAGE_LOGGER = "strict_csp"


def _rename_logger_to_module(
    logger: logging.Logger, method_name: str, event_dict: dict
) -> dict:
    """Rename 'logger' key to 'module' for structured log field consistency."""
    if "logger" in event_dict:
        event_dict["module"] = event_dict.pop("logger")
    return event_dict


def _renderer(json_format: bool) -> structlog.types.Processor:
    if json_format:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(
    settings: StrictCspSettings | None = None, stream: TextIO | None = None
) -> logging.Logger:
    """Route strict_csp events to ``stream`` (stdout by default).

    Level and format come from ``settings.log_level`` and ``settings.log_json``.
    Only the ``strict_csp`` logger gets a handler, so the embedding
    application's root logging is left alone. Calling again replaces the
    previous handler.
    """
    settings = settings or get_settings()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _rename_logger_to_module,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings.log_json),
            ],
        )
    )

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    package_logger.propagate = False

    # The parser warns on every markup-looking filename or URL
    logging.getLogger("bs4").setLevel(logging.ERROR)
    return package_logger
