"""Logging setup for processes embedding npm_proxy.

The library only emits structlog events and never configures logging itself.
The embedding application calls ``setup_logger()`` once at process start,
before the first lookup, to render those events (and stdlib records) as JSON
or console lines on stderr. Without it structlog falls back to its defaults.
"""

import logging
from enum import Enum

import structlog
from pydantic_settings import BaseSettings
from structlog.typing import Processor


class LogFormats(str, Enum):
    JSON = "json"
    CONSOLE = "console"


class LogSettings(BaseSettings):
    log_format: LogFormats = LogFormats.JSON
    log_level: str = "INFO"


def setup_logger(settings: LogSettings | None = None) -> None:
    """Route structlog and stdlib logging through one formatter on stderr."""
    settings = settings or LogSettings()
    log_level = settings.log_level

    log_renderer: Processor
    if settings.log_format == LogFormats.CONSOLE:
        log_renderer = structlog.dev.ConsoleRenderer()
    else:
        log_renderer = structlog.processors.JSONRenderer()

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.stdlib.ExtraAdder(),
        structlog.processors.CallsiteParameterAdder(
            [
                structlog.processors.CallsiteParameter.PATHNAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.log_format == LogFormats.JSON:
        processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=processors  # type: ignore
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=processors,  # type: ignore
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            log_renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # Every mirror request would otherwise be logged twice
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def request_logger(**context) -> structlog.stdlib.BoundLogger:
    """Logger carrying per-request context, suitable as the ``log`` argument
    of the npm lookups."""
    return structlog.stdlib.get_logger("npm_proxy.request").bind(**context)
