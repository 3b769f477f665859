"""
Logging Configuration for the Inventory Metrics Platform

Structured logging through structlog on top of stdlib logging. Every event
carries the application name and environment; pipeline runs and API
requests add their own identifiers through contextvars.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter
from structlog.types import EventDict, Processor

from inventory_metrics.config.settings import Settings, get_settings

# Loggers of the libraries we serve through, routed to our handler
ROUTED_LOGGERS = ["uvicorn", "uvicorn.error", "uvicorn.access"]


class AppContext:
    """Processor adding static application fields to every event"""

    def __init__(self, app_name: str, environment: str, version: str):
        self.fields = {"app": app_name, "env": environment, "version": version}

    def __call__(self, logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in self.fields.items():
            event_dict.setdefault(key, value)
        return event_dict


def build_processors(settings: Settings) -> List[Processor]:
    """Processors shared by structlog and foreign (stdlib) log records"""
    return [
        structlog.contextvars.merge_contextvars,
        AppContext(settings.app_name, settings.app_env, settings.version),
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(log_level: Optional[str] = None, settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for the API server and batch scripts.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        settings: Application settings, defaults to the cached settings
    """
    settings = settings or get_settings()
    level = (log_level or settings.monitoring.log_level).upper()
    numeric_level = getattr(logging, level, logging.INFO)

    shared_processors = build_processors(settings)
    structlog.configure(
        processors=shared_processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if settings.monitoring.log_format == "json":
        renderer = JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)

    for logger_name in ROUTED_LOGGERS:
        routed = logging.getLogger(logger_name)
        routed.handlers = []
        routed.propagate = True
        routed.setLevel(numeric_level)

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level,
        format=settings.monitoring.log_format,
    )


@contextmanager
def run_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """
    Bind a run identifier and extra fields to every event logged inside.

    Example:
        with run_context(reference_date="2024-06-30") as ctx:
            logger.info("Started")  # carries ctx["run_id"]
    """
    fields.setdefault("run_id", uuid.uuid4().hex[:12])
    with structlog.contextvars.bound_contextvars(**fields):
        yield fields


def get_logger(name: str):
    """Get a logger instance with the given name."""
    return structlog.get_logger(name)
