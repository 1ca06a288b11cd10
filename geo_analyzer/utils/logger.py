"""
Structured logging using structlog.
Renders one readable line per event: [LEVEL] event | key=value ...

Job-scoped values bound with job_log_context() appear on every line logged
inside the block, including lines from crawlers and analyzers.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.types import Processor

from geo_analyzer.config import settings


def _add_log_level(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add log level to the event dict."""
    if method_name == "warn":
        method_name = "warning"
    event_dict["level"] = method_name.upper()
    return event_dict


def _clean_renderer(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> str:
    """
    Render logs in a clean, readable format.
    Format: [LEVEL] event | key=value | key2=value2
    """
    level = event_dict.pop("level", "INFO")
    event = event_dict.pop("event", "")
    exception = event_dict.pop("exception", None)

    context_parts = []
    for key, value in sorted(event_dict.items()):
        if key in ("timestamp", "logger", "level"):
            continue
        if isinstance(value, (list, dict, set, tuple)):
            # URL lists get long quickly
            str_val = str(value)
            if len(str_val) > 100:
                str_val = str_val[:100] + "..."
            context_parts.append(f"{key}={str_val}")
        else:
            context_parts.append(f"{key}={value}")

    line = f"[{level}] {event}"
    if context_parts:
        line = f"{line} | {' | '.join(context_parts)}"
    if exception:
        line = f"{line}\n{exception}"
    return line


def setup_logging() -> None:
    """Configure structlog for the application."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        _clean_renderer,
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance with the given name."""
    return structlog.get_logger(name)


@contextmanager
def job_log_context(job_id: str) -> Iterator[None]:
    """Bind job_id to all log events of the current task."""
    with structlog.contextvars.bound_contextvars(job_id=job_id):
        yield


# Initialize logging on module import
setup_logging()
