"""
Retry Proxy Logging
===================
Structured logging setup for applications using retry_proxy.

The library only emits through ``structlog.get_logger``; nothing is
configured on import. Call ``setup_logging`` once at startup:

    from retry_proxy.logging_config import setup_logging

    setup_logging(level="DEBUG", json_output=False)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

import structlog

from .config import LOG_JSON, LOG_LEVEL


# Keys the executor attaches to its retry events
RETRY_FIELDS = ("func", "attempt", "attempts", "retries_left", "delay_ms", "delays_ms", "error")


def _split_retry_fields(record: logging.LogRecord) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    extra = dict(getattr(record, "extra_data", None) or {})
    retry = {key: extra.pop(key) for key in RETRY_FIELDS if key in extra}
    return retry, extra


# =============================================================================
# Formatters
# =============================================================================

class JSONFormatter(logging.Formatter):
    """
    One JSON object per retry event.

    Retry fields (``func``, ``attempt``, ``retries_left``, ``delay_ms``, ...)
    are top-level keys so sinks can filter on them; any other structured
    values go under ``context``.
    """

    def format(self, record: logging.LogRecord) -> str:
        retry, context = _split_retry_fields(record)
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
            **retry,
        }
        if context:
            log_data["context"] = context
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class KeyValueFormatter(logging.Formatter):
    """Plain text line with retry fields appended as ``key=value`` pairs."""

    def __init__(self):
        super().__init__("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        retry, context = _split_retry_fields(record)
        pairs = " ".join(f"{key}={value!r}" for key, value in {**retry, **context}.items())
        return f"{line} {pairs}" if pairs else line


def _nest_extra_data(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Move structlog key/values under ``extra_data`` for the stdlib record."""
    nested = {"event": event_dict.pop("event", "")}
    for key in ("exc_info", "stack_info"):
        if key in event_dict:
            nested[key] = event_dict.pop(key)
    nested["extra_data"] = event_dict
    return nested


# =============================================================================
# Setup
# =============================================================================

def setup_logging(
    level: str = LOG_LEVEL,
    json_output: bool = LOG_JSON,
) -> logging.Logger:
    """
    Configure stdlib logging and route structlog through it.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Whether to output JSON (for production)

    Returns:
        Configured root logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(KeyValueFormatter())

    root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.StackInfoRenderer(),
            _nest_extra_data,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root_logger.debug("Logging configured", extra={
        "extra_data": {"event": "logging.configured", "level": level}
    })

    return root_logger
