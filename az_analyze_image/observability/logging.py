"""
Structured logging configuration using structlog.

The library only emits events through ``structlog.get_logger``; nothing is
rendered until an application calls ``setup_logging``.
"""

import logging
import sys
from functools import lru_cache

import structlog

from az_analyze_image.config import get_settings

# Event keys whose values must never reach a log sink
REDACTED_KEYS = frozenset({
    "key",
    "cv_key",
    "subscription_key",
    "ocp-apim-subscription-key",
    "authorization",
})
REDACTED = "*"

# Loggers of the HTTP stack, which log every request at INFO
TRANSPORT_LOGGERS = ("httpx", "httpcore")


def redact_secrets(logger, method_name, event_dict):
    """Replace the values of credential-bearing keys, including inside a headers dict."""
    for key in list(event_dict):
        if key.lower() in REDACTED_KEYS:
            event_dict[key] = REDACTED
    headers = event_dict.get("headers")
    if isinstance(headers, dict):
        event_dict["headers"] = {
            name: REDACTED if name.lower() in REDACTED_KEYS else value
            for name, value in headers.items()
        }
    return event_dict


def setup_logging(log_level: str = None, log_format: str = None, stream=None):
    """
    Configure structured logging.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        log_format: Override format ('json' or 'console')
        stream: Output stream (default: stderr, keeping stdout for results)
    """
    settings = get_settings()
    level = log_level or settings.log_level
    fmt = log_format or settings.log_format
    stream = stream or sys.stderr

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=getattr(logging, level)
    )

    # Request lines from the transport duplicate analyze_image_request
    transport_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=stream.isatty())
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@lru_cache()
def get_logger(name: str = None):
    """Get a structured logger instance."""
    return structlog.get_logger(name)
