"""
structlog setup for Conduit.

Run events (``pipeline_started``, ``stage_failed``, ``command_timeout``)
are emitted through stdlib logging so hosts can route them. A privacy
processor masks secret-looking values before rendering.
"""

import logging
import re
import sys
from typing import Any

import structlog

from conduit.shared.infrastructure.config import settings

_REDACTION_PATTERNS = {
    r"(api[_-]?key|token|password|passwd|secret)(['\"]?\s*[:=]\s*['\"]?)([^'\"\s]+)": r"\1\2[REDACTED]",
    r"Bearer\s+\S+": "Bearer [TOKEN_REDACTED]",
    r"(https?://)[^/\s:@]+:[^/\s@]+@": r"\1[REDACTED]@",
}


def _redact_string(text: str) -> str:
    for pattern, replacement in _REDACTION_PATTERNS.items():
        text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)
    return text


def _redact_value(value: Any) -> Any:
    if isinstance(value, str):
        return _redact_string(value)
    if isinstance(value, dict):
        return {k: _redact_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_redact_value(v) for v in value]
    return value


def privacy_redactor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Redact secret-looking material from log events.

    Credential values are never handed to a logger; this processor is a
    second line for values that leak in through command text or stderr
    snippets (``password=...``, bearer tokens, userinfo in URLs).
    """
    if not settings.log_redaction_enabled:
        return event_dict
    return {k: _redact_value(v) for k, v in event_dict.items()}


def configure_logging(stream: Any = sys.stderr) -> None:
    """
    Route structlog through stdlib logging on ``stream``.

    Development renders colored key/value lines (colors only on a TTY);
    production renders one JSON object per event. The level comes from
    ``CONDUIT_LOG_LEVEL``.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        privacy_redactor,
    ]

    if settings.is_development:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=stream.isatty() if hasattr(stream, "isatty") else False),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=getattr(logging, settings.log_level.upper()),
        force=True,
    )


def get_logger(name: str) -> Any:
    """
    Logger bound to a module name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("stage_started", stage="Build")
    """
    return structlog.get_logger(name)
