"""Logging utilities for archly.

This module provides:
- Logging configuration from AclConfig
- Safe preview utility for ids and permission maps
- Structured logging with role/resource context
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .config import AclConfig, LogLevel

# Record attributes the formatter never copies into the payload
_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName", "role", "resource",
    }
)


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a single-line, length-bounded preview of a value for logging.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


class AclFormatter(logging.Formatter):
    """Formatter that includes role/resource context, as JSON or plain text."""

    def __init__(
        self,
        json_format: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        role = getattr(record, "role", None)
        resource = getattr(record, "resource", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if role is not None:
            log_data["role"] = role
        if resource is not None:
            log_data["resource"] = resource

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = safe_preview(value)

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        if role is not None:
            parts.append(f"role={role}")
        if resource is not None:
            parts.append(f"resource={resource}")
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class AclLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds role and resource ids to log records.

    Usage:
        logger = get_acl_logger(__name__, role="editor")
        logger.debug("checking", resource="article")
    """

    def __init__(
        self,
        logger: logging.Logger,
        role: Optional[str] = None,
        resource: Optional[str] = None,
    ):
        super().__init__(logger, {})
        self.role = role
        self.resource = resource

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        role = kwargs.pop("role", self.role)
        resource = kwargs.pop("resource", self.resource)

        extra = kwargs.get("extra", {})
        if role is not None:
            extra["role"] = role
        if resource is not None:
            extra["resource"] = resource
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[AclConfig] = None,
    json_format: Optional[bool] = None,
    logger_name: str = "archly",
) -> logging.Logger:
    """Configure the archly logger hierarchy.

    Args:
        config: AclConfig instance (if None, loads from environment)
        json_format: Override ``config.log_json``
        logger_name: Logger to configure (default: the package logger)

    Returns:
        The configured logger.
    """
    if config is None:
        from .config import load_config_from_env
        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(config.log_level, logging.INFO)
    if json_format is None:
        json_format = config.log_json

    target = logging.getLogger(logger_name)
    target.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in target.handlers[:]:
        target.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(AclFormatter(json_format=json_format))
    target.addHandler(console_handler)

    return target


def get_acl_logger(
    name: str,
    role: Optional[str] = None,
    resource: Optional[str] = None,
) -> AclLoggerAdapter:
    """Get a logger adapter carrying role/resource context.

    Args:
        name: Logger name (typically __name__)
        role: Optional role id to include in all logs
        resource: Optional resource id to include in all logs
    """
    return AclLoggerAdapter(logging.getLogger(name), role=role, resource=resource)


__all__ = [
    "AclFormatter",
    "AclLoggerAdapter",
    "get_acl_logger",
    "safe_preview",
    "setup_logging",
]
