"""Configuration contract for archly.

This module provides a Pydantic-validated configuration model for the
settings an embedding application may want to control: logging and the
default policy an ACL is constructed with.

Direct os.environ/os.getenv usage is limited to load_config_from_env().
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DefaultPolicy(str, Enum):
    """Policy stored under the default permission key.

    - DENY: whitelist mode, everything not explicitly allowed is denied
    - ALLOW: blacklist mode, everything not explicitly denied is allowed
    """

    ALLOW = "allow"
    DENY = "deny"


class AclConfig(BaseModel):
    """Configuration for an ACL instance and the library's logging.

    Environment variables (see load_config_from_env):
        ARCHLY_LOG_LEVEL       : logging level
        ARCHLY_LOG_JSON        : JSON log output (true/false)
        ARCHLY_DEFAULT_POLICY  : allow | deny
    """

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level for archly loggers",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )
    default_policy: DefaultPolicy = Field(
        default=DefaultPolicy.DENY,
        description="Default permission written at construction: deny (whitelist) or allow (blacklist)",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @field_validator("default_policy", mode="before")
    @classmethod
    def validate_default_policy(cls, v: str | DefaultPolicy) -> DefaultPolicy:
        """Accept 'allow'/'deny' in any case."""
        if isinstance(v, DefaultPolicy):
            return v
        if isinstance(v, str):
            try:
                return DefaultPolicy(v.strip().lower())
            except ValueError:
                raise ValueError(f"Invalid default policy: {v}. Must be one of {[e.value for e in DefaultPolicy]}")
        raise ValueError(f"Default policy must be string or DefaultPolicy enum, got {type(v)}")

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",
    }


def load_config_from_env() -> AclConfig:
    """Load configuration from environment variables.

    Environment variables:
    - ARCHLY_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ARCHLY_LOG_JSON: Use JSON log format (true/false, default: false)
    - ARCHLY_DEFAULT_POLICY: Default permission (allow/deny, default: deny)

    Returns:
        AclConfig instance with values from environment or defaults.

    Raises:
        ConfigurationError: If an environment value fails validation.
    """
    import os

    try:
        return AclConfig(
            log_level=os.getenv("ARCHLY_LOG_LEVEL", "INFO"),
            log_json=os.getenv("ARCHLY_LOG_JSON", "false").lower() in ("true", "1", "yes"),
            default_policy=os.getenv("ARCHLY_DEFAULT_POLICY", "deny"),
        )
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid archly environment configuration: {e.error_count()} error(s)",
            errors=[err["msg"] for err in e.errors()],
        ) from e


__all__ = [
    "AclConfig",
    "DefaultPolicy",
    "LogLevel",
    "load_config_from_env",
]
