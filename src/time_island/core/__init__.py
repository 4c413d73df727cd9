"""Shared primitives: error hierarchy and structured logging."""

from .errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    RegistrationError,
    RuleParseError,
    TimeIslandError,
    TimerError,
    ValidationError,
)
from .logging import configure_logging, get_logger

__all__ = [
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "RegistrationError",
    "RuleParseError",
    "TimeIslandError",
    "TimerError",
    "ValidationError",
    "configure_logging",
    "get_logger",
]
