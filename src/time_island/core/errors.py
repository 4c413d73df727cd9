"""
Structured error types for time-island.

The engine has very few failure modes. Rule strings can be malformed,
registrations can carry values the scheduler does not understand, settings
can be invalid, and a timer can be armed without the facility it needs
(an asyncio timer with no running loop). Each of those gets a typed error
with a category and small context so that the CLI and logs can report
them uniformly.

Manifesto:
    - **Reject at the boundary:** Invalid input fails at parse or
      registration time, never during evaluation or on a tick.
    - **Typed hierarchy:** One subclass per failure domain.
    - **Rich context:** Errors carry the offending value for logging.
    - **Absent, not raised:** ``parse_rule`` reports failure as ``None``;
      only the strict entry points raise ``RuleParseError``.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                     TimeIslandError                       │
        │            (category, context, cause, to_dict)            │
        ├──────────────────────────────────────────────────────────┤
        │  ValidationError        ConfigError       TimerError      │
        │  (VALIDATION)           (CONFIG)          (SCHEDULING)    │
        │       │                     │                             │
        │  RuleParseError        InvalidConfigError                 │
        │  RegistrationError                                        │
        └──────────────────────────────────────────────────────────┘

Tags:
    error-handling, exception-hierarchy, validation, time-island

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification in logs and the CLI."""

    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    SCHEDULING = "SCHEDULING"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        rule: Rule string being parsed, if any
        name: Bar or registration name involved, if any
        metadata: Additional key-value pairs
    """

    rule: str | None = None
    name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["rule", "name"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TimeIslandError(Exception):
    """
    Base exception for all time-island errors.

    Subclasses set ``default_category``; callers may override it per
    instance. A ``cause`` is chained onto ``__cause__``.

    Example:
        >>> err = TimeIslandError("boom").with_context(name="seconds")
        >>> err.to_dict()["context"]
        {'name': 'seconds'}
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TimeIslandError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(TimeIslandError):
    """Input validation error."""

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class RuleParseError(ValidationError):
    """A rule string could not be parsed into a descriptor."""

    def __init__(self, rule: Any, message: str | None = None):
        super().__init__(
            message or f"Unrecognized time rule: {rule!r}",
            value=rule,
            context=ErrorContext(rule=rule if isinstance(rule, str) else None),
        )
        self.rule = rule


class RegistrationError(ValidationError):
    """A scheduler registration carries an unusable name or value."""

    def __init__(self, name: Any, value: Any, message: str | None = None):
        super().__init__(
            message or f"Cannot register {name!r} with {type(value).__name__}",
            value=value,
            context=ErrorContext(name=name if isinstance(name, str) else None),
        )
        self.name = name


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(TimeIslandError):
    """Configuration error."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# SCHEDULING ERRORS
# =============================================================================


class TimerError(TimeIslandError):
    """A timer could not be armed."""

    default_category = ErrorCategory.SCHEDULING


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TimeIslandError",
    "ValidationError",
    "RuleParseError",
    "RegistrationError",
    "ConfigError",
    "InvalidConfigError",
    "TimerError",
]
