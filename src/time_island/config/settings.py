"""
Settings for time-island.

Manifesto:
    The engine reads almost no configuration: which timer to use, whether
    the clock text shows seconds (which decides whether the time display
    needs a per-second cadence), and what to do with a bar whose rule does
    not parse. Those few values are validated once at startup and passed
    explicitly to whatever builds the scheduler and tracker.

All fields can be set via ``TIME_ISLAND_*`` environment variables (e.g.
``TIME_ISLAND_SHOW_SECONDS=false``) or a ``.env`` file.

Tags:
    settings, configuration, pydantic, environment, time-island

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from time_island.core.errors import RuleParseError
from time_island.rules.parser import parse_rule_strict


class TimerBackend(str, Enum):
    ASYNCIO = "asyncio"
    THREAD = "thread"
    APSCHEDULER = "apscheduler"


class TimeFormat(str, Enum):
    H24 = "24h"
    H12 = "12h"


class TimeIslandSettings(BaseSettings):
    """Validated engine settings.

    Fields
    ──────
    log_level      : structlog log level
    log_format     : "console" or "json"
    show_seconds   : time display ticks every second instead of every minute
    time_format    : "24h" or "12h" clock text
    fallback_rule  : rule used for bars whose own rule does not parse (None = skip them)
    timer_backend  : asyncio / thread / apscheduler
    timezone       : IANA zone for calendar fields (None = host local time)
    """

    model_config = SettingsConfigDict(
        env_prefix="TIME_ISLAND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    # ── Display semantics ────────────────────────────────────────
    show_seconds: bool = Field(default=True)
    time_format: TimeFormat = Field(default=TimeFormat.H24)
    fallback_rule: str | None = Field(default=None)

    # ── Scheduling ───────────────────────────────────────────────
    timer_backend: TimerBackend = Field(default=TimerBackend.ASYNCIO)
    timezone: str | None = Field(default=None)

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, value: str) -> str:
        if value not in {"console", "json"}:
            raise ValueError("log_format must be 'console' or 'json'")
        return value

    @field_validator("fallback_rule")
    @classmethod
    def _validate_fallback_rule(cls, value: str | None) -> str | None:
        if value is None:
            return None
        try:
            parse_rule_strict(value)
        except RuleParseError as exc:
            raise ValueError(exc.message) from exc
        return value

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @property
    def tzinfo(self) -> ZoneInfo | None:
        return ZoneInfo(self.timezone) if self.timezone else None
