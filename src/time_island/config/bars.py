"""Bar definitions and the explicit configuration store.

A bar is a named rule plus the few flags that change engine behaviour
(visibility per island state, segment count, completion notifications).
Colors, thickness and layout belong to the presentation layer.

``ConfigStore`` is the handle the tracker and CLI share instead of a global
config object: it holds the settings and the ordered bars, and notifies
subscribers when either is replaced.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from time_island.core.errors import InvalidConfigError
from time_island.core.logging import get_logger

from .settings import TimeIslandSettings

logger = get_logger(__name__)

DEFAULT_RULE = "60s"


class BarConfig(BaseModel):
    """One progress bar."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    rule: str = DEFAULT_RULE
    segmented: bool = False
    segments: int = Field(default=20, ge=1)
    notify: bool = False
    show_in_idle: bool = True
    show_in_expanded: bool = True


def default_bars() -> list[BarConfig]:
    return [
        BarConfig(name="seconds", rule="60s"),
        BarConfig(name="minutes", rule="60m"),
        BarConfig(name="day", rule="16h 8h"),
    ]


def bars_from_mapping(mapping: Mapping[str, Any]) -> list[BarConfig]:
    """Build bars from a ``{name: {rule: ..., ...}}`` mapping, keeping its order.

    A bar whose value is not a mapping gets the default rule, as an empty
    entry in a config file would.
    """
    bars = []
    for name, body in mapping.items():
        if isinstance(body, Mapping):
            bars.append(BarConfig(**{**body, "name": name}))
        else:
            bars.append(BarConfig(name=name))
    return bars


ConfigListener = Callable[["ConfigStore"], None]


class ConfigStore:
    """Settings plus ordered bars, shared by reference.

    Example:
        >>> store = ConfigStore.from_mapping({"year": {"rule": "year"}})
        >>> unsubscribe = store.subscribe(lambda s: print([b.name for b in s.bars]))
        >>> store.replace(bars=default_bars())
        ['seconds', 'minutes', 'day']
    """

    def __init__(
        self,
        settings: TimeIslandSettings | None = None,
        bars: Iterable[BarConfig] | None = None,
    ) -> None:
        self._settings = settings or TimeIslandSettings()
        self._bars = self._validated(default_bars() if bars is None else bars)
        self._listeners: list[ConfigListener] = []

    @classmethod
    def from_mapping(
        cls,
        bars: Mapping[str, Any],
        settings: TimeIslandSettings | None = None,
    ) -> ConfigStore:
        """Build a store from a stored mapping; an empty mapping yields the default bars."""
        return cls(settings=settings, bars=bars_from_mapping(bars) or default_bars())

    @staticmethod
    def _validated(bars: Iterable[BarConfig]) -> tuple[BarConfig, ...]:
        result = tuple(bars)
        seen: set[str] = set()
        for bar in result:
            if bar.name.startswith("__"):
                raise InvalidConfigError("bars", bar.name, f"Bar names starting with '__' are reserved: {bar.name!r}")
            if bar.name in seen:
                raise InvalidConfigError("bars", bar.name, f"Duplicate bar name: {bar.name!r}")
            seen.add(bar.name)
        return result

    @property
    def settings(self) -> TimeIslandSettings:
        return self._settings

    @property
    def bars(self) -> tuple[BarConfig, ...]:
        return self._bars

    def bar(self, name: str) -> BarConfig | None:
        return next((b for b in self._bars if b.name == name), None)

    def subscribe(self, listener: ConfigListener) -> Callable[[], None]:
        """Call *listener* after every replace; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def replace(
        self,
        *,
        settings: TimeIslandSettings | None = None,
        bars: Iterable[BarConfig] | None = None,
    ) -> None:
        if bars is not None:
            self._bars = self._validated(bars)
        if settings is not None:
            self._settings = settings
        logger.info("config_replaced", bars=[b.name for b in self._bars])
        for listener in list(self._listeners):
            listener(self)
