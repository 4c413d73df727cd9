"""
Progress tracker: the consumer side of the engine.

Manifesto:
    The scheduler says *which calendar components moved*; something still has
    to decide which bars are visible, which of them need re-evaluating, and
    whether a new value is different enough to be worth a redraw. The tracker
    does that and emits a single ``ProgressUpdate`` per tick for the
    presentation layer to render.

Architecture:
    ::

        ConfigStore ──replace()──► reload()  parse rules, re-register
                                        │
        transition_to(state) ───────────┤
                                        ▼
                           TickScheduler.set_registrations({name: granularity})
                                        │
                           on_tick(now, changed)
                                        ▼
                 for each visible bar with granularity ∈ changed:
                     value = progress(rule, now)
                     emit if its bucket moved (or segmented s/m bar)
                     completed if notify and (wrapped by > 0.5 or hit 1.0)
                                        │
                 completed while idle: hover for 3 s, then back to idle
                                        ▼
                           listener(ProgressUpdate)

Tags:
    tracker, progress, observer, time-island

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from time_island.config.bars import BarConfig, ConfigStore
from time_island.config.settings import TimeFormat
from time_island.core.logging import LogContext, get_logger
from time_island.rules.parser import RuleDescriptor, parse_rule
from time_island.rules.progress import progress, to_local
from time_island.rules.units import CycleUnit, Granularity
from time_island.scheduling.service import TickScheduler

logger = get_logger(__name__)

TIME_DISPLAY_NAME = "__time_display__"
NOTIFICATION_NAME = "__notification__"
NOTIFICATION_DISMISS_SECONDS = 3.0

PROGRESS_UNSET = -1.0
UNSEGMENTED_BUCKETS = 100
WRAP_THRESHOLD = 0.5


class IslandState(str, Enum):
    IDLE = "idle"
    HOVERED = "hovered"
    EXPANDED = "expanded"
    SETTINGS = "settings"


@dataclass(frozen=True)
class ProgressUpdate:
    """Values that changed on one tick (or one registration update)."""

    at: datetime
    changed: frozenset[Granularity]
    progresses: dict[str, float] = field(default_factory=dict)
    time_text: str | None = None
    completed: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.progresses and self.time_text is None


UpdateListener = Callable[[ProgressUpdate], None]


def format_time(at: datetime, time_format: TimeFormat, show_seconds: bool) -> str:
    """Clock text: ``HH:MM[:SS]`` or ``h:MM[:SS] AM``."""
    if time_format is TimeFormat.H12:
        hour = at.hour % 12 or 12
        suffix = "AM" if at.hour < 12 else "PM"
        body = f"{hour}:{at.minute:02d}:{at.second:02d}" if show_seconds else f"{hour}:{at.minute:02d}"
        return f"{body} {suffix}"
    if show_seconds:
        return f"{at.hour:02d}:{at.minute:02d}:{at.second:02d}"
    return f"{at.hour:02d}:{at.minute:02d}"


def _bucket(value: float, buckets: int) -> int:
    return int(value * buckets)


class ProgressTracker:
    """Registers visible bars with a scheduler and emits progress updates.

    Example:
        >>> store = ConfigStore()
        >>> tracker = ProgressTracker(store, TickScheduler(), listener=print)
        >>> tracker.start()
        >>> tracker.transition_to(IslandState.EXPANDED)
    """

    def __init__(
        self,
        store: ConfigStore,
        scheduler: TickScheduler,
        listener: UpdateListener | None = None,
    ) -> None:
        self.store = store
        self.scheduler = scheduler
        self.listener = listener

        self._state = IslandState.IDLE
        self._rules: dict[str, RuleDescriptor] = {}
        self._bars: dict[str, BarConfig] = {}
        self._progresses: dict[str, float] = {}
        self._time_text: str = ""
        self._unsubscribe: Callable[[], None] | None = None
        self._notify_until: datetime | None = None

    # === Lifecycle ===

    def start(self) -> None:
        """Subscribe to the store and scheduler, parse bars and register."""
        self.scheduler.on_tick(self.handle_tick)
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(lambda _store: self.reload())
        self.reload()

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._notify_until = None
        self.scheduler.close()

    # === State ===

    @property
    def state(self) -> IslandState:
        return self._state

    @property
    def progresses(self) -> dict[str, float]:
        return dict(self._progresses)

    @property
    def time_text(self) -> str:
        return self._time_text

    @property
    def rules(self) -> dict[str, RuleDescriptor]:
        return dict(self._rules)

    @property
    def is_notifying(self) -> bool:
        return self._notify_until is not None

    def transition_to(self, state: IslandState) -> None:
        self._state = IslandState(state)
        self._update_registrations()

    def reload(self) -> None:
        """Re-parse every bar's rule and re-register."""
        settings = self.store.settings
        fallback = parse_rule(settings.fallback_rule) if settings.fallback_rule else None

        self._rules = {}
        self._bars = {}
        for bar in self.store.bars:
            self._bars[bar.name] = bar
            rule = parse_rule(bar.rule)
            if rule is None:
                with LogContext(bar=bar.name, rule=bar.rule):
                    if fallback is None:
                        logger.warning("bar_rule_invalid_skipped")
                        continue
                    logger.warning("bar_rule_invalid_fallback", fallback=settings.fallback_rule)
                rule = fallback
            self._rules[bar.name] = rule

        for name in list(self._progresses):
            if name not in self._rules:
                del self._progresses[name]

        self._update_registrations()

    # === Registration ===

    def visible_bars(self) -> list[BarConfig]:
        bars = self.store.bars
        match self._state:
            case IslandState.IDLE:
                return [b for b in bars if b.show_in_idle]
            case IslandState.HOVERED | IslandState.EXPANDED:
                return [b for b in bars if b.show_in_expanded]
        return []

    def shows_time_display(self) -> bool:
        return self._state in (IslandState.HOVERED, IslandState.EXPANDED)

    def time_display_granularity(self) -> Granularity:
        return Granularity.SECOND if self.store.settings.show_seconds else Granularity.MINUTE

    def registrations(self) -> dict[str, Granularity]:
        registrations = {
            bar.name: self._rules[bar.name].granularity
            for bar in self.visible_bars()
            if bar.name in self._rules
        }
        if self.shows_time_display():
            registrations[TIME_DISPLAY_NAME] = self.time_display_granularity()
        if self.is_notifying:
            registrations[NOTIFICATION_NAME] = Granularity.SECOND
        return registrations

    def _update_registrations(self) -> None:
        registrations = self.registrations()
        self.scheduler.set_registrations(registrations)
        if registrations:
            self.handle_tick(self.scheduler.clock.now(), frozenset(registrations.values()))

    # === Tick handling ===

    def handle_tick(self, now: datetime, changed: frozenset[Granularity]) -> ProgressUpdate | None:
        """Re-evaluate bars whose granularity is in *changed* and emit what moved."""
        if self._notify_until is not None and now >= self._notify_until:
            self._dismiss_notification()
            return None

        settings = self.store.settings
        tz = settings.tzinfo
        updates: dict[str, float] = {}

        for bar in self.visible_bars():
            rule = self._rules.get(bar.name)
            if rule is None or rule.granularity not in changed:
                continue

            value = progress(rule, now, tz=tz)
            old = self._progresses.get(bar.name, PROGRESS_UNSET)
            buckets = bar.segments if bar.segmented else UNSEGMENTED_BUCKETS
            force = bar.segmented and rule.unit in (CycleUnit.SECONDS, CycleUnit.MINUTES)
            if force or _bucket(value, buckets) != _bucket(old, buckets):
                updates[bar.name] = value

        time_text = None
        if self.shows_time_display() and self.time_display_granularity() in changed:
            text = format_time(to_local(now, tz), settings.time_format, settings.show_seconds)
            if text != self._time_text:
                time_text = text

        if not updates and time_text is None:
            return None

        completed = set()
        for name, value in updates.items():
            old = self._progresses.get(name, PROGRESS_UNSET)
            bar = self._bars.get(name)
            if bar is not None and bar.notify and old >= 0.0:
                wrapped = (old - value) > WRAP_THRESHOLD
                reached_full = value >= 1.0 and old < 1.0
                if wrapped or reached_full:
                    completed.add(name)
            self._progresses[name] = value

        if time_text is not None:
            self._time_text = time_text

        update = ProgressUpdate(
            at=now,
            changed=frozenset(changed),
            progresses=updates,
            time_text=time_text,
            completed=frozenset(completed),
        )
        if completed:
            logger.info("cycle_completed", bars=sorted(completed))
        if self.listener is not None:
            self.listener(update)
        if completed and self._state is IslandState.IDLE and not self.is_notifying:
            self._start_notification(now)
        return update

    # === Notification ===

    def _start_notification(self, now: datetime) -> None:
        self._notify_until = now + timedelta(seconds=NOTIFICATION_DISMISS_SECONDS)
        logger.info("notification_started", until=self._notify_until.isoformat())
        self.transition_to(IslandState.HOVERED)

    def _dismiss_notification(self) -> None:
        self._notify_until = None
        logger.info("notification_dismissed", state=self._state.value)
        if self._state is IslandState.HOVERED:
            self.transition_to(IslandState.IDLE)
        else:
            self._update_registrations()


__all__ = [
    "IslandState",
    "NOTIFICATION_DISMISS_SECONDS",
    "NOTIFICATION_NAME",
    "ProgressTracker",
    "ProgressUpdate",
    "TIME_DISPLAY_NAME",
    "format_time",
]
