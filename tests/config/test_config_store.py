"""Tests for BarConfig and ConfigStore."""

import pytest
from pydantic import ValidationError

from time_island.config import BarConfig, ConfigStore, bars_from_mapping, default_bars
from time_island.core.errors import InvalidConfigError


class TestBarConfig:
    def test_defaults(self):
        bar = BarConfig(name="seconds")
        assert bar.rule == "60s"
        assert bar.segmented is False
        assert bar.segments == 20
        assert bar.notify is False
        assert bar.show_in_idle is True
        assert bar.show_in_expanded is True

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            BarConfig(name="")

    def test_segments_must_be_positive(self):
        with pytest.raises(ValidationError):
            BarConfig(name="s", segments=0)

    def test_frozen(self):
        bar = BarConfig(name="s")
        with pytest.raises(ValidationError):
            bar.rule = "30s"

    def test_invalid_rule_is_accepted_as_text(self):
        assert BarConfig(name="s", rule="nonsense").rule == "nonsense"


class TestMappings:
    def test_default_bars(self):
        assert [(b.name, b.rule) for b in default_bars()] == [
            ("seconds", "60s"),
            ("minutes", "60m"),
            ("day", "16h 8h"),
        ]

    def test_from_mapping_keeps_order(self):
        bars = bars_from_mapping({
            "year": {"rule": "year", "notify": True},
            "work": {"rule": "8h 9h", "show_in_idle": False},
            "blank": None,
        })
        assert [b.name for b in bars] == ["year", "work", "blank"]
        assert bars[0].notify is True
        assert bars[1].show_in_idle is False
        assert bars[2].rule == "60s"

    def test_mapping_key_wins_over_body_name(self):
        (bar,) = bars_from_mapping({"year": {"name": "other", "rule": "year"}})
        assert bar.name == "year"


class TestConfigStore:
    def test_defaults(self, settings):
        store = ConfigStore(settings=settings)
        assert [b.name for b in store.bars] == ["seconds", "minutes", "day"]
        assert store.settings is settings

    def test_explicit_empty_bars(self, settings):
        assert ConfigStore(settings=settings, bars=[]).bars == ()

    def test_from_mapping(self, settings):
        store = ConfigStore.from_mapping({"week": {"rule": "week"}}, settings=settings)
        assert store.bar("week").rule == "week"
        assert store.bar("missing") is None

    def test_from_empty_mapping_uses_defaults(self, settings):
        store = ConfigStore.from_mapping({}, settings=settings)
        assert [b.name for b in store.bars] == [b.name for b in default_bars()]

    def test_duplicate_names_rejected(self, settings):
        with pytest.raises(InvalidConfigError) as exc_info:
            ConfigStore(settings=settings, bars=[BarConfig(name="a"), BarConfig(name="a")])
        assert exc_info.value.key == "bars"

    def test_reserved_names_rejected(self, settings):
        with pytest.raises(InvalidConfigError):
            ConfigStore(settings=settings, bars=[BarConfig(name="__time_display__")])

    def test_replace_notifies_subscribers(self, store):
        seen = []
        store.subscribe(lambda s: seen.append([b.name for b in s.bars]))

        store.replace(bars=[BarConfig(name="year", rule="year")])

        assert seen == [["year"]]

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda s: seen.append(s))
        unsubscribe()
        unsubscribe()

        store.replace(bars=default_bars())

        assert seen == []

    def test_replace_settings_only_keeps_bars(self, store, settings):
        new_settings = settings.model_copy(update={"show_seconds": False})
        store.replace(settings=new_settings)
        assert store.settings.show_seconds is False
        assert [b.name for b in store.bars] == ["seconds", "minutes", "day"]

    def test_invalid_replace_keeps_previous_bars(self, store):
        with pytest.raises(InvalidConfigError):
            store.replace(bars=[BarConfig(name="x"), BarConfig(name="x")])
        assert [b.name for b in store.bars] == ["seconds", "minutes", "day"]
