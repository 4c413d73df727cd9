"""Tests for the time-island error hierarchy."""

import pytest

from time_island.core.errors import (
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


class TestHierarchy:
    @pytest.mark.parametrize(
        "error, base, category",
        [
            (RuleParseError("60x"), ValidationError, ErrorCategory.VALIDATION),
            (RegistrationError("a", 1), ValidationError, ErrorCategory.VALIDATION),
            (InvalidConfigError("bars", "a"), ConfigError, ErrorCategory.CONFIG),
            (TimerError("no loop"), TimeIslandError, ErrorCategory.SCHEDULING),
            (TimeIslandError("boom"), Exception, ErrorCategory.INTERNAL),
        ],
    )
    def test_categories(self, error, base, category):
        assert isinstance(error, base)
        assert error.category is category

    def test_category_override(self):
        error = TimeIslandError("boom", category=ErrorCategory.CONFIG)
        assert error.category is ErrorCategory.CONFIG


class TestRuleParseError:
    def test_message_and_context(self):
        error = RuleParseError("60x")
        assert error.message == "Unrecognized time rule: '60x'"
        assert error.rule == "60x"
        assert error.to_dict() == {
            "error_type": "RuleParseError",
            "message": "Unrecognized time rule: '60x'",
            "category": "VALIDATION",
            "context": {"rule": "60x"},
            "value": "'60x'",
        }

    def test_non_string_rule_not_in_context(self):
        error = RuleParseError(42)
        assert error.context.rule is None
        assert error.value == 42


class TestRegistrationError:
    def test_default_message(self):
        error = RegistrationError("seconds", "60s")
        assert error.message == "Cannot register 'seconds' with str"
        assert error.context.name == "seconds"


class TestContext:
    def test_with_context_routes_known_and_extra_keys(self):
        error = TimeIslandError("boom").with_context(name="seconds", attempt=2)
        assert error.context.name == "seconds"
        assert error.context.metadata == {"attempt": 2}
        assert error.to_dict()["context"] == {"name": "seconds", "attempt": 2}

    def test_cause_is_chained(self):
        cause = RuntimeError("no running event loop")
        error = TimerError("cannot arm", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "no running event loop"

    def test_empty_context_omitted(self):
        assert "context" not in TimeIslandError("boom").to_dict()
        assert ErrorContext().to_dict() == {}

    def test_repr(self):
        assert repr(TimerError("x")) == "TimerError('x', category=SCHEDULING)"
