"""Tests for structlog configuration."""

import json

from time_island.core.logging import LogContext, clear_context, configure_logging, get_logger


def last_json_line(text: str) -> dict:
    lines = [line for line in text.splitlines() if line.strip()]
    return json.loads(lines[-1])


class TestConfigureLogging:
    def test_json_output(self, capsys):
        configure_logging(level="INFO", json_format=True, service="island-test")
        get_logger("time_island.test").info("scheduler_armed", cadence="second")

        event = last_json_line(capsys.readouterr().err)
        assert event["event"] == "scheduler_armed"
        assert event["cadence"] == "second"
        assert event["level"] == "info"
        assert event["service"] == "island-test"
        assert event["logger_name"] == "time_island.test"
        assert "timestamp" in event

    def test_level_filters(self, capsys):
        configure_logging(level="WARNING", json_format=True)
        get_logger("time_island.test").info("hidden")
        get_logger("time_island.test").warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert last_json_line(err)["event"] == "shown"

    def test_without_timestamp(self, capsys):
        configure_logging(level="INFO", json_format=True, add_timestamp=False)
        get_logger().info("plain")
        assert "timestamp" not in last_json_line(capsys.readouterr().err)

    def test_console_output(self, capsys):
        configure_logging(level="INFO", json_format=False)
        get_logger("time_island.test").info("config_replaced", bars=["year"])
        assert "config_replaced" in capsys.readouterr().err


class TestLogContext:
    def test_scoped_context(self, capsys):
        configure_logging(level="INFO", json_format=True)
        logger = get_logger("time_island.test")
        try:
            with LogContext(tracker="island"):
                logger.info("inside")
            logger.info("outside")
        finally:
            clear_context()

        lines = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.strip()]
        assert lines[0]["tracker"] == "island"
        assert "tracker" not in lines[1]
