"""Tests for structured logging setup."""

import json
import logging

from requestkit.observability import APP_NAME, add_app_context, get_logger, setup_logging


def json_records(caplog) -> list[dict]:
    return [json.loads(record.getMessage()) for record in caplog.records]


class TestAddAppContext:
    def test_tags_event(self):
        event = add_app_context(None, "info", {"event": "x"})
        assert event == {"event": "x", "app": APP_NAME}


class TestSetupLogging:
    def test_json_output(self, clean_logging, caplog):
        setup_logging(level="DEBUG", json_logs=True)
        logger = get_logger("requestkit.tests", component="tests", run="abc")

        with caplog.at_level(logging.DEBUG, logger="requestkit"):
            logger.info("exchange_completed", status_code=200)

        [entry] = json_records(caplog)
        assert entry["event"] == "exchange_completed"
        assert entry["status_code"] == 200
        assert entry["component"] == "tests"
        assert entry["run"] == "abc"
        assert entry["app"] == "requestkit"
        assert entry["level"] == "info"
        assert "timestamp" in entry

    def test_without_timestamp(self, clean_logging, caplog):
        setup_logging(level="INFO", json_logs=True, include_timestamp=False)
        logger = get_logger("requestkit.tests")

        with caplog.at_level(logging.INFO, logger="requestkit"):
            logger.warning("dispatch_dropped")

        [entry] = json_records(caplog)
        assert "timestamp" not in entry
        assert "component" not in entry

    def test_console_output(self, clean_logging, caplog):
        setup_logging(level="INFO", json_logs=False)
        logger = get_logger("requestkit.tests", component="tests")

        with caplog.at_level(logging.INFO, logger="requestkit"):
            logger.info("request_built", method="GET")

        assert "request_built" in caplog.text
        assert "method=GET" in caplog.text

    def test_level_applies_to_library_logger(self, clean_logging):
        setup_logging(level="ERROR")
        assert logging.getLogger("requestkit").level == logging.ERROR

    def test_unknown_level_falls_back_to_info(self, clean_logging):
        setup_logging(level="verbose")
        assert logging.getLogger("requestkit").level == logging.INFO


class TestGetLogger:
    def test_respects_stdlib_levels(self, clean_logging, caplog):
        setup_logging(level="DEBUG", json_logs=True)
        logger = get_logger("requestkit.tests.quiet")

        with caplog.at_level(logging.WARNING, logger="requestkit"):
            logger.debug("hidden")
            logger.warning("shown")

        assert [entry["event"] for entry in json_records(caplog)] == ["shown"]
