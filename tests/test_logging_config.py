"""Structured logging setup tests."""

from __future__ import annotations

import io
import json
import logging

import pytest

from strict_csp import enable_strict_csp
from strict_csp.config.loader import StrictCspSettings
from strict_csp.logging_config import PACKAGE_LOGGER, _rename_logger_to_module, configure_logging
from strict_csp.policy import build_policy


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Detach handlers added by configure_logging after each test."""
    yield
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


class TestConfigureLogging:
    def test_json_output_from_settings(self):
        """log_json=True renders package events as JSON lines."""
        stream = io.StringIO()
        configure_logging(StrictCspSettings(log_level="debug", log_json=True), stream=stream)
        build_policy()
        log = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert log["event"] == "strict_csp_policy_built"
        assert log["level"] == "debug"
        assert log["directives"] == 4
        assert "timestamp" in log
        assert "logger" not in log

    def test_console_output_from_env_settings(self):
        """Without explicit settings the env-driven ones apply (console, debug)."""
        stream = io.StringIO()
        configure_logging(stream=stream)
        build_policy()
        output = stream.getvalue()
        assert "strict_csp_policy_built" in output
        assert not output.lstrip().startswith("{")

    def test_level_from_settings_filters_events(self, page):
        """Info events are dropped when log_level is warning."""
        stream = io.StringIO()
        settings = StrictCspSettings(log_level="warning", log_json=True)
        configure_logging(settings, stream=stream)
        enable_strict_csp(page, settings=settings)
        assert stream.getvalue() == ""

    def test_warnings_pass_level_filter(self):
        """A structural repair warning still reaches the stream."""
        stream = io.StringIO()
        settings = StrictCspSettings(log_level="warning", log_json=True)
        configure_logging(settings, stream=stream)
        enable_strict_csp("<p>no head</p>", settings=settings)
        events = [json.loads(line)["event"] for line in stream.getvalue().splitlines()]
        assert "head_element_created" in events

    def test_unknown_level_defaults_to_info(self):
        """An unrecognised level name falls back to INFO."""
        package_logger = configure_logging(StrictCspSettings(log_level="chatty"), stream=io.StringIO())
        assert package_logger.level == logging.INFO

    def test_reconfigure_replaces_handler(self):
        """Calling twice leaves a single handler on the package logger."""
        configure_logging(stream=io.StringIO())
        package_logger = configure_logging(stream=io.StringIO())
        assert len(package_logger.handlers) == 1

    def test_root_logger_untouched(self):
        """The application's root handlers are not replaced."""
        root_handlers = list(logging.getLogger().handlers)
        package_logger = configure_logging(stream=io.StringIO())
        assert logging.getLogger().handlers == root_handlers
        assert package_logger.propagate is False

    def test_rename_logger_to_module_processor(self):
        """_rename_logger_to_module renames the 'logger' key to 'module'."""
        event_dict = {"logger": "strict_csp.rewriter", "event": "test"}
        result = _rename_logger_to_module(None, None, event_dict)
        assert result == {"module": "strict_csp.rewriter", "event": "test"}
