"""Unit tests for the logging module."""

import json
import logging
import os

import pytest

import release_migrator.utils.logging as log_module
from release_migrator.utils.logging import (
    EnhancedFormatter,
    JsonFormatter,
    get_logger,
    is_debug_commands_enabled,
    log_command,
    log_with_context,
    setup_logger,
    setup_main_log_file,
)


@pytest.fixture(autouse=True)
def _clean_logger():
    """Remove all handlers from the release_migrator logger before and after each test."""
    logger = logging.getLogger("release_migrator")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    yield
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    # Reset the module-level debug flag
    log_module._DEBUG_COMMANDS_ENABLED = False


def _record(msg="test message", **extra):
    record = logging.LogRecord(
        name="release_migrator",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_basic_format_contains_required_keys(self):
        result = json.loads(JsonFormatter().format(_record()))
        assert result["level"] == "INFO"
        assert result["message"] == "test message"
        assert "time" in result

    def test_extra_attributes_included(self):
        result = json.loads(JsonFormatter().format(_record(release="apps/app-a")))
        assert result["release"] == "apps/app-a"
        assert "pathname" not in result


class TestEnhancedFormatter:
    """Tests for EnhancedFormatter."""

    def test_appends_release(self):
        output = EnhancedFormatter().format(_record(release="apps/app-a"))
        assert output.endswith("[release=apps/app-a]")

    def test_command_output_hidden_by_default(self):
        output = EnhancedFormatter().format(_record(command="kubectl get", output="x"))
        assert "Command:" not in output

    def test_command_output_shown_when_enabled(self):
        formatter = EnhancedFormatter(include_command_output=True)
        output = formatter.format(_record(command="kubectl get", output="items"))
        assert "Command: kubectl get" in output
        assert "Output: items" in output

    def test_verbose_format_includes_module(self):
        output = EnhancedFormatter(verbose=True).format(_record())
        assert "[test:1]" in output


class TestSetupLogger:
    """Tests for setup_logger() and setup_main_log_file()."""

    def test_console_level_follows_verbose(self):
        logger = setup_logger(verbose=True)
        assert logger.handlers[0].level == logging.DEBUG

        logger = setup_logger(verbose=False)
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.INFO

    def test_debug_commands_flag(self):
        setup_logger(debug_commands=True)
        assert is_debug_commands_enabled() is True

    def test_main_log_file_created(self, tmp_path):
        setup_logger(output_dir=str(tmp_path))
        log_with_context(logging.INFO, "hello file", release="apps/app-a")

        content = (tmp_path / "migration.log").read_text()
        assert "hello file [release=apps/app-a]" in content

    def test_json_log_file(self, tmp_path):
        handler = setup_main_log_file(str(tmp_path), json_format=True)
        log_with_context(logging.INFO, "json line", release="apps/app-a")
        handler.flush()

        lines = (tmp_path / "migration.log").read_text().splitlines()
        data = json.loads(lines[-1])
        assert data["message"] == "json line"
        assert data["release"] == "apps/app-a"
        assert os.path.isfile(tmp_path / "migration.log")


class TestLogHelpers:
    """Tests for log_with_context() and log_command()."""

    def test_log_with_context_drops_none(self, caplog):
        with caplog.at_level(logging.INFO, logger="release_migrator"):
            log_with_context(logging.INFO, "msg", release=None, store="legacy")

        record = caplog.records[-1]
        assert record.store == "legacy"
        assert not hasattr(record, "release")

    def test_log_command_output_only_in_debug_mode(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="release_migrator"):
            log_command(["kubectl", "get"], "secret output")
        assert caplog.records[-1].command == "kubectl get"
        assert not hasattr(caplog.records[-1], "output")

        log_module._DEBUG_COMMANDS_ENABLED = True
        with caplog.at_level(logging.DEBUG, logger="release_migrator"):
            log_command(["kubectl", "get"], "x" * 3000)
        assert caplog.records[-1].output.endswith("... [truncated]")

    def test_get_logger_adds_default_handler(self):
        logger = get_logger()
        assert logger.name == "release_migrator"
        assert len(logger.handlers) == 1
