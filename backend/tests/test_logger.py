"""
Tests for the logging facade.
"""

import json
import logging
import sys

import pytest
from pydantic import ValidationError
from rich.logging import RichHandler

from connhub.logger import (
    LogConfig,
    build_file_formatter,
    get_all_loggers,
    new_logger,
    parse_level,
    sync_all,
)
from connhub.logger import factory


@pytest.fixture
def isolated_logger(request):
    """Name of a throwaway logger whose handlers are removed afterwards."""
    name = f"connhub-test.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


class TestLogConfig:
    """Test logging configuration validation."""

    def test_defaults(self):
        config = LogConfig()
        assert config.level == "info"
        assert config.console == "info"
        assert config.format == "text"
        assert config.filename is None

    @pytest.mark.parametrize("name,level", [
        ("debug", logging.DEBUG),
        ("WARN", logging.WARNING),
        ("error", logging.ERROR),
        ("dpanic", logging.CRITICAL),
        ("fatal", logging.CRITICAL),
    ])
    def test_parse_level(self, name, level):
        assert parse_level(name) == level

    def test_invalid_level(self):
        with pytest.raises(ValidationError, match="Log level must be one of"):
            LogConfig(level="verbose")

    def test_invalid_format(self):
        with pytest.raises(ValidationError, match="json or text"):
            LogConfig(format="xml")


class TestNewLogger:
    """Test logger construction and outputs."""

    def test_json_file_output_carries_fields(self, tmp_path, isolated_logger):
        """Test that structured fields end up in the JSON lines."""
        log_file = tmp_path / "logs" / "app.log"
        logger = new_logger(
            LogConfig(filename=str(log_file), format="json", level="debug", console="error"),
            isolated_logger,
        )

        logger.info("Mongo connected", extra={"instance": "main", "uri": "mongodb://db"})
        sync_all()

        entry = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
        assert entry["msg"] == "Mongo connected"
        assert entry["level"] == "info"
        assert entry["instance"] == "main"
        assert entry["uri"] == "mongodb://db"
        assert "ts" in entry

    def test_text_file_output(self, tmp_path, isolated_logger):
        """Test the text format with key=value fields."""
        log_file = tmp_path / "app.log"
        logger = new_logger(LogConfig(filename=str(log_file), console="error"), isolated_logger)

        logger.warning("Health check failed", extra={"instance": "cache"})
        sync_all()

        line = log_file.read_text(encoding="utf-8").strip()
        assert "warning" in line
        assert "Health check failed" in line
        assert "instance=cache" in line

    def test_file_level_filters(self, tmp_path, isolated_logger):
        """Test that records below the file level are dropped."""
        log_file = tmp_path / "app.log"
        logger = new_logger(LogConfig(filename=str(log_file), level="error", console="error"), isolated_logger)

        logger.info("not written")
        logger.error("written")
        sync_all()

        content = log_file.read_text(encoding="utf-8")
        assert "not written" not in content
        assert "written" in content

    def test_handlers_replaced_on_rebuild(self, isolated_logger):
        """Test that building the same logger twice does not duplicate handlers."""
        new_logger(LogConfig(), isolated_logger)
        logger = new_logger(LogConfig(console="debug"), isolated_logger)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.level == logging.DEBUG
        assert get_all_loggers().count(logger) == 1

    def test_get_logger_requires_setup(self, monkeypatch):
        """Test that the default logger must be set up first."""
        monkeypatch.setattr(factory, "_default_logger", None)

        with pytest.raises(RuntimeError, match="setup_logging"):
            factory.get_logger()


class TestFileFormatter:
    """Test structlog rendering of hand-built records."""

    def make_record(self, **extra):
        record = logging.LogRecord("connhub.test", logging.ERROR, __file__, 10, "ping failed", (), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_format(self):
        payload = json.loads(build_file_formatter("json").format(self.make_record(instance="a", error="timeout")))
        assert payload["msg"] == "ping failed"
        assert payload["level"] == "error"
        assert payload["logger"] == "connhub.test"
        assert payload["instance"] == "a"
        assert payload["error"] == "timeout"
        assert "_record" not in payload

    def test_json_format_with_exception(self):
        try:
            raise RuntimeError("ping timed out")
        except RuntimeError:
            record = self.make_record()
            record.exc_info = sys.exc_info()

        payload = json.loads(build_file_formatter("json").format(record))
        assert "RuntimeError: ping timed out" in payload["exception"]

    def test_text_format(self):
        line = build_file_formatter("text").format(self.make_record(instance="a"))
        assert "ping failed" in line
        assert "error" in line
        assert "instance=a" in line
        assert "logger=connhub.test" in line
        assert "\x1b[" not in line
