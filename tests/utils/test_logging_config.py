"""
Tests for the logging setup.
"""

import json
import logging

import pytest
import structlog

from eporia.utils import logging_config
from eporia.utils.logging_config import (
    ServiceLogging,
    log_performance,
    setup_logging,
    shutdown_logging,
)


@pytest.fixture
def service_logging(tmp_path):
    configured = setup_logging(log_dir=str(tmp_path), log_level="INFO", enable_console=False)
    yield configured
    shutdown_logging()
    structlog.reset_defaults()


class TestSetupLogging:
    """Test process-wide configuration."""

    def test_creates_log_files(self, service_logging, tmp_path):
        structlog.get_logger("tests").info("hello", mood_id="chill")

        assert (tmp_path / "eporia.log").exists()
        assert (tmp_path / "errors.log").exists()

    def test_file_records_are_json(self, service_logging, tmp_path):
        structlog.get_logger("tests").info("playlist ready", mood_id="chill")
        for handler in service_logging.handlers:
            handler.flush()

        line = (tmp_path / "eporia.log").read_text(encoding="utf-8").strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "playlist ready"
        assert record["mood_id"] == "chill"
        assert record["level"] == "info"

    def test_errors_log_only_has_errors(self, service_logging, tmp_path):
        log = structlog.get_logger("tests")
        log.info("fine")
        log.error("broken")
        for handler in service_logging.handlers:
            handler.flush()

        content = (tmp_path / "errors.log").read_text(encoding="utf-8")
        assert "broken" in content
        assert "fine" not in content

    def test_quiet_loggers(self, service_logging):
        assert logging.getLogger("postgrest").level == logging.WARNING

    def test_shutdown_detaches_handlers(self, tmp_path):
        configured = setup_logging(log_dir=str(tmp_path), enable_console=False)
        handlers = list(configured.handlers)

        shutdown_logging()
        structlog.reset_defaults()

        root_handlers = logging.getLogger().handlers
        assert not any(handler in root_handlers for handler in handlers)
        assert logging_config._service_logging is None

    @pytest.mark.parametrize("kwargs", [
        {"log_format": "xml"},
        {"log_level": "LOUD"},
    ])
    def test_invalid_options(self, tmp_path, kwargs):
        with pytest.raises(ValueError):
            ServiceLogging(log_dir=str(tmp_path), enable_console=False, **kwargs)

    def test_helpers_are_noops_before_setup(self):
        shutdown_logging()

        log_performance("playlist_generate", 0.01)
