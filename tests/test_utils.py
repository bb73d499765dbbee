"""Tests for logging utilities and the error taxonomy."""

import logging
import logging.handlers

import pytest

from policy_assessment.config import Settings
from policy_assessment.utils import (AssessmentError, AssessmentNotStored, AuditResponseNotFound,
                                     DispatcherFault, StorageError, TargetMismatch,
                                     create_run_logger, get_logger, setup_logger,
                                     setup_logger_from_settings)
from policy_assessment.utils.logger import ROOT_LOGGER, _parse_file_size


@pytest.fixture(autouse=True)
def clean_logger():
    """Detach handlers so every test configures the package logger afresh."""
    def _reset():
        logger = logging.getLogger(ROOT_LOGGER)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()


class TestLogger:
    """Tests for the logging setup."""

    def test_setup_logger(self):
        """Test setup logger."""
        logger = setup_logger(level="DEBUG", console_output=True)

        assert logger.name == "policy_assessment"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_setup_logger_is_idempotent(self):
        """Test setup logger is idempotent."""
        first = setup_logger(level="DEBUG")
        second = setup_logger(level="ERROR")

        assert first is second
        assert len(second.handlers) == 1
        assert second.level == logging.DEBUG

    def test_get_logger(self):
        """Test get logger."""
        assert get_logger("storage").name == "policy_assessment.storage"
        assert get_logger("policy_assessment.cli").name == "policy_assessment.cli"

    def test_file_logging(self, tmp_path):
        """Test file logging."""
        log_file = tmp_path / "test.log"
        logger = setup_logger(level="INFO", log_file=str(log_file), console_output=False)

        logger.info("Test message")

        assert "Test message" in log_file.read_text()

    def test_file_logging_with_directory(self, tmp_path):
        """Test file logging with directory."""
        log_dir = tmp_path / "logs"
        logger = setup_logger(level="INFO", log_dir=str(log_dir), console_output=False)

        logger.info("Test message with directory")

        log_files = list(log_dir.glob("*.log"))
        assert len(log_files) == 1
        assert "Test message with directory" in log_files[0].read_text()

    def test_logger_from_settings(self, tmp_path):
        """Test logger from settings."""
        settings = Settings(log_level="WARNING", log_file=tmp_path / "app.log")

        logger = setup_logger_from_settings(settings, console_output=False)

        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0], logging.handlers.RotatingFileHandler)

    def test_logger_from_settings_level_override(self):
        """Test that an explicit level overrides the configured one."""
        settings = Settings(log_level="WARNING")

        logger = setup_logger_from_settings(settings, level=logging.DEBUG, console_output=False)

        assert logger.level == logging.DEBUG

    def test_run_logger(self, tmp_path):
        """Test run logger."""
        logger = create_run_logger("abc", tmp_path / "runs")

        logger.info("Assessing 'a'")
        for handler in logger.handlers:
            handler.flush()

        assert "Assessing 'a'" in (tmp_path / "runs" / "run_abc.log").read_text()
        assert create_run_logger("abc", tmp_path / "runs") is logger

    def test_parse_file_size(self):
        """Test parse file size."""
        assert _parse_file_size("1024") == 1024
        assert _parse_file_size("1KB") == 1024
        assert _parse_file_size("1MB") == 1024 * 1024
        assert _parse_file_size("1.5GB") == int(1.5 * 1024 * 1024 * 1024)
        assert _parse_file_size("invalid") == 10 * 1024 * 1024


class TestExceptions:
    """Tests for the error taxonomy."""

    def test_hierarchy(self):
        """Test the exception hierarchy."""
        assert issubclass(TargetMismatch, AssessmentError)
        assert issubclass(DispatcherFault, AssessmentError)
        assert issubclass(AssessmentNotStored, StorageError)
        assert issubclass(AuditResponseNotFound, LookupError)

    def test_target_mismatch_message(self):
        """Test target mismatch message."""
        error = TargetMismatch("p1")
        assert error.policy_name == "p1"
        assert "p1" in str(error)

    def test_dispatcher_fault(self):
        """Test a dispatcher fault after the first delivery."""
        fault = DispatcherFault("pool gone", code=DispatcherFault.POOL_BROKEN, delivered=4)
        assert (fault.code, fault.delivered) == (2, 4)

    def test_response_not_found_lists_available(self):
        """Test response not found lists available."""
        error = AuditResponseNotFound("x", ["a", "b"])
        assert "Found a, b" in str(error)
        assert "Found none" in str(AuditResponseNotFound("x"))
