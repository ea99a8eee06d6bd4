"""Tests for settings and logging configuration."""

import io
import logging

import pytest
from nl2er.config import Settings, get_logger, get_settings, setup_logging


def test_settings_defaults():
    """Test default configuration values."""
    settings = Settings()
    assert settings.extraction_backend == "rules"
    assert settings.min_token_length == 3
    assert settings.max_diagram_entities == 20
    assert settings.max_diagram_relationships == 30


def test_settings_from_environment(monkeypatch):
    """Test environment variables override defaults."""
    monkeypatch.setenv("MIN_TOKEN_LENGTH", "5")
    monkeypatch.setenv("EXTRACTION_BACKEND", "external")
    settings = Settings()
    assert settings.min_token_length == 5
    assert settings.extraction_backend == "external"


def test_settings_reject_unknown_backend(monkeypatch):
    """Test the backend is restricted to known values."""
    monkeypatch.setenv("EXTRACTION_BACKEND", "magic")
    with pytest.raises(ValueError):
        Settings()


def test_get_settings_is_cached():
    """Test the global settings instance is reused."""
    assert get_settings() is get_settings()


def test_get_logger_prefix():
    """Test loggers live under the package logger."""
    assert get_logger("tests.module").name == "nl2er.tests.module"
    assert get_logger("nl2er.pipeline").name == "nl2er.pipeline"


def test_setup_logging_level(tmp_path):
    """Test the package logger level and file handler."""
    log_file = tmp_path / "nl2er.log"
    setup_logging(level="DEBUG", log_file=log_file)
    try:
        package_logger = logging.getLogger("nl2er")
        assert package_logger.level == logging.DEBUG
        assert not package_logger.propagate
        get_logger("tests").debug("hello from tests")
        for handler in package_logger.handlers:
            handler.flush()
        assert "hello from tests" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in logging.getLogger("nl2er").handlers:
            handler.close()
        setup_logging()


def test_setup_logging_replaces_handlers():
    """Test reconfiguring keeps a single console handler writing to the given stream."""
    first, second = io.StringIO(), io.StringIO()
    try:
        setup_logging(level="INFO", stream=first)
        package_logger = setup_logging(level="INFO", stream=second)
        assert package_logger is logging.getLogger("nl2er")
        assert len(package_logger.handlers) == 1
        get_logger("tests").info("routed")
        assert "routed" in second.getvalue()
        assert first.getvalue() == ""
    finally:
        setup_logging()


def test_setup_logging_rejects_unknown_level():
    """Test an unknown level name raises ValueError."""
    with pytest.raises(ValueError):
        setup_logging(level="LOUD")


def test_get_logger_prefix_needs_dot():
    """Test names that merely start with the package name are still prefixed."""
    assert get_logger("nl2erx").name == "nl2er.nl2erx"
    assert get_logger("nl2er").name == "nl2er"
