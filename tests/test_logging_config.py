"""Tests for logging configuration."""

import logging

from weinkeller.logging_config import get_environment, get_log_level


class TestGetLogLevel:
    """Tests for resolving the log level from the environment."""

    def test_development_default_is_debug(self, monkeypatch) -> None:
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("APP_ENV", raising=False)
        monkeypatch.delenv("NODE_ENV", raising=False)
        assert get_log_level() == logging.DEBUG

    def test_production_default_is_info(self, monkeypatch) -> None:
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("APP_ENV", "production")
        assert get_log_level() == logging.INFO

    def test_node_env_production_is_info(self, monkeypatch) -> None:
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("APP_ENV", raising=False)
        monkeypatch.setenv("NODE_ENV", "production")
        assert get_log_level() == logging.INFO

    def test_app_env_takes_precedence(self, monkeypatch) -> None:
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("APP_ENV", "development")
        monkeypatch.setenv("NODE_ENV", "production")
        assert get_environment() == "development"
        assert get_log_level() == logging.DEBUG

    def test_explicit_level_wins(self, monkeypatch) -> None:
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert get_log_level() == logging.WARNING

    def test_unknown_level_falls_back(self, monkeypatch) -> None:
        monkeypatch.delenv("APP_ENV", raising=False)
        monkeypatch.delenv("NODE_ENV", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        assert get_log_level() == logging.DEBUG
