"""Tests for settings and logging configuration."""

import logging

import pytest
from pydantic import ValidationError

from stock_access.config.logging_config import LoggingConfig, get_log_level_from_verbosity
from stock_access.config.settings import AccessSettings


class TestAccessSettings:
    """Test defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        for name in ("CACHE_MAX_AGE_SECONDS", "REVERIFY_WINDOW_SECONDS", "ADMIN_ROLE", "DEFAULT_ROLE"):
            monkeypatch.delenv(f"STOCK_ACCESS_{name}", raising=False)

        settings = AccessSettings(_env_file=None)

        assert settings.cache_max_age_seconds == 120.0
        assert settings.reverify_window_seconds == 30.0
        assert settings.in_flight_wait_timeout_seconds == 3.0
        assert settings.profile_create_retry_delay_seconds == 0.3
        assert settings.cache_max_entries == 1000
        assert settings.admin_role == "admin"
        assert settings.default_role == "restaurante"

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("STOCK_ACCESS_CACHE_MAX_AGE_SECONDS", "60")
        monkeypatch.setenv("STOCK_ACCESS_DEFAULT_ROLE", " Almacen ")
        monkeypatch.setenv("STOCK_ACCESS_SUPABASE_URL", "https://demo.supabase.co/")
        monkeypatch.setenv("STOCK_ACCESS_SUPABASE_KEY", "anon-key")

        settings = AccessSettings(_env_file=None)

        assert settings.cache_max_age_seconds == 60.0
        assert settings.default_role == "almacen"
        assert settings.supabase_url == "https://demo.supabase.co"
        assert settings.supabase_key.get_secret_value() == "anon-key"
        assert settings.is_store_configured is True

    def test_store_not_configured_without_key(self):
        settings = AccessSettings(_env_file=None, supabase_url="https://demo.supabase.co", supabase_key=None)

        assert settings.is_store_configured is False

    @pytest.mark.parametrize("field, value", [
        ("cache_max_age_seconds", 0),
        ("cache_max_entries", 0),
        ("reverify_window_seconds", -1),
        ("in_flight_wait_timeout_seconds", 0),
        ("admin_role", "   "),
    ])
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            AccessSettings(_env_file=None, **{field: value})

    def test_reverify_window_can_be_disabled(self):
        assert AccessSettings(_env_file=None, reverify_window_seconds=0).reverify_window_seconds == 0


class TestLoggingConfig:
    """Test environment driven logging setup."""

    @pytest.mark.parametrize("verbosity, level", [
        ("QUIET", "ERROR"),
        ("normal", "WARNING"),
        ("VERBOSE", "INFO"),
        ("DEBUG", "DEBUG"),
        ("LOUD", "WARNING"),
    ])
    def test_verbosity_levels(self, verbosity, level):
        assert get_log_level_from_verbosity(verbosity) == level

    def test_configure_applies_verbosity(self, monkeypatch):
        monkeypatch.setenv("LOG_VERBOSITY", "VERBOSE")
        monkeypatch.setenv("ENABLE_HTTP_LOGGING", "false")

        LoggingConfig.configure()

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.ERROR

        monkeypatch.setenv("LOG_VERBOSITY", "NORMAL")
        LoggingConfig.configure()

    def test_silence_module(self):
        LoggingConfig.silence_module("stock_access.tests.noisy")

        assert logging.getLogger("stock_access.tests.noisy").level == logging.CRITICAL

    def test_build_quiets_cache_lines_in_debug(self):
        config = LoggingConfig.build(verbosity="DEBUG", log_format="json")

        assert config["root"]["level"] == "DEBUG"
        assert config["loggers"][LoggingConfig.CACHE_MODULE]["level"] == "INFO"
        assert config["formatters"]["default"]["format"].startswith('{"time"')

    def test_build_with_http_and_cache_logging(self):
        config = LoggingConfig.build(
            verbosity="DEBUG",
            log_format="unknown",
            enable_http_logging=True,
            enable_cache_logging=True,
        )

        assert "httpx" not in config["loggers"]
        assert LoggingConfig.CACHE_MODULE not in config["loggers"]
        assert config["formatters"]["default"]["format"] == "%(asctime)s - %(levelname)s - %(message)s"
