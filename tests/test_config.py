"""Tests for configuration module."""

import json
import os
from unittest.mock import patch

from packer_provider.config import Settings, get_settings, print_settings_json


class TestSettings:
    """Test Settings class."""

    def test_default_settings(self) -> None:
        """Settings should have sensible defaults."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.executable is None
        assert settings.packer_bin == "packer"
        assert "sqlite" in settings.db_url
        assert "packer-provider" in settings.db_url
        assert settings.log_level == "INFO"

    def test_settings_from_env(self) -> None:
        """Settings should be loadable from environment variables."""
        with patch.dict(
            os.environ,
            {
                "PACKER_PROVIDER_EXECUTABLE": "/usr/local/bin/packer",
                "PACKER_PROVIDER_PACKER_BIN": "/opt/packer/packer",
                "PACKER_PROVIDER_LOG_LEVEL": "DEBUG",
            },
        ):
            settings = Settings()
            assert settings.executable == "/usr/local/bin/packer"
            assert settings.packer_bin == "/opt/packer/packer"
            assert settings.log_level == "DEBUG"

    def test_db_url_from_env(self) -> None:
        """Database URL should be configurable via env."""
        with patch.dict(
            os.environ,
            {"PACKER_PROVIDER_DB_URL": "sqlite:////tmp/test-state.db"},
        ):
            settings = Settings()
            assert settings.db_url == "sqlite:////tmp/test-state.db"

    def test_executor_marker_is_not_a_setting(self) -> None:
        """The executor marker should not leak into settings."""
        with patch.dict(os.environ, {"TPP_RUN_PACKER": "true"}):
            settings = Settings()
            assert not hasattr(settings, "tpp_run_packer")


class TestGetSettings:
    """Test get_settings function."""

    def test_get_settings_returns_settings(self) -> None:
        """get_settings should return a Settings instance."""
        settings = get_settings()
        assert isinstance(settings, Settings)


class TestPrintSettingsJson:
    """Test print_settings_json function."""

    def test_print_settings_json(self) -> None:
        """print_settings_json should return valid JSON."""
        settings = Settings()
        parsed = json.loads(print_settings_json(settings))

        assert "executable" in parsed
        assert "packer_bin" in parsed
        assert "db_url" in parsed
        assert "log_level" in parsed

    def test_print_settings_json_default(self) -> None:
        """print_settings_json without args should use default settings."""
        parsed = json.loads(print_settings_json())
        assert "db_url" in parsed
