"""Tests for settings."""

import pytest

from ecoforecast.config import AppSettings, get_settings, validate_all_settings


ENV_VARS = [
    "APP_ENVIRONMENT",
    "DEBUG_MODE",
    "API_HOST",
    "API_PORT",
    "CORS_ORIGINS",
    "STORAGE_BACKEND",
    "API_BASE_URL",
    "HTTP_TIMEOUT_SECONDS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self):
        """Test the default configuration."""
        settings = AppSettings(_env_file=None)

        assert settings.api_port == 5000
        assert settings.storage_backend == "memory"
        assert settings.api_base_url == "http://localhost:5000"
        assert settings.cors_origins_list == ["*"]

    def test_storage_backend_normalized(self, monkeypatch):
        """Test that the backend name is case-insensitive."""
        monkeypatch.setenv("STORAGE_BACKEND", " Sheets ")
        assert AppSettings(_env_file=None).storage_backend == "sheets"

    def test_unknown_storage_backend(self, monkeypatch):
        """Test that unknown backends are rejected."""
        monkeypatch.setenv("STORAGE_BACKEND", "mongo")
        with pytest.raises(ValueError, match="Unknown storage backend"):
            AppSettings(_env_file=None)

    def test_cors_origins_list(self, monkeypatch):
        """Test parsing the comma-separated origins."""
        monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, https://eco.example.com,")
        assert AppSettings(_env_file=None).cors_origins_list == [
            "http://localhost:3000",
            "https://eco.example.com",
        ]

    def test_port_range(self, monkeypatch):
        """Test that the port must be a valid TCP port."""
        monkeypatch.setenv("API_PORT", "70000")
        with pytest.raises(ValueError):
            AppSettings(_env_file=None)


class TestValidateAllSettings:
    """Tests for validate_all_settings."""

    def test_memory_backend_skips_google_sheets(self, monkeypatch):
        """Test that Google Sheets is only checked when selected."""
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        status = validate_all_settings()

        assert status["app"] is True
        assert "google_sheets" not in status

    def test_invalid_app_settings_reported(self, monkeypatch):
        """Test that a broken section is reported, not raised."""
        monkeypatch.setenv("STORAGE_BACKEND", "mongo")
        status = validate_all_settings()

        assert status["app"] is False
        assert "Unknown storage backend" in status["app_error"]
