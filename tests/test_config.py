"""Tests for configuration settings."""
import json
import logging
from pathlib import Path

import pytest

from config import Settings, get_settings


class TestSettings:
    """Test Settings configuration."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("STORAGE_TYPE", "API_KEY", "DOMAIN"):
            monkeypatch.delenv(name, raising=False)

    def test_default_settings(self):
        """Test default settings values."""
        settings = Settings(_env_file=None)

        assert settings.app_name == "Edge Image Proxy"
        assert settings.environment == "local"
        assert settings.debug is False

        assert settings.api_key is None
        assert settings.domain == "http://localhost:8000"
        assert settings.upload_field == "files"
        assert settings.max_upload_size == 10 * 1024 * 1024
        assert settings.compat_error_status is False

        assert settings.cors_origins == ["*"]
        assert settings.cors_max_age == 86400

        assert settings.storage_type == "local"
        assert settings.storage_root == Path("data/images")

        assert settings.cache_enabled is True
        assert settings.cache_s_maxage == 3600

        assert settings.log_level == "INFO"
        assert settings.log_json is False
        assert settings.log_file is None

    def test_env_override(self, monkeypatch):
        """Test environment variable overrides."""
        monkeypatch.setenv("API_KEY", "s3cret")
        monkeypatch.setenv("DOMAIN", "https://img.example.com")
        monkeypatch.setenv("STORAGE_TYPE", "memory")
        monkeypatch.setenv("STORAGE_ROOT", "/custom/storage")
        monkeypatch.setenv("CACHE_S_MAXAGE", "60")
        monkeypatch.setenv("COMPAT_ERROR_STATUS", "true")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.api_key == "s3cret"
        assert settings.domain == "https://img.example.com"
        assert settings.storage_type == "memory"
        assert settings.storage_root == Path("/custom/storage")
        assert settings.cache_s_maxage == 60
        assert settings.compat_error_status is True
        assert settings.log_level == "DEBUG"

    def test_invalid_storage_type(self):
        with pytest.raises(ValueError):
            Settings(storage_type="s3")

    def test_domain_trailing_slash_removed(self):
        settings = Settings(domain="https://img.example.com/")

        assert settings.domain == "https://img.example.com"
        assert settings.public_path("abc.png") == "https://img.example.com/images/abc.png"

    def test_storage_root_validator(self):
        """Test storage root path validator."""
        settings = Settings(storage_root="custom/path")
        assert isinstance(settings.storage_root, Path)
        assert settings.storage_root == Path("custom/path")

    def test_log_level_numeric(self):
        assert Settings(log_level="WARNING").log_level_numeric == logging.WARNING

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestLoggingConfiguration:
    """Test logging setup driven by settings."""

    @pytest.fixture(autouse=True)
    def restore_logging(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "proxy.log"
        settings = Settings(log_json=True, log_file=log_file, log_level="INFO")

        settings.configure_logging()
        logging.getLogger("edge_image_proxy.test").info("stored image")
        for handler in logging.getLogger().handlers:
            handler.flush()

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["message"] == "stored image"
        assert record["level"] == "INFO"
        assert record["logger"] == "edge_image_proxy.test"

    def test_debug_mode_lowers_package_level(self):
        Settings(debug=True).configure_logging()
        assert logging.getLogger("edge_image_proxy").level == logging.DEBUG
