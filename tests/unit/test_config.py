"""Tests for configuration validation"""
import pytest

from mission_engine import config


class TestConfigValidation:
    """Test validate_config against bad settings"""

    def test_defaults_are_valid(self, monkeypatch):
        monkeypatch.setattr(config, "MISSION_STORE_BACKEND", "memory")
        config.validate_config()

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setattr(config, "MISSION_STORE_BACKEND", "sqlite")

        with pytest.raises(ValueError, match="MISSION_STORE_BACKEND"):
            config.validate_config()

    def test_missing_database_url(self, monkeypatch):
        monkeypatch.setattr(config, "DATABASE_URL", "")

        with pytest.raises(ValueError, match="DATABASE_URL"):
            config.validate_config()

    def test_pool_bounds(self, monkeypatch):
        monkeypatch.setattr(config, "DB_POOL_MIN_SIZE", 5)
        monkeypatch.setattr(config, "DB_POOL_MAX_SIZE", 2)

        with pytest.raises(ValueError, match="DB_POOL_MAX_SIZE"):
            config.validate_config()

    def test_non_positive_timeout(self, monkeypatch):
        monkeypatch.setattr(config, "AUTO_UPDATE_TIMEOUT_SECONDS", 0)

        with pytest.raises(ValueError, match="AUTO_UPDATE_TIMEOUT_SECONDS"):
            config.validate_config()

    def test_retries_required(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_SAVE_RETRIES", 0)

        with pytest.raises(ValueError, match="MAX_SAVE_RETRIES"):
            config.validate_config()
