"""
Test cases for the configuration management system.
Tests config loading, validation, and access functionality.
"""

import os
import json
from unittest.mock import patch, mock_open
import pytest

from config_manager import (
    ConfigManager,
    AppConfig,
    AuthConfig,
    ScoringConfig,
    CacheConfig,
    PathsConfig,
    get_app_config,
    get_auth_config,
    get_scoring_config,
    get_cache_config,
    get_paths_config,
)


class TestConfigManager:
    """Test the ConfigManager class functionality."""

    def test_defaults(self):
        """Test ConfigManager defaults when no file exists."""
        with patch('config_manager.Path') as mock_path:
            mock_path.return_value.exists.return_value = False
            with patch.dict(os.environ, {}, clear=True):
                manager = ConfigManager()

        scoring = manager.get_scoring_config()
        assert scoring.engagement_sample_limit == 100
        assert scoring.min_similarity == 0.4
        assert scoring.max_match_reasons == 10
        assert scoring.max_engagement_reasons == 5
        assert scoring.write_batch_size == 500
        assert manager.get_cache_config().reference_ttl_seconds == 7200
        assert manager.get_paths_config().data_dir == "data"

    def test_load_config_from_file(self, tmp_path):
        """Test loading configuration from an existing file."""
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({
            "app": {"port": 8080, "admin_user_ids": ["admin1"]},
            "scoring": {"min_similarity": 0.5},
        }))

        with patch.dict(os.environ, {}, clear=True):
            manager = ConfigManager(str(config_file))

        assert manager.get_app_config().port == 8080
        assert manager.get_app_config().admin_user_ids == ["admin1"]
        # untouched keys keep their defaults
        assert manager.get_app_config().host == "0.0.0.0"
        assert manager.get_scoring_config().min_similarity == 0.5
        assert manager.get_scoring_config().engagement_sample_limit == 100

    def test_invalid_file_falls_back_to_defaults(self, tmp_path):
        """Test that an unreadable JSON file is ignored."""
        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")
        with patch.dict(os.environ, {}, clear=True):
            manager = ConfigManager(str(config_file))
        assert manager.get_app_config().port == 22582

    def test_override_with_env_variables(self):
        """Test that environment variables override config file values."""
        env_vars = {
            "APP_HOST": "localhost",
            "APP_PORT": "8080",
            "APP_DEBUG": "true",
            "ADMIN_USER_IDS": "admin1, admin2,,admin3",
            "AUTH_SECRET_KEY": "env-secret",
            "ENGAGEMENT_SAMPLE_LIMIT": "50",
            "MIN_SIMILARITY": "0.6",
            "BACKGROUND_RESCORING": "no",
            "CACHE_ENABLED": "false",
            "SCORE_CACHE_TTL": "30",
            "DATA_DIR": "/var/lib/match",
        }

        with patch('config_manager.Path') as mock_path:
            mock_path.return_value.exists.return_value = False
            with patch.dict(os.environ, env_vars, clear=True):
                manager = ConfigManager()

        assert manager._config["app"]["host"] == "localhost"
        assert manager._config["app"]["port"] == 8080
        assert manager._config["app"]["debug"] is True
        assert manager._config["app"]["admin_user_ids"] == ["admin1", "admin2", "admin3"]
        assert manager._config["auth"]["secret_key"] == "env-secret"
        assert manager._config["scoring"]["engagement_sample_limit"] == 50
        assert manager._config["scoring"]["min_similarity"] == 0.6
        assert manager._config["scoring"]["background_rescoring"] is False
        assert manager._config["cache"]["enabled"] is False
        assert manager._config["cache"]["score_ttl_seconds"] == 30
        assert manager._config["paths"]["data_dir"] == "/var/lib/match"

    def test_get_typed_sections(self):
        """Test the dataclass accessors."""
        with patch('config_manager.Path') as mock_path:
            mock_path.return_value.exists.return_value = False
            manager = ConfigManager()

        assert isinstance(manager.get_app_config(), AppConfig)
        assert isinstance(manager.get_auth_config(), AuthConfig)
        assert isinstance(manager.get_scoring_config(), ScoringConfig)
        assert isinstance(manager.get_cache_config(), CacheConfig)
        assert isinstance(manager.get_paths_config(), PathsConfig)

    def test_get_config(self):
        """Test getting raw configuration dictionary."""
        test_config = {"test": "value"}

        with patch('config_manager.Path') as mock_path:
            mock_path.return_value.exists.return_value = False
            manager = ConfigManager()
            manager._config = test_config

            config = manager.get_config()

            assert config == test_config
            assert config is not manager._config  # Should be a copy

    def test_save_config(self):
        """Test saving configuration to file."""
        with patch('config_manager.Path') as mock_path:
            mock_path.return_value.exists.return_value = False
            manager = ConfigManager()

            with patch('builtins.open', mock_open()) as mock_file:
                manager.save_config()

                mock_file.assert_called_once()
                mock_file().write.assert_called()

    def test_reload_config(self):
        """Test reloading configuration."""
        with patch('config_manager.Path') as mock_path:
            mock_path.return_value.exists.return_value = False
            manager = ConfigManager()

            original_config = manager._config.copy()

            # Modify config
            manager._config["test"] = "modified"

            # Reload should restore original
            manager.reload()

            assert "test" not in manager._config
            assert manager._config == original_config


class TestGlobalFunctions:
    """Test the global configuration functions."""

    def test_global_accessors(self):
        """Test the module-level helpers."""
        assert isinstance(get_app_config(), AppConfig)
        assert isinstance(get_auth_config(), AuthConfig)
        assert isinstance(get_scoring_config(), ScoringConfig)
        assert isinstance(get_cache_config(), CacheConfig)
        assert isinstance(get_paths_config(), PathsConfig)
