"""
Configuration management for the Hair Match scoring service.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool
    admin_user_ids: list[str]


@dataclass
class AuthConfig:
    """Bearer token and password hashing settings."""
    secret_key: str
    token_max_age_seconds: int
    bcrypt_rounds: int


@dataclass
class ScoringConfig:
    """Match scoring settings."""
    engagement_sample_limit: int
    min_similarity: float
    min_engagement_samples: int
    max_match_reasons: int
    max_engagement_reasons: int
    background_rescoring: bool
    rescore_workers: int
    write_batch_size: int


@dataclass
class CacheConfig:
    """Process-local read cache settings."""
    enabled: bool
    reference_ttl_seconds: int
    score_ttl_seconds: int


@dataclass
class PathsConfig:
    """Path configuration settings."""
    data_dir: str


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class ConfigManager:
    """Manages application configuration loading and access."""

    # env var -> (section, key, converter)
    ENV_OVERRIDES = {
        "APP_HOST": ("app", "host", str),
        "APP_PORT": ("app", "port", int),
        "APP_DEBUG": ("app", "debug", _env_bool),
        "AUTH_SECRET_KEY": ("auth", "secret_key", str),
        "AUTH_TOKEN_MAX_AGE": ("auth", "token_max_age_seconds", int),
        "BCRYPT_ROUNDS": ("auth", "bcrypt_rounds", int),
        "ENGAGEMENT_SAMPLE_LIMIT": ("scoring", "engagement_sample_limit", int),
        "MIN_SIMILARITY": ("scoring", "min_similarity", float),
        "MIN_ENGAGEMENT_SAMPLES": ("scoring", "min_engagement_samples", int),
        "MAX_MATCH_REASONS": ("scoring", "max_match_reasons", int),
        "BACKGROUND_RESCORING": ("scoring", "background_rescoring", _env_bool),
        "RESCORE_WORKERS": ("scoring", "rescore_workers", int),
        "CACHE_ENABLED": ("cache", "enabled", _env_bool),
        "REFERENCE_CACHE_TTL": ("cache", "reference_ttl_seconds", int),
        "SCORE_CACHE_TTL": ("cache", "score_ttl_seconds", int),
        "DATA_DIR": ("paths", "data_dir", str),
    }

    def __init__(self, config_file: str = "match_service_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        self._config = self._get_default_config()

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
            except (json.JSONDecodeError, FileNotFoundError):
                # Keep default config if file is invalid or not found
                pass

        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "app": {
                "host": "0.0.0.0",
                "port": 22582,
                "debug": False,
                "admin_user_ids": []
            },
            "auth": {
                "secret_key": "change-me",
                "token_max_age_seconds": 60 * 60 * 24 * 30,
                "bcrypt_rounds": 12
            },
            "scoring": {
                "engagement_sample_limit": 100,
                "min_similarity": 0.4,
                "min_engagement_samples": 1,
                "max_match_reasons": 10,
                "max_engagement_reasons": 5,
                "background_rescoring": True,
                "rescore_workers": 2,
                "write_batch_size": 500
            },
            "cache": {
                "enabled": True,
                "reference_ttl_seconds": 2 * 60 * 60,
                "score_ttl_seconds": 300
            },
            "paths": {
                "data_dir": "data"
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        for env_name, (section, key, convert) in self.ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw:
                self._config[section][key] = convert(raw)

        if os.getenv("ADMIN_USER_IDS"):
            self._config["app"]["admin_user_ids"] = [
                uid.strip() for uid in os.getenv("ADMIN_USER_IDS").split(",") if uid.strip()
            ]

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        return AppConfig(**self._config["app"])

    def get_auth_config(self) -> AuthConfig:
        """Get auth configuration."""
        return AuthConfig(**self._config["auth"])

    def get_scoring_config(self) -> ScoringConfig:
        """Get scoring configuration."""
        return ScoringConfig(**self._config["scoring"])

    def get_cache_config(self) -> CacheConfig:
        """Get cache configuration."""
        return CacheConfig(**self._config["cache"])

    def get_paths_config(self) -> PathsConfig:
        """Get paths configuration."""
        return PathsConfig(**self._config["paths"])

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)


# Global configuration instance
config_manager = ConfigManager()


def get_app_config() -> AppConfig:
    """Get application configuration."""
    return config_manager.get_app_config()


def get_auth_config() -> AuthConfig:
    """Get auth configuration."""
    return config_manager.get_auth_config()


def get_scoring_config() -> ScoringConfig:
    """Get scoring configuration."""
    return config_manager.get_scoring_config()


def get_cache_config() -> CacheConfig:
    """Get cache configuration."""
    return config_manager.get_cache_config()


def get_paths_config() -> PathsConfig:
    """Get paths configuration."""
    return config_manager.get_paths_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()
