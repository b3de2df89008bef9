"""Application configuration loader.

Loads centralized configuration from data/config/wordquiz_v1.yaml
with fallback to built-in defaults.

Usage:
    from wordquiz.config.app_config import load_app_config, get_provider_config

    config = load_app_config()
    provider = get_provider_config("gemini")
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/wordquiz_v1.yaml")


@dataclass
class ProviderConfig:
    """Configuration for a single LLM provider."""

    base_url: str | None
    default_model: str
    api_key_env: str | None = None
    api_key: str | None = None  # Fixed key for local servers

    def get_api_key(self) -> str | None:
        """Get API key from environment variable, else the fixed key."""
        if self.api_key_env and os.environ.get(self.api_key_env):
            return os.environ[self.api_key_env]
        return self.api_key


@dataclass
class GradingConfig:
    """Remote grading protocol settings."""

    max_attempts: int = 3
    backoff_base: float = 2.0
    chunk_size: int = 5
    chunk_delay: float = 0.01


@dataclass
class QuizConfig:
    """Quiz session defaults."""

    choice_count: int = 4


@dataclass
class AppConfig:
    """Application-wide configuration."""

    providers: dict[str, ProviderConfig] = field(default_factory=dict)
    grading: GradingConfig = field(default_factory=GradingConfig)
    quiz: QuizConfig = field(default_factory=QuizConfig)
    paths: dict[str, str] = field(default_factory=dict)

    @property
    def data_dir(self) -> Path:
        """Data directory, overridable via WORDQUIZ_DATA_DIR."""
        return Path(os.environ.get("WORDQUIZ_DATA_DIR", self.paths.get("data_dir", "data")))

    @property
    def words_path(self) -> Path:
        """Location of the JSON word collection."""
        return self.data_dir / self.paths.get("words_file", "words_v1.json")


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "providers": {
            "gemini": {
                "base_url": "https://generativelanguage.googleapis.com/v1beta/openai/",
                "default_model": "gemini-2.5-flash",
                "api_key_env": "GEMINI_API_KEY",
            },
            "openai": {
                "base_url": "https://api.openai.com/v1",
                "default_model": "gpt-4o-mini",
                "api_key_env": "OPENAI_API_KEY",
            },
            "lmstudio": {
                "base_url": "http://localhost:1234/v1",
                "default_model": "default",
                "api_key_env": None,
                "api_key": "lm-studio",
            },
        },
        "grading": {
            "max_attempts": 3,
            "backoff_base": 2,
            "chunk_size": 5,
            "chunk_delay": 0.01,
        },
        "quiz": {
            "choice_count": 4,
        },
        "paths": {
            "data_dir": "data",
            "words_file": "words_v1.json",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    providers = {}
    for name, pconfig in (data.get("providers") or defaults["providers"]).items():
        providers[name] = ProviderConfig(
            base_url=pconfig.get("base_url"),
            default_model=pconfig.get("default_model", "default"),
            api_key_env=pconfig.get("api_key_env"),
            api_key=pconfig.get("api_key"),
        )

    grading_data = data.get("grading", {})
    grading = GradingConfig(
        max_attempts=int(grading_data.get("max_attempts", 3)),
        backoff_base=float(grading_data.get("backoff_base", 2)),
        chunk_size=int(grading_data.get("chunk_size", 5)),
        chunk_delay=float(grading_data.get("chunk_delay", 0.01)),
    )

    quiz_data = data.get("quiz", {})
    quiz = QuizConfig(
        choice_count=int(quiz_data.get("choice_count", 4)),
    )

    paths = {**defaults["paths"], **data.get("paths", {})}

    return AppConfig(providers=providers, grading=grading, quiz=quiz, paths=paths)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def get_provider_config(provider: str) -> ProviderConfig | None:
    """Get configuration for a specific provider.

    Args:
        provider: Provider name (e.g., "gemini", "openai")

    Returns:
        ProviderConfig or None if provider not found.
    """
    config = load_app_config()
    return config.providers.get(provider)


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
