"""Configuration package for wordquiz."""

from wordquiz.config.app_config import (
    AppConfig,
    GradingConfig,
    ProviderConfig,
    QuizConfig,
    clear_config_cache,
    get_provider_config,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "GradingConfig",
    "ProviderConfig",
    "QuizConfig",
    "clear_config_cache",
    "get_provider_config",
    "load_app_config",
]
