"""LLM client for Gemini / OpenAI-compatible providers.

Provides a single request/response chat primitive used by the
sentence grader.

Supported providers:
- gemini: Google Gemini through its OpenAI-compatible endpoint
- openai: OpenAI API
- lmstudio: Local LM Studio server (OpenAI-compatible API)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml
from openai import OpenAI

from wordquiz.config.app_config import CONFIG_FILE, ProviderConfig, get_provider_config

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

Provider = Literal["gemini", "openai", "lmstudio"]

DEFAULT_CONFIG_PATH = CONFIG_FILE

# Substrings that mark an overloaded / temporarily unavailable service
TRANSIENT_MARKERS = (
    "503",
    "overloaded",
    "service unavailable",
)


def _provider_defaults(provider: str) -> ProviderConfig:
    """Provider settings from the app config (empty if unknown)."""
    provider_config = get_provider_config(provider)
    if provider_config is None:
        logger.warning("unknown_provider", provider=provider)
        return ProviderConfig(base_url=None, default_model="default")
    return provider_config


def is_transient_error(error: BaseException) -> bool:
    """Check whether an error looks like a temporary service overload."""
    if getattr(error, "status_code", None) == 503:
        return True
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_MARKERS)


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    provider: Provider = "gemini"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    model: str = "gemini-2.5-flash"
    temperature: float = 0.3
    max_tokens: int = 512
    timeout: int = 120
    api_key: str | None = None

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> LLMConfig:
        """Load configuration from the `llm` section of a YAML file."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        data: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        else:
            logger.debug("llm_config_not_found", path=str(config_path))

        llm_config = data.get("llm", {})

        provider = llm_config.get("provider", "gemini")
        defaults = _provider_defaults(provider)

        return cls(
            provider=provider,
            base_url=llm_config.get("base_url", defaults.base_url or ""),
            model=llm_config.get("model", defaults.default_model),
            temperature=llm_config.get("temperature", 0.3),
            max_tokens=llm_config.get("max_tokens", 512),
            timeout=llm_config.get("timeout", 120),
            api_key=defaults.get_api_key(),
        )


@dataclass
class Message:
    """A chat message."""

    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for API call."""
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: str
    model: str
    provider: Provider
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: int = 0

    @property
    def total_tokens(self) -> int:
        """Get total token count."""
        return self.usage.get("total_tokens", 0)


class LLMError(Exception):
    """Error during LLM interaction."""

    pass


class LLMConnectionError(LLMError):
    """Error connecting to LLM server."""

    pass


class LLMResponseError(LLMError):
    """Error in LLM response."""

    pass


class LLMTransientError(LLMError):
    """Service overloaded or temporarily unavailable; safe to retry."""

    pass


# =============================================================================
# LLM CLIENT
# =============================================================================


class LLMClient:
    """Unified client for LLM interactions.

    Supports Gemini, OpenAI, and LM Studio via the OpenAI-compatible API.
    """

    def __init__(
        self,
        config: LLMConfig | None = None,
        provider: Provider | None = None,
        model: str | None = None,
    ):
        """Initialize LLM client.

        Args:
            config: LLM configuration (loads from YAML if not provided)
            provider: Override provider from config
            model: Override model from config
        """
        if config is None:
            config = LLMConfig.from_yaml()

        self.config = config

        # Allow overrides
        if provider is not None:
            self.config.provider = provider
            defaults = _provider_defaults(provider)
            if defaults.base_url:
                self.config.base_url = defaults.base_url
            if model is None:
                self.config.model = defaults.default_model
            self.config.api_key = defaults.get_api_key()

        if model is not None:
            self.config.model = model

        self._client = OpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key or "not-needed",
            timeout=self.config.timeout,
        )

        logger.info(
            "llm_client_initialized",
            provider=self.config.provider,
            model=self.config.model,
            base_url=self.config.base_url,
            has_credentials=self.has_credentials(),
        )

    def has_credentials(self) -> bool:
        """Check whether an API key is configured for the provider."""
        return bool(self.config.api_key)

    def chat(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Send chat completion request.

        Args:
            messages: List of messages in conversation
            temperature: Override default temperature
            max_tokens: Override default max tokens

        Returns:
            LLMResponse with content and metadata

        Raises:
            LLMTransientError: If the service is overloaded or unavailable
            LLMConnectionError: If cannot connect to server
            LLMResponseError: If response is invalid
        """
        if temperature is None:
            temperature = self.config.temperature
        if max_tokens is None:
            max_tokens = self.config.max_tokens

        request_kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        start_time = time.time()

        try:
            response = self._client.chat.completions.create(**request_kwargs)
        except Exception as e:
            error_msg = str(e)
            if is_transient_error(e):
                raise LLMTransientError(
                    f"{self.config.provider} is overloaded (503): {e}"
                ) from e
            if "Connection" in error_msg or "connect" in error_msg.lower():
                raise LLMConnectionError(
                    f"Could not connect to {self.config.provider} at {self.config.base_url}: {e}"
                ) from e
            raise LLMError(f"LLM call failed: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            raise LLMResponseError("Empty response from LLM")

        content = response.choices[0].message.content or ""

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.debug(
            "llm_response",
            provider=self.config.provider,
            model=response.model,
            tokens=usage.get("total_tokens", 0),
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=content,
            model=response.model,
            provider=self.config.provider,
            usage=usage,
            latency_ms=latency_ms,
        )

    def simple_chat(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Simple chat with system prompt and user message.

        Convenience method for single-turn conversations.

        Returns:
            Response content as string
        """
        messages = [
            Message(role="system", content=system_prompt),
            Message(role="user", content=user_message),
        ]

        response = self.chat(
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        return response.content
