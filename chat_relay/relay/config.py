"""Relay configuration with environment variable loading.

Pydantic-based configuration for the upstream chat-completion provider.
Supports OpenAI and OpenAI-compatible APIs via custom base URL.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from chat_relay.relay.exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

DEFAULT_BASE_URL = "https://api.openai.com/v1"


def _api_key_from_env() -> str:
    for name in ("LLM_API_KEY", "OPENAI_API_KEY", "OPENAI_KEY"):
        value = os.getenv(name, "")
        if value.strip():
            return value
    return ""


class RelayConfig(BaseModel):
    """Configuration for the streaming relay.

    Read once at start-up and handed to the relay explicitly. A missing
    API key is allowed here; it is reported on each chat request instead.

    Attributes:
        api_key: API key for the upstream provider.
        base_url: API base URL of an OpenAI-compatible provider.
        model_name: Model identifier to use.
        temperature: Sampling temperature, provider default when None.
        max_tokens: Maximum tokens in generated response, provider default when None.
        request_timeout: Seconds to wait on the provider before giving up.
    """

    model_config = ConfigDict(validate_default=True)

    api_key: str = Field(
        default_factory=_api_key_from_env,
        description="API key for LLM provider",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL") or DEFAULT_BASE_URL,
        description="API base URL",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("LLM_MODEL") or "gpt-3.5-turbo-0125",
        description="Model to use",
    )
    temperature: float | None = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for response generation",
    )
    max_tokens: int | None = Field(
        default=None,
        ge=1,
        le=128000,
        description="Maximum tokens in generated response",
    )
    request_timeout: float = Field(
        default_factory=lambda: float(os.getenv("LLM_TIMEOUT") or "60"),
        gt=0.0,
        description="Upstream request timeout in seconds",
    )

    @field_validator("api_key")
    @classmethod
    def strip_api_key(cls, v: str) -> str:
        return v.strip()

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)

    def require_credentials(self) -> None:
        """Fail before any upstream request is made.

        Raises:
            ConfigurationError: If no API key is configured.
        """
        if not self.has_credentials:
            raise ConfigurationError(
                "Missing OpenAI API credential",
                details="Set LLM_API_KEY, OPENAI_API_KEY or OPENAI_KEY in .env",
            )


def get_relay_config() -> RelayConfig:
    """Create relay configuration from environment.

    Returns:
        Configured RelayConfig instance.
    """
    return RelayConfig()
