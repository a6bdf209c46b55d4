"""Relay configuration with environment variable loading.

Pydantic-based configuration for the vendor relay and rate limiter.
The API key may be left unset at startup; requests then fail with a
configuration error instead of reaching the vendor.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from coach_relay.relay.prompts import COACHING_SYSTEM_PROMPT

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class RelayConfig(BaseModel):
    """Configuration for the chat relay.

    Attributes:
        api_key: Vendor API key. Empty means the relay is misconfigured.
        base_url: Vendor API base URL.
        api_version: Value of the vendor's protocol version header.
        model_name: Model identifier sent with every request.
        max_tokens: Upper bound on generated tokens per reply.
        system_prompt: Coaching instructions sent as the system prompt.
        request_timeout: Seconds allowed for connect and for each read.
        rate_limit_window_seconds: Length of one rate limit window.
        rate_limit_max_requests: Requests allowed per client per window.
        merge_consecutive_roles: Join adjacent same-role messages before dispatch.
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""),
        description="API key for the vendor",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com"),
        description="Vendor API base URL",
    )
    api_version: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_VERSION", "2023-06-01"),
        description="Vendor protocol version header value",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514"),
        description="Model to use",
    )
    max_tokens: int = Field(
        default=1000,
        ge=1,
        le=64000,
        description="Maximum tokens in generated response",
    )
    system_prompt: str = Field(
        default=COACHING_SYSTEM_PROMPT,
        description="System prompt sent with every conversation",
    )
    request_timeout: float = Field(
        default_factory=lambda: float(os.getenv("RELAY_TIMEOUT_SECONDS", "60")),
        gt=0,
        description="Vendor request timeout in seconds",
    )
    rate_limit_window_seconds: float = Field(
        default_factory=lambda: float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "300")),
        gt=0,
        description="Fixed rate limit window length in seconds",
    )
    rate_limit_max_requests: int = Field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "20")),
        ge=1,
        description="Requests allowed per client per window",
    )
    merge_consecutive_roles: bool = Field(
        default_factory=lambda: _env_flag("MERGE_CONSECUTIVE_ROLES"),
        description="Merge adjacent messages that share a role",
    )

    @field_validator("api_key")
    @classmethod
    def strip_api_key(cls, v: str) -> str:
        """Strip surrounding whitespace so a blank key counts as missing."""
        return v.strip()

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/v1/messages"

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


@lru_cache
def get_relay_config() -> RelayConfig:
    """Create relay configuration from environment.

    Cached so every request shares one instance.

    Returns:
        Configured RelayConfig instance.
    """
    return RelayConfig()
