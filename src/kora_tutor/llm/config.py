"""
LLM configuration models.

This module provides Pydantic models for configuring LLM providers.
Supports multiple OpenAI-compatible backends (OpenAI, LM Studio, Ollama)
and text plus vision inputs.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator


class ProviderType(str, Enum):
    """Supported LLM provider types."""

    OPENAI = "openai"
    OLLAMA = "ollama"
    LMSTUDIO = "lmstudio"
    DUMMY = "dummy"


class MessageRole(str, Enum):
    """Message roles for chat completions."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """
    A single message in a conversation.

    ``images`` holds image URLs (``https://`` or ``data:`` URLs) attached to
    the message. Providers that support vision send them as image parts.
    """

    role: MessageRole
    content: str
    images: list[str] = Field(default_factory=list)

    @property
    def has_images(self) -> bool:
        """Whether the message carries image attachments."""
        return bool(self.images)

    @classmethod
    def system(cls, content: str) -> "Message":
        """Create a system message."""
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str, images: Optional[list[str]] = None) -> "Message":
        """Create a user message, optionally with images."""
        return cls(role=MessageRole.USER, content=content, images=images or [])

    @classmethod
    def assistant(cls, content: str) -> "Message":
        """Create an assistant message."""
        return cls(role=MessageRole.ASSISTANT, content=content)


class LLMConfig(BaseModel):
    """
    Configuration for an LLM provider.

    Example:
        ```python
        # OpenAI (text + vision)
        config = LLMConfig(
            provider=ProviderType.OPENAI,
            model="gpt-4o",
            api_key="sk-...",
        )

        # Local LM Studio model
        config = LLMConfig(
            provider=ProviderType.LMSTUDIO,
            model="qwen2.5-vl-7b",
            base_url="http://localhost:1234/v1",
        )
        ```
    """

    # Provider settings
    provider: ProviderType = Field(
        default=ProviderType.OPENAI,
        description="The LLM provider type to use",
    )
    model: str = Field(
        default="gpt-4o",
        description="Model identifier/name",
    )
    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL for the API endpoint",
    )
    api_key: Optional[SecretStr] = Field(
        default=None,
        description="API key for authentication (required for some providers)",
    )

    # Generation parameters
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature (0.0 = deterministic, higher = more random)",
    )
    max_tokens: Optional[int] = Field(
        default=None,
        gt=0,
        description="Maximum tokens to generate (None = model default)",
    )
    top_p: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Nucleus sampling parameter",
    )
    frequency_penalty: Optional[float] = Field(
        default=None,
        ge=-2.0,
        le=2.0,
        description="Frequency penalty for repetition",
    )
    presence_penalty: Optional[float] = Field(
        default=None,
        ge=-2.0,
        le=2.0,
        description="Presence penalty for repetition",
    )
    stop_sequences: Optional[list[str]] = Field(
        default=None,
        description="Stop sequences to end generation",
    )
    seed: Optional[int] = Field(
        default=None,
        description="Random seed for reproducibility",
    )

    # Request settings
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout in seconds",
    )

    # System prompt
    system_prompt: Optional[str] = Field(
        default=None,
        description="Default system prompt to prepend to conversations",
    )

    # Extra provider-specific options
    extra_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional provider-specific options",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base_url doesn't have trailing slash."""
        return v.rstrip("/")

    def get_api_key(self) -> Optional[str]:
        """Get the API key as a plain string."""
        if self.api_key:
            return self.api_key.get_secret_value()
        return None

    def to_generation_params(self) -> dict[str, Any]:
        """
        Convert config to generation parameters dict.

        Returns only non-None generation parameters suitable for API calls.
        """
        params: dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
        }

        if self.max_tokens is not None:
            params["max_tokens"] = self.max_tokens
        if self.top_p is not None:
            params["top_p"] = self.top_p
        if self.frequency_penalty is not None:
            params["frequency_penalty"] = self.frequency_penalty
        if self.presence_penalty is not None:
            params["presence_penalty"] = self.presence_penalty
        if self.stop_sequences is not None:
            params["stop"] = self.stop_sequences
        if self.seed is not None:
            params["seed"] = self.seed

        params.update(self.extra_options)

        return params

    def with_overrides(self, **kwargs: Any) -> "LLMConfig":
        """
        Create a new config with the specified overrides.

        Args:
            **kwargs: Fields to override

        Returns:
            New LLMConfig with overrides applied
        """
        data = self.model_dump()
        data.update(kwargs)
        return LLMConfig.model_validate(data)


class DummyProviderConfig(BaseModel):
    """Configuration specific to the dummy provider for testing."""

    response_text: str = Field(
        default="This is a dummy response for testing purposes.",
        description="Static text to return for complete() calls",
    )
    responses: list[str] = Field(
        default_factory=list,
        description="Queued responses returned in order before falling back to response_text",
    )
    delay_seconds: float = Field(
        default=0.0,
        ge=0.0,
        description="Artificial delay per call (for simulating latency)",
    )
    should_fail: bool = Field(
        default=False,
        description="If True, all calls will raise an error (for testing error handling)",
    )
    failure: str = Field(
        default="connection",
        description="Kind of failure to raise: connection, timeout, content_filter or generic",
    )
    error_message: str = Field(
        default="Simulated dummy provider error",
        description="Error message to raise when should_fail is True",
    )
