"""
Abstract base class for LLM providers.

This module defines the interface that all LLM providers must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from kora_tutor.llm.config import LLMConfig, Message


@dataclass
class LLMResponse:
    """
    Response from an LLM completion request.

    Attributes:
        content: The generated text content
        model: The model that generated the response
        finish_reason: Why generation stopped (e.g., "stop", "length", "content_filter")
        usage: Token usage statistics (if available)
        raw_response: The raw response from the provider (for debugging)
    """

    content: str
    model: str
    finish_reason: Optional[str] = None
    usage: Optional[dict[str, int]] = None
    raw_response: Optional[dict[str, Any]] = field(default=None, repr=False)

    @property
    def total_tokens(self) -> Optional[int]:
        """Get the total number of tokens used."""
        if self.usage:
            return self.usage.get("total_tokens")
        return None


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    All LLM providers must implement this interface to ensure consistent
    behavior across different backends (OpenAI, Ollama, LM Studio, etc.).
    """

    def __init__(self, config: LLMConfig):
        """
        Initialize the provider with configuration.

        Args:
            config: LLM configuration settings
        """
        self.config = config

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        return self.config.provider.value

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self.config.model

    @abstractmethod
    async def complete(
        self,
        prompt: str | list[Message],
        *,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a complete response from the LLM.

        Args:
            prompt: The input prompt (string or list of messages)
            system_prompt: Optional system prompt to override config default
            **kwargs: Additional generation parameters to override config

        Returns:
            LLMResponse containing the generated text and metadata

        Raises:
            LLMError: If the call fails; ``reason`` says why and
                ``rejected`` marks a content-policy refusal
        """
        ...

    def _prepare_messages(
        self,
        prompt: str | list[Message],
        system_prompt: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """
        Prepare messages for the API request.

        Converts the prompt to a list of message dicts, optionally
        prepending a system prompt. Messages with images are sent in
        the multi-part content format.

        Args:
            prompt: User prompt (string or list of Message objects)
            system_prompt: Optional system prompt (overrides config default)

        Returns:
            List of message dicts ready for API call
        """
        messages: list[dict[str, Any]] = []

        effective_system_prompt = system_prompt or self.config.system_prompt
        if effective_system_prompt:
            messages.append({"role": "system", "content": effective_system_prompt})

        if isinstance(prompt, str):
            messages.append({"role": "user", "content": prompt})
            return messages

        for msg in prompt:
            if not msg.has_images:
                messages.append({"role": msg.role.value, "content": msg.content})
                continue

            parts: list[dict[str, Any]] = []
            if msg.content:
                parts.append({"type": "text", "text": msg.content})
            for url in msg.images:
                parts.append({"type": "image_url", "image_url": {"url": url}})
            messages.append({"role": msg.role.value, "content": parts})

        return messages

    def _merge_generation_params(self, **kwargs: Any) -> dict[str, Any]:
        """
        Merge config generation params with call-time overrides.

        Args:
            **kwargs: Override parameters

        Returns:
            Merged generation parameters
        """
        params = self.config.to_generation_params()

        for key, value in kwargs.items():
            if value is not None:
                params[key] = value

        return params

    async def close(self) -> None:
        """
        Close any resources held by the provider.

        Subclasses should override this to clean up HTTP clients, etc.
        """
        pass

    async def __aenter__(self) -> "LLMProvider":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider_name}, model={self.model_name})"
