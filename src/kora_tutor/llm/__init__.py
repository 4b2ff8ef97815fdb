"""
LLM provider abstraction layer.

This module provides a unified interface for interacting with
OpenAI-compatible LLM providers (OpenAI, LM Studio, Ollama, etc.).

Example:
    ```python
    from kora_tutor.llm import LLMConfig, ProviderType, get_provider

    config = LLMConfig(
        provider=ProviderType.OPENAI,
        model="gpt-4o",
        api_key="sk-...",
    )
    provider = get_provider(config)

    response = await provider.complete("What is photosynthesis?")
    print(response.content)
    ```
"""

from kora_tutor.llm.base import LLMProvider, LLMResponse
from kora_tutor.llm.config import (
    DummyProviderConfig,
    LLMConfig,
    Message,
    MessageRole,
    ProviderType,
)
from kora_tutor.llm.dummy_provider import DummyProvider
from kora_tutor.llm.exceptions import FailureReason, LLMError
from kora_tutor.llm.factory import get_provider, list_providers
from kora_tutor.llm.openai_provider import OpenAIProvider

__all__ = [
    # Config
    "LLMConfig",
    "DummyProviderConfig",
    "ProviderType",
    "Message",
    "MessageRole",
    # Base classes
    "LLMProvider",
    "LLMResponse",
    # Providers
    "OpenAIProvider",
    "DummyProvider",
    # Factory
    "get_provider",
    "list_providers",
    # Exceptions
    "LLMError",
    "FailureReason",
]
