"""
Provider selection.

OpenAI, LM Studio and Ollama all speak the chat completions protocol and
share OpenAIProvider; the dummy provider serves tests and offline demos.
"""

from typing import Optional

from kora_tutor.llm.base import LLMProvider
from kora_tutor.llm.config import DummyProviderConfig, LLMConfig, ProviderType
from kora_tutor.llm.dummy_provider import DummyProvider
from kora_tutor.llm.openai_provider import OpenAIProvider

OPENAI_COMPATIBLE = frozenset({ProviderType.OPENAI, ProviderType.LMSTUDIO, ProviderType.OLLAMA})


def get_provider(
    config: LLMConfig,
    *,
    dummy_config: Optional[DummyProviderConfig] = None,
) -> LLMProvider:
    """Create the provider named by ``config.provider``."""
    if config.provider == ProviderType.DUMMY:
        return DummyProvider(config, dummy_config)
    if config.provider in OPENAI_COMPATIBLE:
        return OpenAIProvider(config)
    raise ValueError(f"Unsupported provider type: {config.provider.value}")


def list_providers() -> list[str]:
    return [provider.value for provider in ProviderType]
