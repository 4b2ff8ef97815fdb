"""Shared fixtures for the tutor tests."""

import pytest

from kora_tutor.llm import DummyProvider, DummyProviderConfig, LLMConfig, ProviderType
from kora_tutor.tutor import (
    CompletionAdapter,
    InMemoryInteractionLog,
    TutorConfig,
    TutoringController,
)

DEFAULT_REPLY = "Let's work through a similar example together. Does that make sense so far?"


@pytest.fixture
def provider():
    """Dummy provider returning a short tutor reply."""
    config = LLMConfig(provider=ProviderType.DUMMY, model="dummy-model")
    return DummyProvider(config, DummyProviderConfig(response_text=DEFAULT_REPLY))


@pytest.fixture
def tutor_config():
    return TutorConfig()


@pytest.fixture
def interaction_log():
    return InMemoryInteractionLog()


@pytest.fixture
def controller(provider, tutor_config, interaction_log):
    """Controller wired to the dummy provider."""
    return TutoringController(
        config=tutor_config,
        adapter=CompletionAdapter(provider),
        interaction_log=interaction_log,
    )
