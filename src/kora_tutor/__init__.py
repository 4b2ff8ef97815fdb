"""
Kora - a Socratic AI tutor.

Students ask questions by text, voice or image and receive concept-first
guidance: the tutor explains the method on a different example instead of
solving the student's own problem, and can re-explain, set a harder
practice problem and give hints for it.
"""

__version__ = "0.1.0"

from kora_tutor.llm import (
    DummyProvider,
    DummyProviderConfig,
    LLMConfig,
    LLMProvider,
    LLMResponse,
    Message,
    MessageRole,
    OpenAIProvider,
    ProviderType,
    get_provider,
    list_providers,
)

from kora_tutor.tutor import (
    CompletionAdapter,
    ContentClassifier,
    Conversation,
    Submission,
    SubmissionKind,
    TutorConfig,
    TutoringController,
    TutorReply,
)

__all__ = [
    # Version
    "__version__",
    # LLM Config
    "LLMConfig",
    "DummyProviderConfig",
    "ProviderType",
    "Message",
    "MessageRole",
    # LLM Base classes
    "LLMProvider",
    "LLMResponse",
    # LLM Providers
    "OpenAIProvider",
    "DummyProvider",
    # LLM Factory
    "get_provider",
    "list_providers",
    # Tutor
    "TutoringController",
    "CompletionAdapter",
    "ContentClassifier",
    "TutorConfig",
    "Conversation",
    "Submission",
    "SubmissionKind",
    "TutorReply",
]
