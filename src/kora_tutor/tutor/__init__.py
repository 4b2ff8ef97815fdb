"""
Socratic tutoring dialogue for Kora.

For every student submission the controller selects a mode, builds a
mode-specific instruction contract, calls the completion provider and
post-processes the reply so the tutor never solves the student's own
problem.

Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                 TRANSPORT (HTTP / WS)                    │
    │  Usage gate, session lookup, Submission construction    │
    └─────────────────────────────────────────────────────────┘
                               │
                               ▼
    ┌─────────────────────────────────────────────────────────┐
    │                CONTEXT RESOLUTION                        │
    │  - reexplain/challenge: acted-on tutor turn + question  │
    │  - hint: active challenge                                │
    │  - image: uploaded image                                 │
    └─────────────────────────────────────────────────────────┘
                               │
                               ▼
    ┌─────────────────────────────────────────────────────────┐
    │                CONTENT CLASSIFIER                        │
    │  Rule table for text, one vision query for images       │
    └─────────────────────────────────────────────────────────┘
                               │
                               ▼
    ┌─────────────────────────────────────────────────────────┐
    │                       MODES                              │
    │  ask | reexplain | challenge | hint | image             │
    │  contract → completion → post-processing                │
    └─────────────────────────────────────────────────────────┘
                               │
                               ▼
    ┌─────────────────────────────────────────────────────────┐
    │        CONVERSATION UPDATE + INTERACTION LOG             │
    └─────────────────────────────────────────────────────────┘
"""

from kora_tutor.tutor.classifier import ContentClassifier
from kora_tutor.tutor.completion import CompletionAdapter
from kora_tutor.tutor.config import (
    ClassifierConfig,
    ContextConfig,
    MessagesConfig,
    ModeConfig,
    ModesConfig,
    PersonalityConfig,
    PersonalityTone,
    TutorConfig,
    UploadConfig,
    UsageConfig,
)
from kora_tutor.tutor.controller import TutoringController
from kora_tutor.tutor.errors import (
    ClassificationDegraded,
    MissingContextError,
    NoActiveChallenge,
    ProviderError,
    ProviderRejected,
    ProviderResponseInvalid,
    ProviderUnavailable,
    TutorError,
    UsageLimitExceeded,
)
from kora_tutor.tutor.interaction_log import (
    InMemoryInteractionLog,
    InteractionLog,
    InteractionRecord,
    JsonlInteractionLog,
)
from kora_tutor.tutor.modes import ModeRegistry
from kora_tutor.tutor.session import SessionStore
from kora_tutor.tutor.types import (
    Challenge,
    Classification,
    Conversation,
    ConversationTurn,
    ImageAnalysisMode,
    ImageContentType,
    ImageRef,
    Submission,
    SubmissionKind,
    SubjectDomain,
    TurnRole,
    TutorReply,
)
from kora_tutor.tutor.usage import InMemoryUsageLedger, UsageLedger

__all__ = [
    # Controller
    "TutoringController",
    "CompletionAdapter",
    "ContentClassifier",
    "ModeRegistry",
    "SessionStore",
    # Config
    "TutorConfig",
    "PersonalityConfig",
    "PersonalityTone",
    "ContextConfig",
    "ModeConfig",
    "ModesConfig",
    "ClassifierConfig",
    "UsageConfig",
    "UploadConfig",
    "MessagesConfig",
    # Types
    "Challenge",
    "Classification",
    "Conversation",
    "ConversationTurn",
    "ImageAnalysisMode",
    "ImageContentType",
    "ImageRef",
    "Submission",
    "SubmissionKind",
    "SubjectDomain",
    "TurnRole",
    "TutorReply",
    # Collaborators
    "InteractionLog",
    "InteractionRecord",
    "InMemoryInteractionLog",
    "JsonlInteractionLog",
    "UsageLedger",
    "InMemoryUsageLedger",
    # Errors
    "TutorError",
    "ProviderError",
    "ProviderUnavailable",
    "ProviderRejected",
    "ProviderResponseInvalid",
    "MissingContextError",
    "NoActiveChallenge",
    "ClassificationDegraded",
    "UsageLimitExceeded",
]
