"""
Response modes for the tutor.

Each submission kind maps to a mode that:
1. Builds the instruction contract (system directives, history, new input)
2. Post-processes the provider reply
3. Decides which turns are appended to the conversation

Modes are registered in a registry that maps SubmissionKind -> Mode.
"""

from kora_tutor.tutor.modes.base import BaseMode, ModeContext
from kora_tutor.tutor.modes.implementations import (
    AskMode,
    ChallengeMode,
    HintMode,
    ImageMode,
    ReexplainMode,
)
from kora_tutor.tutor.modes.registry import ModeRegistry

__all__ = [
    "BaseMode",
    "ModeContext",
    "ModeRegistry",
    "AskMode",
    "ReexplainMode",
    "ChallengeMode",
    "HintMode",
    "ImageMode",
]
