"""
Mode registry for the tutoring controller.

Maps each submission kind to exactly one mode.
"""

from typing import TYPE_CHECKING

from kora_tutor.tutor.modes.base import BaseMode
from kora_tutor.tutor.modes.implementations import (
    AskMode,
    ChallengeMode,
    HintMode,
    ImageMode,
    ReexplainMode,
)
from kora_tutor.tutor.types import SubmissionKind

if TYPE_CHECKING:
    from kora_tutor.tutor.config import MessagesConfig, PersonalityConfig


class ModeRegistry:
    """
    Registry that maps submission kinds to modes.

    Usage:
        registry = ModeRegistry(personality_config, messages_config)
        mode = registry.get(SubmissionKind.CHALLENGE)
        contract = mode.build_contract(context, mode_config)
    """

    def __init__(
        self,
        personality_config: "PersonalityConfig",
        messages_config: "MessagesConfig",
    ) -> None:
        self._modes: dict[SubmissionKind, BaseMode] = {
            SubmissionKind.ASK: AskMode(personality_config, messages_config),
            SubmissionKind.REEXPLAIN: ReexplainMode(personality_config, messages_config),
            SubmissionKind.CHALLENGE: ChallengeMode(personality_config, messages_config),
            SubmissionKind.HINT: HintMode(personality_config, messages_config),
            SubmissionKind.IMAGE: ImageMode(personality_config, messages_config),
        }

    def get(self, kind: SubmissionKind) -> BaseMode:
        """
        Get the mode for a submission kind.

        Raises:
            KeyError: If no mode handles the kind
        """
        return self._modes[kind]

    def register(self, kind: SubmissionKind, mode: BaseMode) -> None:
        """
        Register a custom mode for a submission kind.

        Replaces the built-in mode for that kind.
        """
        self._modes[kind] = mode

    def list_modes(self) -> list[tuple[SubmissionKind, str]]:
        """List all registered modes as (kind, mode_name) tuples."""
        return [(kind, mode.name) for kind, mode in self._modes.items()]

    def __contains__(self, kind: SubmissionKind) -> bool:
        return kind in self._modes

    def __getitem__(self, kind: SubmissionKind) -> BaseMode:
        return self.get(kind)
