"""
Base mode class for the tutoring controller.

All response modes inherit from BaseMode.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from kora_tutor.tutor.types import (
    Challenge,
    Classification,
    ContractViolationReport,
    ConversationTurn,
    InstructionContract,
    Submission,
    SubmissionKind,
)

if TYPE_CHECKING:
    from kora_tutor.tutor.config import ModeConfig


@dataclass
class ModeContext:
    """
    Everything a mode needs for one submission.

    Built once by the controller's context resolution; modes never look
    anything up in the conversation themselves.
    """

    submission: Submission

    history: tuple[ConversationTurn, ...] = ()
    """Turns sent to the provider as history (already windowed)."""

    question_turn: Optional[ConversationTurn] = None
    """Student turn holding the question acted on (reexplain/challenge)."""

    tutor_turn: Optional[ConversationTurn] = None
    """Tutor turn acted on (reexplain/challenge)."""

    challenge: Optional[Challenge] = None
    """Active challenge (hint)."""

    classification: Classification = field(default_factory=Classification)

    @property
    def subject_text(self) -> str:
        """Text whose subject the classifier should look at."""
        if self.question_turn is not None:
            return self.question_turn.text
        if self.challenge is not None:
            return self.challenge.content
        return self.submission.payload.text

    @property
    def is_direct_problem(self) -> bool:
        return self.classification.is_direct_problem_request


class BaseMode(ABC):
    """
    Base class for all response modes.

    Each mode handles one submission kind and defines how to:
    1. Build the instruction contract sent to the provider
    2. Post-process the provider reply
    3. Produce the turns appended to the conversation

    Subclasses must implement:
    - kind: The submission kind handled
    - build_contract(): Create the instruction contract
    - postprocess(): Apply deterministic fixes to the reply
    - turns_for_reply(): Turns to append after a successful reply
    """

    name: str = "base"
    """Identifier for this mode."""

    kind: SubmissionKind

    @abstractmethod
    def build_contract(
        self,
        context: ModeContext,
        config: "ModeConfig",
    ) -> InstructionContract:
        """
        Build the instruction contract for this mode.

        Args:
            context: Resolved context with classification
            config: Mode-specific configuration

        Returns:
            InstructionContract ready for the completion adapter
        """
        pass

    @abstractmethod
    def postprocess(self, text: str, context: ModeContext) -> str:
        """
        Post-process the provider reply.

        Args:
            text: Raw completion text
            context: Resolved context

        Returns:
            The reply content delivered to the student
        """
        pass

    @abstractmethod
    def turns_for_reply(self, content: str, context: ModeContext) -> list[ConversationTurn]:
        """
        Turns to append after a successful reply.

        The tutor turn is always last.
        """
        pass

    def inspect(self, content: str, context: ModeContext) -> Optional[ContractViolationReport]:
        """Diagnostic check of the final reply. None when not applicable."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.value})"
