"""
Concrete mode implementations for the tutoring controller.

Each mode handles one submission kind and builds its own instruction contract.
"""

from typing import TYPE_CHECKING, Optional

from kora_tutor.tutor.contract import (
    CHALLENGE_SHAPE,
    NON_SOLVING,
    SINGLE_HINT,
    detect_literal_reuse,
    ensure_clarifying_question,
    trim_solution_section,
)
from kora_tutor.tutor.modes.base import BaseMode, ModeContext
from kora_tutor.tutor.prompts.templates import (
    BASE_SYSTEM_PROMPT,
    CHALLENGE_SHAPE_DIRECTIVE,
    FOLLOW_UP_INPUTS,
    IMAGE_ANALYSIS_PROMPTS,
    MODE_PROMPTS,
    NON_SOLVING_DIRECTIVE,
    PERSONALITY_PROMPTS,
    SINGLE_HINT_DIRECTIVE,
)
from kora_tutor.tutor.types import (
    ContractViolationReport,
    ConversationTurn,
    ImageContentType,
    InstructionContract,
    ProviderInput,
    SubmissionKind,
)

if TYPE_CHECKING:
    from kora_tutor.tutor.config import MessagesConfig, ModeConfig, PersonalityConfig

_DIRECTIVE_TEXT = {
    NON_SOLVING: NON_SOLVING_DIRECTIVE,
    CHALLENGE_SHAPE: CHALLENGE_SHAPE_DIRECTIVE,
    SINGLE_HINT: SINGLE_HINT_DIRECTIVE,
}


class BaseModeImpl(BaseMode):
    """
    Base implementation with common functionality.

    Subclasses should set:
    - name: Mode identifier
    - kind: The SubmissionKind this mode handles
    - prompt_key: Key in MODE_PROMPTS dict
    """

    name: str = "base"
    prompt_key: str = "ask"

    def __init__(
        self,
        personality_config: "PersonalityConfig",
        messages_config: "MessagesConfig",
    ) -> None:
        """
        Initialize the mode.

        Args:
            personality_config: Personality configuration for prompts
            messages_config: Fixed texts (clarifying prompt)
        """
        self.personality_config = personality_config
        self.messages_config = messages_config

    def get_personality_prompt(self) -> str:
        """Get the personality prompt based on config."""
        tone = self.personality_config.tone.value
        prompt = PERSONALITY_PROMPTS.get(tone, PERSONALITY_PROMPTS["encouraging"])
        return prompt.format(tutor_name=self.personality_config.name)

    def directive_names(self, context: ModeContext) -> frozenset[str]:
        """Contract clauses included for this context."""
        return frozenset()

    def mode_prompt(self, context: ModeContext) -> str:
        return MODE_PROMPTS[self.prompt_key]

    def build_system_prompt(self, context: ModeContext) -> str:
        """Base prompt, mode section, then contract directives."""
        sections = [
            BASE_SYSTEM_PROMPT.format(
                personality_prompt=self.get_personality_prompt(),
                language=self.personality_config.language,
                grade_level=self.personality_config.grade_level,
            ),
            self.mode_prompt(context),
        ]
        for name in sorted(self.directive_names(context)):
            sections.append(_DIRECTIVE_TEXT[name])

        if self.personality_config.custom_system_prompt_suffix:
            sections.append(self.personality_config.custom_system_prompt_suffix)

        return "\n\n".join(sections)

    def build_input(self, context: ModeContext) -> ProviderInput:
        return ProviderInput(text=context.submission.payload.text)

    def build_contract(
        self,
        context: ModeContext,
        config: "ModeConfig",
    ) -> InstructionContract:
        return InstructionContract(
            mode=self.kind,
            system_directives=self.build_system_prompt(context),
            history=tuple(context.history),
            new_input=self.build_input(context),
            max_tokens=config.max_response_tokens,
            temperature=config.temperature,
            directives=self.directive_names(context),
        )

    def postprocess(self, text: str, context: ModeContext) -> str:
        return text.strip()

    def turns_for_reply(self, content: str, context: ModeContext) -> list[ConversationTurn]:
        """Follow-up modes only record the tutor's answer."""
        return [ConversationTurn.tutor(content)]


class NonSolvingModeImpl(BaseModeImpl):
    """
    Shared behavior of modes that explain a student's own problem.

    Direct problem requests get the non-solving directive and a closing
    clarifying question.
    """

    def directive_names(self, context: ModeContext) -> frozenset[str]:
        if context.is_direct_problem:
            return frozenset({NON_SOLVING})
        return frozenset()

    def postprocess(self, text: str, context: ModeContext) -> str:
        text = text.strip()
        if context.is_direct_problem:
            return ensure_clarifying_question(text, self.messages_config.clarifying_prompt)
        return text

    def inspect(self, content: str, context: ModeContext) -> Optional[ContractViolationReport]:
        if not context.is_direct_problem:
            return None
        report = detect_literal_reuse(self.kind, context.subject_text, content)
        return report if report.is_violation else None


class AskMode(NonSolvingModeImpl):
    """
    Mode for fresh questions.

    Sends the recent history and the question as-is.
    """

    name = "ask"
    kind = SubmissionKind.ASK
    prompt_key = "ask"

    def turns_for_reply(self, content: str, context: ModeContext) -> list[ConversationTurn]:
        return [
            ConversationTurn.student(context.submission.payload.text),
            ConversationTurn.tutor(content),
        ]


class ReexplainMode(NonSolvingModeImpl):
    """
    Mode for alternative explanations of an earlier answer.

    History ends with the acted-on tutor turn; the new input is a
    follow-up request, so the provider sees question, answer, request.
    """

    name = "reexplain"
    kind = SubmissionKind.REEXPLAIN
    prompt_key = "reexplain"

    def build_input(self, context: ModeContext) -> ProviderInput:
        return ProviderInput(text=FOLLOW_UP_INPUTS["reexplain"])


class ChallengeMode(BaseModeImpl):
    """
    Mode for practice problems on the same concept.

    The reply becomes the conversation's active challenge.
    """

    name = "challenge"
    kind = SubmissionKind.CHALLENGE
    prompt_key = "challenge"

    def directive_names(self, context: ModeContext) -> frozenset[str]:
        return frozenset({CHALLENGE_SHAPE})

    def build_input(self, context: ModeContext) -> ProviderInput:
        return ProviderInput(text=FOLLOW_UP_INPUTS["challenge"])

    def postprocess(self, text: str, context: ModeContext) -> str:
        return trim_solution_section(text)


class HintMode(BaseModeImpl):
    """Mode for single clues on the active challenge."""

    name = "hint"
    kind = SubmissionKind.HINT
    prompt_key = "hint"

    def directive_names(self, context: ModeContext) -> frozenset[str]:
        return frozenset({SINGLE_HINT})

    def mode_prompt(self, context: ModeContext) -> str:
        challenge_content = context.challenge.content if context.challenge else ""
        return MODE_PROMPTS["hint"].format(challenge_content=challenge_content)

    def build_input(self, context: ModeContext) -> ProviderInput:
        return ProviderInput(text=context.submission.payload.text or FOLLOW_UP_INPUTS["hint"])

    def turns_for_reply(self, content: str, context: ModeContext) -> list[ConversationTurn]:
        turns = []
        if context.submission.payload.text:
            turns.append(ConversationTurn.student(context.submission.payload.text))
        turns.append(ConversationTurn.tutor(content))
        return turns


class ImageMode(NonSolvingModeImpl):
    """
    Mode for questions grounded in an uploaded image.

    The image travels with the new input; the analysis depth chosen by the
    student selects an extra instruction.
    """

    name = "image"
    kind = SubmissionKind.IMAGE
    prompt_key = "image"

    def _query(self, context: ModeContext) -> str:
        return context.submission.payload.text or FOLLOW_UP_INPUTS["image"]

    def mode_prompt(self, context: ModeContext) -> str:
        classification = context.classification
        content_type = classification.image_content_type or ImageContentType.UNKNOWN
        section = MODE_PROMPTS["image"].format(
            content_type=content_type.value,
            subject=classification.subject_domain.value,
        )
        analysis = IMAGE_ANALYSIS_PROMPTS[context.submission.payload.analysis_mode.value]
        return f"{section}\n{analysis}"

    def build_input(self, context: ModeContext) -> ProviderInput:
        return ProviderInput(
            text=self._query(context),
            image_ref=context.submission.payload.image_ref,
        )

    def turns_for_reply(self, content: str, context: ModeContext) -> list[ConversationTurn]:
        return [
            ConversationTurn.student(self._query(context), image_ref=context.submission.payload.image_ref),
            ConversationTurn.tutor(content),
        ]
