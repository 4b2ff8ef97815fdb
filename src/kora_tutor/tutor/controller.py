"""
Tutoring dialogue controller.

Main orchestrator that turns one student submission into one tutor reply:

1. Resolve context (what the submission acts on)
2. Classify the content
3. Select the mode and build its instruction contract
4. Call the completion provider
5. Post-process the reply
6. Append the new turns to the conversation
7. Record the interaction
"""

import logging
import random
import time
from typing import TYPE_CHECKING, Optional

from kora_tutor.tutor.classifier import ContentClassifier
from kora_tutor.tutor.config import TutorConfig
from kora_tutor.tutor.errors import (
    MissingContextError,
    NoActiveChallenge,
    ProviderError,
    ProviderUnavailable,
)
from kora_tutor.tutor.interaction_log import InteractionRecord
from kora_tutor.tutor.modes import ModeContext, ModeRegistry
from kora_tutor.tutor.types import (
    Classification,
    Conversation,
    ConversationTurn,
    Submission,
    SubmissionKind,
    TurnRole,
    TutorReply,
)

if TYPE_CHECKING:
    from kora_tutor.tutor.completion import CompletionAdapter
    from kora_tutor.tutor.interaction_log import InteractionLog

logger = logging.getLogger(__name__)


class TutoringController:
    """
    Routes submissions to modes and enforces the tutoring contract.

    The controller holds no per-session state: everything it needs lives
    in the Conversation passed to ``intake``. Submissions of one session
    must be serialized by the caller.

    Usage:
        adapter = CompletionAdapter(get_provider(llm_config))
        controller = TutoringController(config=TutorConfig(), adapter=adapter)

        conversation = Conversation()
        reply = await controller.intake(conversation, Submission.ask("Résoudre 3x + 8 = 9"))
        reply = await controller.intake(conversation, Submission.challenge())
        reply = await controller.intake(conversation, Submission.hint())
    """

    def __init__(
        self,
        config: TutorConfig,
        adapter: "CompletionAdapter",
        classifier: Optional[ContentClassifier] = None,
        interaction_log: Optional["InteractionLog"] = None,
        registry: Optional[ModeRegistry] = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            config: Complete tutor configuration
            adapter: Completion adapter for all provider calls
            classifier: Content classifier (built from the adapter if not provided)
            interaction_log: Optional interaction log
            registry: Mode registry (built from config if not provided)
        """
        self.config = config
        self.adapter = adapter
        self.classifier = classifier or ContentClassifier(adapter, config.classifier)
        self.interaction_log = interaction_log
        self.registry = registry or ModeRegistry(config.personality, config.messages)

    async def intake(self, conversation: Conversation, submission: Submission) -> TutorReply:
        """
        Process one student submission.

        Args:
            conversation: The session's conversation (mutated on success)
            submission: The student action

        Returns:
            TutorReply. Provider failures produce a degraded reply
            (apology, or a canned hint in hint mode) and append nothing.

        Raises:
            MissingContextError: If the submission has nothing to act on.
                Raised before any provider call.
        """
        start_time = time.perf_counter()
        kind = submission.kind

        try:
            context = self.resolve_context(conversation, submission)
        except NoActiveChallenge as e:
            logger.info(f"Hint requested without active challenge: {e}")
            return self._fallback_reply(kind, Classification())

        mode_config = self.config.modes.for_kind(kind)
        mode = self.registry.get(kind)

        try:
            context.classification = await self.classifier.classify(
                submission,
                subject_text=context.subject_text,
            )

            if not mode_config.enabled:
                logger.info(f"Mode {kind.value} is disabled")
                return self._fallback_reply(kind, context.classification, context)

            contract = mode.build_contract(context, mode_config)
            raw = await self.adapter.complete_contract(contract)
            content = mode.postprocess(raw, context)
            if not content:
                raise ProviderUnavailable("Reply was empty after post-processing")

            violation = mode.inspect(content, context)

        except ProviderError as e:
            logger.warning(f"Provider failed in {kind.value} mode ({type(e).__name__}): {e}")
            return self._fallback_reply(kind, context.classification, context)

        except Exception as e:
            logger.exception(f"Error processing {kind.value} submission: {e}")
            return self._fallback_reply(kind, context.classification, context)

        if violation is not None:
            logger.warning(
                f"Reply in {kind.value} mode reuses literals of the student's problem: "
                f"{', '.join(violation.reused_literals)}"
            )

        turns = mode.turns_for_reply(content, context)
        conversation.extend(turns)
        tutor_turn = turns[-1]

        challenge_id = None
        if kind == SubmissionKind.CHALLENGE:
            challenge_id = conversation.issue_challenge(tutor_turn).id
        elif kind == SubmissionKind.HINT and context.challenge is not None:
            challenge_id = context.challenge.id

        self._record(conversation, submission, context, content)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Answered {kind.value} submission in {elapsed_ms:.0f}ms "
            f"(domain={context.classification.subject_domain.value}, "
            f"direct={context.classification.is_direct_problem_request})"
        )

        return TutorReply(
            content=content,
            mode=kind,
            classification=context.classification,
            challenge_id=challenge_id,
            tutor_turn_id=tutor_turn.id,
            violation=violation,
        )

    def resolve_context(self, conversation: Conversation, submission: Submission) -> ModeContext:
        """
        Resolve what the submission acts on.

        Raises:
            MissingContextError: reexplain/challenge without a prior exchange,
                image without an image, ask without text
            NoActiveChallenge: hint without an issued challenge
        """
        kind = submission.kind
        max_turns = self.config.context.max_history_turns

        if kind in (SubmissionKind.REEXPLAIN, SubmissionKind.CHALLENGE):
            index = self._resolve_tutor_index(conversation, submission)
            question = self._question_before(conversation, index)
            if question is None:
                raise MissingContextError(
                    f"No student question precedes the explanation to {kind.value}",
                    details={"tutor_turn_id": conversation.turns[index].id},
                )
            start = max(0, index + 1 - max_turns) if max_turns > 0 else index + 1
            return ModeContext(
                submission=submission,
                history=tuple(conversation.turns[start : index + 1]),
                question_turn=question,
                tutor_turn=conversation.turns[index],
            )

        history = tuple(conversation.window(max_turns))

        if kind == SubmissionKind.HINT:
            challenge = conversation.active_challenge
            if challenge is None:
                raise NoActiveChallenge("No challenge has been issued in this conversation")
            requested = submission.context_refs[0] if submission.context_refs else None
            if requested and requested != challenge.id:
                logger.debug(f"Hint for superseded challenge {requested}, using {challenge.id}")
            return ModeContext(submission=submission, history=history, challenge=challenge)

        if kind == SubmissionKind.IMAGE:
            if submission.payload.image_ref is None:
                raise MissingContextError("Image analysis requested without an image")
            return ModeContext(submission=submission, history=history)

        if not submission.payload.text.strip():
            raise MissingContextError("Empty question")
        return ModeContext(submission=submission, history=history)

    def _resolve_tutor_index(self, conversation: Conversation, submission: Submission) -> int:
        if submission.context_refs:
            turn_id = submission.context_refs[0]
            turn = conversation.get_turn(turn_id)
            if turn is None or turn.role != TurnRole.TUTOR:
                raise MissingContextError(
                    f"Unknown tutor turn {turn_id}",
                    details={"tutor_turn_id": turn_id},
                )
            return conversation.index_of(turn_id)

        for index in range(len(conversation.turns) - 1, -1, -1):
            if conversation.turns[index].role == TurnRole.TUTOR:
                return index

        raise MissingContextError(f"Nothing to {submission.kind.value}: no explanation given yet")

    def _question_before(self, conversation: Conversation, index: int) -> Optional[ConversationTurn]:
        """Nearest student turn with text before ``index``."""
        for turn in reversed(conversation.turns[:index]):
            if turn.role == TurnRole.STUDENT and turn.text.strip():
                return turn
        return None

    def _fallback_reply(
        self,
        kind: SubmissionKind,
        classification: Classification,
        context: Optional[ModeContext] = None,
    ) -> TutorReply:
        """Degraded reply. Nothing is appended to the conversation."""
        messages = self.config.messages
        if kind == SubmissionKind.HINT:
            challenge_id = context.challenge.id if context and context.challenge else None
            return TutorReply(
                content=random.choice(messages.canned_hints),
                mode=kind,
                classification=classification,
                degraded=True,
                challenge_id=challenge_id,
            )

        return TutorReply(
            content=messages.apology,
            mode=kind,
            classification=classification,
            degraded=True,
        )

    def _record(
        self,
        conversation: Conversation,
        submission: Submission,
        context: ModeContext,
        content: str,
    ) -> None:
        """Record the interaction. Failures are logged and never reach the student."""
        if self.interaction_log is None:
            return

        record = InteractionRecord(
            question=submission.payload.text or context.subject_text,
            answer=content,
            subject_domain=context.classification.subject_domain.value,
            type=submission.kind.value,
            session_id=conversation.session_id,
        )
        try:
            self.interaction_log.record(record)
        except Exception as e:
            logger.warning(f"Failed to record interaction: {e}")

    async def close(self) -> None:
        """Close the completion adapter."""
        await self.adapter.close()
