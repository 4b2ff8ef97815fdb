"""
Core types for the tutoring dialogue.

Defines conversation turns, the conversation transcript, student
submissions, challenges, classifications and tutor replies.
"""

import base64
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


def new_turn_id() -> str:
    """Generate a unique turn identifier."""
    return f"turn-{uuid.uuid4().hex[:12]}"


def new_challenge_id() -> str:
    """Generate a unique challenge identifier (``challenge-<epoch ms>-<hex>``)."""
    return f"challenge-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class TurnRole(str, Enum):
    """Who produced a conversation turn."""

    STUDENT = "student"
    TUTOR = "tutor"


class SubmissionKind(str, Enum):
    """
    Kind of student action routed to the controller.

    Each kind maps to exactly one response mode.
    """

    ASK = "ask"
    """A fresh question."""

    REEXPLAIN = "reexplain"
    """Explain a previous tutor answer differently."""

    CHALLENGE = "challenge"
    """Generate a harder practice problem on the same concept."""

    HINT = "hint"
    """A clue for the currently active challenge."""

    IMAGE = "image"
    """A question grounded in an uploaded image."""


class SubjectDomain(str, Enum):
    """Subject domains recognized by the classifier."""

    MATH = "math"
    LANGUAGE = "language"
    SCIENCE = "science"
    HISTORY = "history"
    GENERAL = "general"


class ImageContentType(str, Enum):
    """What an uploaded image most likely shows."""

    PROBLEM = "problem"
    DIAGRAM = "diagram"
    TEXT = "text"
    CHART = "chart"
    UNKNOWN = "unknown"


class ImageAnalysisMode(str, Enum):
    """Depth of an image analysis requested by the student."""

    STANDARD = "standard"
    DETAILED = "detailed"
    STEP_BY_STEP = "step-by-step"


@dataclass(frozen=True)
class ImageRef:
    """
    Opaque reference to uploaded image content.

    ``uri`` is either a remote URL or a ``data:`` URL. Storage of the
    image itself belongs to the upload layer.
    """

    uri: str

    @classmethod
    def from_bytes(cls, data: bytes, media_type: str = "image/png") -> "ImageRef":
        """Build a data-URL reference from raw image bytes."""
        encoded = base64.b64encode(data).decode("ascii")
        return cls(uri=f"data:{media_type};base64,{encoded}")

    @property
    def is_inline(self) -> bool:
        return self.uri.startswith("data:")

    def __repr__(self) -> str:
        shown = self.uri[:32] + "..." if len(self.uri) > 32 else self.uri
        return f"ImageRef({shown!r})"


@dataclass(frozen=True)
class ConversationTurn:
    """One immutable turn of the conversation."""

    role: TurnRole
    text: str
    image_ref: Optional[ImageRef] = None
    id: str = field(default_factory=new_turn_id)

    @classmethod
    def student(cls, text: str, image_ref: Optional[ImageRef] = None) -> "ConversationTurn":
        return cls(role=TurnRole.STUDENT, text=text, image_ref=image_ref)

    @classmethod
    def tutor(cls, text: str) -> "ConversationTurn":
        return cls(role=TurnRole.TUTOR, text=text)


@dataclass(frozen=True)
class Challenge:
    """A practice problem issued by the tutor."""

    id: str
    source_turn_id: str
    """The tutor turn that carries the problem."""

    content: str
    """The problem text, as delivered to the student."""


@dataclass
class Conversation:
    """
    Ordered transcript of one tutoring session.

    Turns are only ever appended; insertion order is the timeline.
    ``active_challenge`` tracks the most recently issued challenge so
    later hint requests can be resolved against it.
    """

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    turns: list[ConversationTurn] = field(default_factory=list)
    active_challenge: Optional[Challenge] = None

    def __len__(self) -> int:
        return len(self.turns)

    def append(self, turn: ConversationTurn) -> ConversationTurn:
        """Append a single turn."""
        self.turns.append(turn)
        return turn

    def extend(self, turns: Iterable[ConversationTurn]) -> None:
        """Append several turns at once (all or nothing)."""
        new_turns = list(turns)
        self.turns = [*self.turns, *new_turns]

    def get_turn(self, turn_id: str) -> Optional[ConversationTurn]:
        for turn in self.turns:
            if turn.id == turn_id:
                return turn
        return None

    def index_of(self, turn_id: str) -> int:
        """Position of a turn in the transcript, or -1 if unknown."""
        for index, turn in enumerate(self.turns):
            if turn.id == turn_id:
                return index
        return -1

    def latest_turn(self, role: TurnRole) -> Optional[ConversationTurn]:
        """Most recent turn with the given role."""
        for turn in reversed(self.turns):
            if turn.role == role:
                return turn
        return None

    def window(self, max_turns: int) -> list[ConversationTurn]:
        """The most recent ``max_turns`` turns (oldest first)."""
        if max_turns <= 0:
            return []
        return list(self.turns[-max_turns:])

    def issue_challenge(self, turn: ConversationTurn, challenge_id: Optional[str] = None) -> Challenge:
        """
        Register a tutor turn as the active challenge.

        Replaces any previously active challenge.
        """
        challenge = Challenge(
            id=challenge_id or new_challenge_id(),
            source_turn_id=turn.id,
            content=turn.text,
        )
        self.active_challenge = challenge
        return challenge

    @classmethod
    def from_messages(
        cls,
        messages: Iterable[tuple[str, str]],
        session_id: Optional[str] = None,
    ) -> "Conversation":
        """
        Build a conversation from ``(sender, content)`` pairs.

        ``sender == "user"`` (or ``"student"``) marks student turns;
        anything else is a tutor turn. Empty contents are skipped.
        """
        conversation = cls(session_id=session_id) if session_id else cls()
        for sender, content in messages:
            if not content:
                continue
            role = TurnRole.STUDENT if sender in ("user", "student") else TurnRole.TUTOR
            conversation.append(ConversationTurn(role=role, text=content))
        return conversation

    @classmethod
    def from_exchange(cls, question: str, explanation: str) -> "Conversation":
        """Conversation holding one question and the tutor's explanation."""
        return cls.from_messages([("user", question), ("tutor", explanation)])

    @classmethod
    def from_exercise(cls, exercise: str) -> "Conversation":
        """Conversation whose only turn is an issued challenge."""
        conversation = cls()
        if exercise:
            turn = conversation.append(ConversationTurn.tutor(exercise))
            conversation.issue_challenge(turn)
        return conversation


@dataclass(frozen=True)
class SubmissionPayload:
    """What the student sent along with a submission."""

    text: str = ""
    image_ref: Optional[ImageRef] = None
    subject: Optional[str] = None
    """Subject declared by the student (image analysis form)."""

    analysis_mode: ImageAnalysisMode = ImageAnalysisMode.STANDARD


@dataclass(frozen=True)
class Submission:
    """
    One discrete student action routed to the controller.

    ``context_refs`` names what the action operates on: tutor turn ids for
    reexplain/challenge, a challenge id for hint.
    """

    kind: SubmissionKind
    payload: SubmissionPayload = field(default_factory=SubmissionPayload)
    context_refs: tuple[str, ...] = ()

    @classmethod
    def ask(cls, question: str) -> "Submission":
        return cls(kind=SubmissionKind.ASK, payload=SubmissionPayload(text=question))

    @classmethod
    def reexplain(cls, tutor_turn_id: Optional[str] = None) -> "Submission":
        refs = (tutor_turn_id,) if tutor_turn_id else ()
        return cls(kind=SubmissionKind.REEXPLAIN, context_refs=refs)

    @classmethod
    def challenge(cls, tutor_turn_id: Optional[str] = None) -> "Submission":
        refs = (tutor_turn_id,) if tutor_turn_id else ()
        return cls(kind=SubmissionKind.CHALLENGE, context_refs=refs)

    @classmethod
    def hint(cls, challenge_id: Optional[str] = None, text: str = "") -> "Submission":
        refs = (challenge_id,) if challenge_id else ()
        return cls(kind=SubmissionKind.HINT, payload=SubmissionPayload(text=text), context_refs=refs)

    @classmethod
    def image(
        cls,
        image_ref: ImageRef,
        query: str = "",
        subject: Optional[str] = None,
        analysis_mode: ImageAnalysisMode = ImageAnalysisMode.STANDARD,
    ) -> "Submission":
        return cls(
            kind=SubmissionKind.IMAGE,
            payload=SubmissionPayload(
                text=query,
                image_ref=image_ref,
                subject=subject,
                analysis_mode=analysis_mode,
            ),
        )


@dataclass(frozen=True)
class Classification:
    """Result of classifying a submission."""

    subject_domain: SubjectDomain = SubjectDomain.GENERAL
    is_direct_problem_request: bool = False
    image_content_type: Optional[ImageContentType] = None
    degraded: bool = False
    """True when a classification step failed and defaults were used."""

    def __repr__(self) -> str:
        return (
            f"Classification(domain={self.subject_domain.value}, "
            f"direct={self.is_direct_problem_request})"
        )


@dataclass(frozen=True)
class ContractViolationReport:
    """
    Diagnostic produced when a reply reuses literals of the student's problem.

    Not persisted. Only logged and attached to the reply.
    """

    mode: SubmissionKind
    reused_literals: tuple[str, ...]

    @property
    def is_violation(self) -> bool:
        return bool(self.reused_literals)


@dataclass(frozen=True)
class ProviderInput:
    """The new user-side input of a completion call."""

    text: str
    image_ref: Optional[ImageRef] = None


@dataclass(frozen=True)
class InstructionContract:
    """
    Everything sent to the completion provider for one mode invocation.

    ``directives`` names the contract clauses that were included
    (for example ``"non_solving"``), so callers can check the contract
    without parsing prompt text.
    """

    mode: SubmissionKind
    system_directives: str
    history: tuple[ConversationTurn, ...]
    new_input: ProviderInput
    max_tokens: int
    temperature: float
    directives: frozenset[str] = frozenset()

    def has_directive(self, name: str) -> bool:
        return name in self.directives


@dataclass
class TutorReply:
    """What the controller returns for one submission."""

    content: str
    mode: SubmissionKind
    classification: Classification = field(default_factory=Classification)
    degraded: bool = False
    """True if the content is a fallback (apology or canned hint)."""

    challenge_id: Optional[str] = None
    """Challenge issued (challenge mode) or resolved (hint mode)."""

    tutor_turn_id: Optional[str] = None
    violation: Optional[ContractViolationReport] = None

    def __repr__(self) -> str:
        preview = self.content[:50] + "..." if len(self.content) > 50 else self.content
        return f"TutorReply(mode={self.mode.value}, degraded={self.degraded}, content={preview!r})"
