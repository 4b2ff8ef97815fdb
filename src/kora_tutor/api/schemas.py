"""
Request and response bodies of the HTTP API.

All JSON fields use camelCase on the wire; Python code uses snake_case.
"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    """Base model with camelCase aliases, accepting either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessage(CamelModel):
    content: str
    sender: str = Field(description="'user' for the student, anything else for the tutor")


class AskRequest(CamelModel):
    question: str
    messages: list[ChatMessage] = Field(default_factory=list)
    session_id: Optional[str] = None


class ReexplainRequest(CamelModel):
    original_question: str = ""
    original_explanation: str = ""
    session_id: Optional[str] = None


class ChallengeRequest(CamelModel):
    original_question: str = ""
    explanation: str = ""
    session_id: Optional[str] = None


class HintRequest(CamelModel):
    exercise_content: str = ""
    challenge_id: Optional[str] = None
    session_id: Optional[str] = None


class TutorResponse(CamelModel):
    content: str
    timestamp: str = Field(default_factory=utc_timestamp)
    session_id: Optional[str] = None
    challenge_id: Optional[str] = None
    message_id: Optional[str] = None
    degraded: bool = False


class TranscriptionResponse(CamelModel):
    text: str
    language: str


class HealthResponse(CamelModel):
    status: Literal["ok"] = "ok"
    version: str


class ClientFrame(CamelModel):
    """Message sent by a WebSocket client."""

    type: Literal["chat", "reexplain", "challenge", "hint", "load_history"]
    content: str = ""
    message_id: Optional[str] = None
    challenge_id: Optional[str] = None


class InteractionItem(CamelModel):
    question: str
    answer: str
    subject_domain: str
    type: str
    session_id: Optional[str] = None
    created_at: datetime


class HistoryResponse(CamelModel):
    interactions: list[InteractionItem]
