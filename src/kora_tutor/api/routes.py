"""
HTTP endpoints of the tutoring API.

Endpoints are stateless unless the body names a ``sessionId``: then the
session's conversation is read and updated, exactly as the WebSocket
channel does.
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.requests import HTTPConnection

from kora_tutor import __version__
from kora_tutor.api.schemas import (
    AskRequest,
    ChallengeRequest,
    HealthResponse,
    HintRequest,
    HistoryResponse,
    InteractionItem,
    ReexplainRequest,
    TranscriptionResponse,
    TutorResponse,
)
from kora_tutor.speech import TranscriptionError
from kora_tutor.tutor.errors import UsageLimitExceeded
from kora_tutor.tutor.types import (
    Conversation,
    ImageAnalysisMode,
    ImageRef,
    Submission,
    TutorReply,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def client_identity(connection: HTTPConnection) -> tuple[str, bool]:
    """
    Identity used by the usage gate.

    ``X-User-Id`` is set by an upstream authentication layer; anonymous
    clients are keyed by address.
    """
    user_id = connection.headers.get("X-User-Id")
    if user_id:
        return user_id, True
    host = connection.client.host if connection.client else "unknown"
    return host, False


def enforce_usage(request: Request) -> None:
    """
    Consume one usage unit.

    Raises:
        HTTPException: 429 if the identity has no remaining usage
    """
    ledger = request.app.state.usage_ledger
    if ledger is None:
        return
    identity, authenticated = client_identity(request)
    try:
        ledger.consume(identity, authenticated)
    except UsageLimitExceeded:
        raise HTTPException(status_code=429, detail=request.app.state.config.messages.usage_exhausted)


def session_conversation(request: Request, session_id: Optional[str]) -> Optional[Conversation]:
    if not session_id:
        return None
    return request.app.state.sessions.get_or_create(session_id)


def to_response(reply: TutorReply, session_id: Optional[str] = None) -> TutorResponse:
    return TutorResponse(
        content=reply.content,
        session_id=session_id,
        challenge_id=reply.challenge_id,
        message_id=reply.tutor_turn_id,
        degraded=reply.degraded,
    )


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(version=__version__)


@router.get("/history", response_model=HistoryResponse)
async def history(
    request: Request,
    limit: int = Query(20, ge=1, le=200),
    session_id: Optional[str] = Query(None, alias="sessionId"),
) -> HistoryResponse:
    """Recent interactions, newest first."""
    interaction_log = request.app.state.controller.interaction_log
    if interaction_log is None:
        return HistoryResponse(interactions=[])

    records = interaction_log.load(limit=limit, session_id=session_id)
    return HistoryResponse(
        interactions=[
            InteractionItem(
                question=r.question,
                answer=r.answer,
                subject_domain=r.subject_domain,
                type=r.type,
                session_id=r.session_id,
                created_at=r.created_at,
            )
            for r in records
        ]
    )


@router.post("/tutoring/ask", response_model=TutorResponse, response_model_exclude_none=True)
async def ask(body: AskRequest, request: Request) -> TutorResponse:
    """Answer a fresh question."""
    enforce_usage(request)
    conversation = session_conversation(request, body.session_id)
    if conversation is None:
        conversation = Conversation.from_messages((m.sender, m.content) for m in body.messages)

    reply = await request.app.state.controller.intake(conversation, Submission.ask(body.question))
    return to_response(reply, body.session_id)


@router.post("/tutoring/reexplain", response_model=TutorResponse, response_model_exclude_none=True)
async def reexplain(body: ReexplainRequest, request: Request) -> TutorResponse:
    """Explain the last answer differently."""
    enforce_usage(request)
    conversation = session_conversation(request, body.session_id)
    if conversation is None:
        conversation = Conversation.from_exchange(body.original_question, body.original_explanation)

    reply = await request.app.state.controller.intake(conversation, Submission.reexplain())
    return to_response(reply, body.session_id)


@router.post("/tutoring/challenge", response_model=TutorResponse, response_model_exclude_none=True)
async def challenge(body: ChallengeRequest, request: Request) -> TutorResponse:
    """Generate a harder practice problem on the same concept."""
    enforce_usage(request)
    conversation = session_conversation(request, body.session_id)
    if conversation is None:
        conversation = Conversation.from_exchange(body.original_question, body.explanation)

    reply = await request.app.state.controller.intake(conversation, Submission.challenge())
    return to_response(reply, body.session_id)


@router.post("/tutoring/hint", response_model=TutorResponse, response_model_exclude_none=True)
async def hint(body: HintRequest, request: Request) -> TutorResponse:
    """Give one clue for the current challenge. Always answers, falling back to a generic hint."""
    enforce_usage(request)
    conversation = session_conversation(request, body.session_id)
    if conversation is None:
        conversation = Conversation.from_exercise(body.exercise_content)

    reply = await request.app.state.controller.intake(conversation, Submission.hint(body.challenge_id))
    return to_response(reply, body.session_id)


@router.post("/image-analysis", response_model=TutorResponse, response_model_exclude_none=True)
async def image_analysis(
    request: Request,
    image: UploadFile = File(...),
    query: str = Form(""),
    subject: Optional[str] = Form(None),
    mode: str = Form(ImageAnalysisMode.STANDARD.value),
    session_id: Optional[str] = Form(None, alias="sessionId"),
) -> TutorResponse:
    """Explain an uploaded image (photo of an exercise, diagram, chart...)."""
    upload_config = request.app.state.config.upload

    content_type = image.content_type or ""
    if not content_type.startswith(upload_config.allowed_image_prefix):
        raise HTTPException(status_code=400, detail="Only image files are allowed")

    data = await image.read()
    if not data:
        raise HTTPException(status_code=400, detail="No image uploaded")
    if len(data) > upload_config.max_image_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Image exceeds the {upload_config.max_image_bytes // (1024 * 1024)} MB limit",
        )

    try:
        analysis_mode = ImageAnalysisMode(mode)
    except ValueError:
        logger.debug(f"Unknown analysis mode {mode!r}, using standard")
        analysis_mode = ImageAnalysisMode.STANDARD

    enforce_usage(request)
    conversation = session_conversation(request, session_id)
    if conversation is None:
        conversation = Conversation()

    submission = Submission.image(
        ImageRef.from_bytes(data, content_type),
        query=query,
        subject=subject,
        analysis_mode=analysis_mode,
    )
    reply = await request.app.state.controller.intake(conversation, submission)
    return to_response(reply, session_id)


@router.post("/transcribe", response_model=TranscriptionResponse)
async def transcribe(
    request: Request,
    audio: UploadFile = File(...),
    language: Optional[str] = Form(None),
) -> TranscriptionResponse:
    """Transcribe a spoken question."""
    state = request.app.state
    if state.transcriber is None:
        raise HTTPException(status_code=503, detail="Speech-to-text is not configured")

    data = await audio.read()
    if len(data) > state.config.upload.max_audio_bytes:
        raise HTTPException(status_code=413, detail="Audio file is too large")

    try:
        result = await state.transcriber.transcribe(
            data,
            language,
            filename=audio.filename or "audio.webm",
            content_type=audio.content_type or "audio/webm",
        )
    except TranscriptionError as e:
        logger.warning(f"Transcription failed: {e}")
        raise HTTPException(status_code=502, detail=state.config.messages.transcription_failed)

    return TranscriptionResponse(text=result.text, language=result.language)
