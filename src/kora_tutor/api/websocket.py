"""
WebSocket session channel.

One connection is one tutoring session. The client sends JSON frames
``{type: chat|reexplain|challenge|hint|load_history, content?, messageId?,
challengeId?}`` and receives ``message``, ``status``, ``history`` and
``error`` frames. The session survives disconnects, so a client reconnecting
with the same ``sessionId`` query parameter keeps its history.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from kora_tutor.api.routes import client_identity
from kora_tutor.api.schemas import ClientFrame, utc_timestamp
from kora_tutor.tutor.errors import MissingContextError, UsageLimitExceeded
from kora_tutor.tutor.types import (
    Conversation,
    Submission,
    SubmissionKind,
    TurnRole,
    TutorReply,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _submission_for(frame: ClientFrame) -> Submission:
    if frame.type == "chat":
        return Submission.ask(frame.content)
    if frame.type == "reexplain":
        return Submission.reexplain(frame.message_id)
    if frame.type == "challenge":
        return Submission.challenge(frame.message_id)
    return Submission.hint(frame.challenge_id, text=frame.content)


def _message_frame(reply: TutorReply, session_id: str) -> dict[str, Any]:
    frame = {
        "type": "message",
        "sender": "assistant",
        "content": reply.content,
        "messageId": reply.tutor_turn_id,
        "sessionId": session_id,
        "timestamp": utc_timestamp(),
        "allowActions": not reply.degraded and reply.mode in (SubmissionKind.ASK, SubmissionKind.REEXPLAIN),
        "isReExplanation": reply.mode == SubmissionKind.REEXPLAIN,
        "isChallenge": reply.mode == SubmissionKind.CHALLENGE,
        "isHint": reply.mode == SubmissionKind.HINT,
        "degraded": reply.degraded,
    }
    if reply.challenge_id:
        frame["challengeId"] = reply.challenge_id
    return frame


def _history_frame(conversation: Conversation) -> dict[str, Any]:
    return {
        "type": "history",
        "sessionId": conversation.session_id,
        "history": [
            {
                "id": turn.id,
                "sender": "user" if turn.role == TurnRole.STUDENT else "assistant",
                "content": turn.text,
            }
            for turn in conversation.turns
        ],
    }


def _error_frame(message: str, code: str = "error") -> dict[str, Any]:
    return {"type": "error", "code": code, "message": message}


@router.websocket("/ws")
async def tutoring_channel(websocket: WebSocket) -> None:
    """Duplex tutoring session."""
    state = websocket.app.state
    messages = state.config.messages

    await websocket.accept()
    conversation = state.sessions.get_or_create(websocket.query_params.get("sessionId"))
    session_id = conversation.session_id
    identity, authenticated = client_identity(websocket)
    logger.info(f"WebSocket connected for session {session_id}")

    await websocket.send_json({
        "type": "message",
        "sender": "assistant",
        "content": messages.welcome,
        "sessionId": session_id,
        "timestamp": utc_timestamp(),
    })

    try:
        while True:
            raw = await websocket.receive_text()

            try:
                frame = ClientFrame.model_validate(json.loads(raw))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.debug(f"Malformed WebSocket frame: {e}")
                await websocket.send_json(_error_frame("Sorry, I didn't understand that message."))
                continue

            if frame.type == "load_history":
                await websocket.send_json(_history_frame(conversation))
                continue

            if frame.type == "chat" and not frame.content.strip():
                await websocket.send_json(_error_frame("Please type a question first."))
                continue

            if state.usage_ledger is not None:
                try:
                    state.usage_ledger.consume(identity, authenticated)
                except UsageLimitExceeded:
                    await websocket.send_json(_error_frame(messages.usage_exhausted, code="usage_limit"))
                    continue

            await websocket.send_json({"type": "status", "status": "thinking"})

            try:
                reply = await state.controller.intake(conversation, _submission_for(frame))
            except MissingContextError as e:
                logger.info(f"Missing context in session {session_id}: {e}")
                await websocket.send_json(_error_frame(messages.missing_context, code="missing_context"))
                continue

            await websocket.send_json(_message_frame(reply, session_id))

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for session {session_id}")
