"""
FastAPI application factory.

``create_app`` wires already-built components (used by tests and embedding
code); ``create_app_from_settings`` builds everything from KoraSettings
(used by ``kora-tutor serve``).
"""

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kora_tutor import __version__
from kora_tutor.api import routes, websocket
from kora_tutor.llm import get_provider
from kora_tutor.speech import WhisperTranscriber
from kora_tutor.tutor.completion import CompletionAdapter
from kora_tutor.tutor.controller import TutoringController
from kora_tutor.tutor.errors import MissingContextError
from kora_tutor.tutor.interaction_log import InMemoryInteractionLog, JsonlInteractionLog
from kora_tutor.tutor.session import SessionStore
from kora_tutor.tutor.usage import InMemoryUsageLedger

if TYPE_CHECKING:
    from kora_tutor.settings import KoraSettings
    from kora_tutor.speech import SpeechToText
    from kora_tutor.tutor.usage import UsageLedger

logger = logging.getLogger(__name__)


def create_app(
    controller: TutoringController,
    *,
    sessions: Optional[SessionStore] = None,
    usage_ledger: Optional["UsageLedger"] = None,
    transcriber: Optional["SpeechToText"] = None,
    cors_origins: Sequence[str] = (),
) -> FastAPI:
    """
    Create the HTTP/WebSocket application.

    Args:
        controller: The tutoring controller
        sessions: Session store (a fresh in-memory store if not provided)
        usage_ledger: Optional usage gate; None disables usage limits
        transcriber: Optional speech-to-text backend for /transcribe
        cors_origins: Allowed CORS origins

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await controller.close()
        close = getattr(transcriber, "close", None)
        if close is not None:
            await close()

    app = FastAPI(title="Kora Tutor", version=__version__, lifespan=lifespan)

    app.state.controller = controller
    app.state.config = controller.config
    app.state.sessions = sessions or SessionStore()
    app.state.usage_ledger = usage_ledger
    app.state.transcriber = transcriber

    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(MissingContextError)
    async def missing_context_handler(request: Request, exc: MissingContextError) -> JSONResponse:
        logger.info(f"Rejected request to {request.url.path}: {exc}")
        return JSONResponse(
            status_code=400,
            content={"message": controller.config.messages.missing_context, "detail": str(exc)},
        )

    app.include_router(routes.router)
    app.include_router(routes.router, prefix="/api", include_in_schema=False)
    app.include_router(websocket.router)

    return app


def create_app_from_settings(settings: "KoraSettings") -> FastAPI:
    """Build provider, controller, collaborators and the app from settings."""
    tutor_config = settings.load_tutor_config()
    llm_config = settings.llm.to_llm_config()

    adapter = CompletionAdapter(get_provider(llm_config))

    if settings.interaction_log_path:
        interaction_log = JsonlInteractionLog(settings.interaction_log_path)
    else:
        interaction_log = InMemoryInteractionLog()

    controller = TutoringController(
        config=tutor_config,
        adapter=adapter,
        interaction_log=interaction_log,
    )

    ledger = InMemoryUsageLedger(
        anonymous_limit=tutor_config.usage.anonymous_limit,
        authenticated_limit=tutor_config.usage.authenticated_limit,
    )

    transcriber = None
    if settings.speech.enabled:
        speech = settings.speech
        api_key = speech.api_key.get_secret_value() if speech.api_key else settings.llm.get_api_key()
        transcriber = WhisperTranscriber(
            base_url=speech.base_url or llm_config.base_url,
            api_key=api_key,
            model=speech.model,
            default_language=speech.language,
            timeout=speech.timeout,
        )

    logger.info(
        f"Kora API using {llm_config.provider.value}/{llm_config.model}, "
        f"speech={'on' if transcriber else 'off'}"
    )

    return create_app(
        controller,
        usage_ledger=ledger,
        transcriber=transcriber,
        cors_origins=settings.server.cors_origins,
    )
