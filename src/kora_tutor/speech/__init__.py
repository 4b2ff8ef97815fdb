"""
Speech-to-text for spoken student questions.
"""

from typing import Protocol

from kora_tutor.speech.whisper import (
    DEFAULT_LANGUAGE,
    Transcription,
    TranscriptionError,
    WhisperTranscriber,
)


class SpeechToText(Protocol):
    """Protocol for speech-to-text backends."""

    async def transcribe(
        self,
        audio: bytes,
        language: str | None = None,
        *,
        filename: str = "audio.webm",
        content_type: str = "audio/webm",
    ) -> Transcription:
        ...


__all__ = [
    "DEFAULT_LANGUAGE",
    "SpeechToText",
    "Transcription",
    "TranscriptionError",
    "WhisperTranscriber",
]
