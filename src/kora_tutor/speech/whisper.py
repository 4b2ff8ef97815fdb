"""
Speech-to-text through an OpenAI-compatible transcription API.

Sends recorded audio to ``{base_url}/audio/transcriptions`` (Whisper) and
returns the recognized text. Students usually speak French, so that is the
default language.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "fr"


class TranscriptionError(Exception):
    """Raised when audio could not be transcribed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.cause = cause


@dataclass
class Transcription:
    """Result of a transcription."""

    text: str
    language: str


class WhisperTranscriber:
    """
    Transcribes audio with a Whisper-compatible endpoint.

    Example:
        ```python
        transcriber = WhisperTranscriber(
            base_url="https://api.openai.com/v1",
            api_key="sk-...",
        )
        result = await transcriber.transcribe(audio_bytes, filename="question.webm")
        print(result.text)
        ```
    """

    def __init__(
        self,
        base_url: str = "https://api.openai.com/v1",
        api_key: Optional[str] = None,
        model: str = "whisper-1",
        default_language: str = DEFAULT_LANGUAGE,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the transcriber.

        Args:
            base_url: API base URL
            api_key: API key (sent as Bearer token)
            model: Transcription model name
            default_language: Language used when a call does not name one
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.default_language = default_language
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def transcribe(
        self,
        audio: bytes,
        language: Optional[str] = None,
        *,
        filename: str = "audio.webm",
        content_type: str = "audio/webm",
    ) -> Transcription:
        """
        Transcribe audio bytes.

        Args:
            audio: Raw audio content
            language: Spoken language (defaults to ``default_language``)
            filename: File name reported to the API (its extension selects the decoder)
            content_type: MIME type of the audio

        Returns:
            Transcription with the recognized text

        Raises:
            TranscriptionError: On empty input, transport errors, HTTP errors
                or an empty result
        """
        if not audio:
            raise TranscriptionError("No audio data provided")

        language = language or self.default_language
        client = await self._get_client()

        try:
            response = await client.post(
                "/audio/transcriptions",
                data={"model": self.model, "language": language, "response_format": "json"},
                files={"file": (filename, audio, content_type)},
            )
        except httpx.TimeoutException as e:
            raise TranscriptionError(f"Transcription timed out after {self.timeout}s", cause=e)
        except httpx.HTTPError as e:
            raise TranscriptionError(f"Failed to reach transcription API: {e}", cause=e)

        if response.status_code >= 400:
            logger.warning(f"Transcription API returned {response.status_code}: {response.text[:200]}")
            raise TranscriptionError(
                f"Transcription API returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TranscriptionError("Invalid transcription response", cause=e)
        if not isinstance(data, dict):
            raise TranscriptionError(f"Invalid transcription response: expected an object, got {type(data).__name__}")

        text = data.get("text")
        text = text.strip() if isinstance(text, str) else ""
        if not text:
            raise TranscriptionError("Transcription returned no text")

        logger.debug(f"Transcribed {len(audio)} bytes of {language} audio")
        return Transcription(text=text, language=language)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "WhisperTranscriber":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
