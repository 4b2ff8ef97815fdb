"""Tests for speech-to-text."""

import httpx
import pytest

from kora_tutor.speech import Transcription, TranscriptionError, WhisperTranscriber


def make_transcriber(handler, **kwargs) -> WhisperTranscriber:
    return WhisperTranscriber(
        base_url="https://stt.test/v1/",
        api_key="sk-test",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestWhisperTranscriber:
    """Tests for WhisperTranscriber."""

    @pytest.mark.asyncio
    async def test_transcribe(self):
        """Audio is posted as multipart with model and language."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = request.content
            return httpx.Response(200, json={"text": "  Comment résoudre une équation ?  "})

        async with make_transcriber(handler) as transcriber:
            result = await transcriber.transcribe(b"RIFFfakeaudio", filename="q.wav", content_type="audio/wav")

        assert isinstance(result, Transcription)
        assert result.text == "Comment résoudre une équation ?"
        assert result.language == "fr"
        assert seen["url"] == "https://stt.test/v1/audio/transcriptions"
        assert seen["auth"] == "Bearer sk-test"
        assert b'name="model"' in seen["body"]
        assert b"whisper-1" in seen["body"]
        assert b'filename="q.wav"' in seen["body"]
        assert b"RIFFfakeaudio" in seen["body"]

    @pytest.mark.asyncio
    async def test_explicit_language(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = request.content
            return httpx.Response(200, json={"text": "What is gravity?"})

        transcriber = make_transcriber(handler)
        result = await transcriber.transcribe(b"audio", "en")
        await transcriber.close()

        assert result.language == "en"
        assert b"\r\n\r\nen\r\n" in seen["body"]

    @pytest.mark.asyncio
    async def test_empty_audio(self):
        transcriber = make_transcriber(lambda request: httpx.Response(200, json={"text": "x"}))
        with pytest.raises(TranscriptionError):
            await transcriber.transcribe(b"")

    @pytest.mark.asyncio
    async def test_http_error(self):
        transcriber = make_transcriber(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(TranscriptionError) as exc_info:
            await transcriber.transcribe(b"audio")
        await transcriber.close()
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_empty_text(self):
        transcriber = make_transcriber(lambda request: httpx.Response(200, json={"text": "   "}))
        with pytest.raises(TranscriptionError):
            await transcriber.transcribe(b"audio")
        await transcriber.close()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        transcriber = make_transcriber(lambda request: httpx.Response(200, text="not json"))
        with pytest.raises(TranscriptionError):
            await transcriber.transcribe(b"audio")
        await transcriber.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [["hello"], "hello", {"text": 42}])
    async def test_unexpected_json_shape(self, body):
        """Well-formed JSON that is not a transcription object is still a TranscriptionError."""
        transcriber = make_transcriber(lambda request: httpx.Response(200, json=body))
        with pytest.raises(TranscriptionError):
            await transcriber.transcribe(b"audio")
        await transcriber.close()

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        transcriber = make_transcriber(handler)
        with pytest.raises(TranscriptionError) as exc_info:
            await transcriber.transcribe(b"audio")
        await transcriber.close()
        assert isinstance(exc_info.value.cause, httpx.TimeoutException)
