import logging
import time
import typing

import httpx
from elevenlabs.client import AsyncElevenLabs

from voxinterview.config.manager import settings
from voxinterview.services.llm import CredentialProvider, env_credential_provider
from voxinterview.services.resilience import RetryExhaustedError, linear_backoff, retry_with_backoff

logger = logging.getLogger(__name__)

MAX_RETRIES = 2
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_BACKOFF_SECONDS = 0.5

EXTENSION_BY_MIME = {
    "audio/wav": ".wav",
    "audio/wave": ".wav",
    "audio/x-wav": ".wav",
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/ogg": ".ogg",
    "audio/webm": ".webm",
    "audio/mp4": ".m4a",
    "audio/m4a": ".m4a",
    "audio/x-m4a": ".m4a",
}


class TranscriptionError(Exception):
    """Speech-to-text produced no transcript; there is nothing to analyze."""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)


class EmptyTranscriptError(ValueError):
    """The provider answered successfully but with no text."""


class SpeechToTextClient(typing.Protocol):
    async def convert(self, audio_bytes: bytes, *, filename: str, mime_type: str) -> typing.Any:
        ...


class ElevenLabsSpeechClient:
    """ElevenLabs speech-to-text; the SDK client is built per call from the credential provider."""

    def __init__(
        self,
        credentials: CredentialProvider = env_credential_provider,
        model_id: str | None = None,
        timeout_seconds: float | None = None,
    ):
        self._credentials = credentials
        self.model_id = model_id or settings.ELEVENLABS_STT_MODEL
        self.timeout_seconds = timeout_seconds or settings.STT_TIMEOUT_SECONDS

    async def convert(self, audio_bytes: bytes, *, filename: str, mime_type: str) -> typing.Any:
        api_key = self._credentials("ELEVENLABS_API_KEY")
        if not api_key:
            raise TranscriptionError("ElevenLabs API key not configured")

        async with httpx.AsyncClient(timeout=self.timeout_seconds) as http_client:
            client = AsyncElevenLabs(api_key=api_key, httpx_client=http_client)
            return await client.speech_to_text.convert(
                model_id=self.model_id,
                file=(filename, audio_bytes, mime_type),
            )


def extract_transcript_text(response: typing.Any) -> str:
    """
    Pull transcript text out of a provider response.

    Tries ``text``, then ``transcript``, then joined ``segments``/``words`` text.
    Accepts SDK models as well as plain dicts.
    """
    def _get(obj: typing.Any, key: str) -> typing.Any:
        if isinstance(obj, dict):
            return obj.get(key)
        return getattr(obj, key, None)

    for key in ("text", "transcript"):
        value = _get(response, key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    for key in ("segments", "words"):
        parts = _get(response, key) or []
        pieces = [str(_get(part, "text") or "").strip() for part in parts]
        joined = " ".join(piece for piece in pieces if piece)
        if joined:
            return joined

    return ""


class SpeechTranscriber:
    """
    Converts recorded answers to text with bounded retries.

    No circuit breaker and no fallback: if every attempt fails, the request fails
    with TranscriptionError. A client raising TranscriptionError itself (missing
    credentials) is not retried.
    """

    def __init__(
        self,
        client: SpeechToTextClient,
        *,
        max_retries: int = MAX_RETRIES,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    ):
        self.client = client
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds
        self.backoff_seconds = backoff_seconds

    async def transcribe(self, audio_bytes: bytes, mime_hint: str, filename: str | None = None) -> str:
        if not audio_bytes:
            raise TranscriptionError("Empty audio file")

        mime_type = mime_hint or "audio/wav"
        upload_name = filename or f"answer{EXTENSION_BY_MIME.get(mime_type, '.wav')}"

        async def _attempt() -> str:
            response = await self.client.convert(audio_bytes, filename=upload_name, mime_type=mime_type)
            text = extract_transcript_text(response)
            if not text:
                raise EmptyTranscriptError("Empty transcript from speech-to-text provider")
            return text

        start_time = time.perf_counter()
        try:
            transcript = await retry_with_backoff(
                _attempt,
                attempts=self.max_retries + 1,
                timeout_seconds=self.timeout_seconds,
                backoff=linear_backoff(self.backoff_seconds),
                timeout_message="Speech-to-text timed out",
                label="Speech-to-text",
                give_up_on=(TranscriptionError,),
            )
        except RetryExhaustedError as e:
            raise TranscriptionError(f"Transcription failed: {e.last_error}", cause=e.last_error) from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info("Transcribed %d bytes (%s) -> %d chars in %dms", len(audio_bytes), mime_type, len(transcript), latency_ms)
        return transcript
