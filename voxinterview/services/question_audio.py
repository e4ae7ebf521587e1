"""Text-to-speech for interview questions, cached on disk per question id."""

import asyncio
import hashlib
import logging
import os
import tempfile
import time

import httpx
from elevenlabs.client import AsyncElevenLabs

from voxinterview.config.events import is_placeholder_secret
from voxinterview.config.manager import settings
from voxinterview.models.schemas.interview import QuestionItem
from voxinterview.services.llm import CredentialProvider, env_credential_provider
from voxinterview.services.resilience import OperationTimeoutError, with_timeout

logger = logging.getLogger(__name__)


def question_audio_filename(question: QuestionItem) -> str:
    """Stable cache filename: ``question-<id>.mp3``, or a text hash when the id is blank."""
    key = question.id or hashlib.md5(question.text.encode("utf-8")).hexdigest()
    return f"question-{key}.mp3"


def _write_atomically(directory: str, path: str, audio_bytes: bytes) -> None:
    # A partial write must never appear under the cache filename
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".question-", suffix=".part")
    try:
        with os.fdopen(fd, "wb") as audio_file:
            audio_file.write(audio_bytes)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


async def get_or_create_question_audio(
    question: QuestionItem,
    *,
    cache_dir: str | None = None,
    credentials: CredentialProvider = env_credential_provider,
    voice_id: str | None = None,
    timeout_seconds: float | None = None,
) -> str | None:
    """
    Return the cached audio filename for ``question``, synthesising it on a cache miss.

    Returns:
        Filename relative to the cache directory, or None when TTS is not configured,
        the ElevenLabs call failed or missed its deadline (the question is still
        usable without audio).
    """
    directory = cache_dir or settings.AUDIO_CACHE_DIR
    filename = question_audio_filename(question)
    path = os.path.join(directory, filename)

    if os.path.exists(path):
        return filename

    api_key = credentials("ELEVENLABS_API_KEY")
    if not api_key or is_placeholder_secret(api_key):
        logger.warning("ELEVENLABS_API_KEY is not configured; skipping question audio")
        return None

    resolved_voice_id = voice_id or settings.ELEVENLABS_VOICE_ID
    deadline = timeout_seconds or settings.TTS_TIMEOUT_SECONDS
    try:
        start = time.time()
        async with httpx.AsyncClient(timeout=deadline) as http_client:
            client = AsyncElevenLabs(api_key=api_key, httpx_client=http_client)

            async def _synthesize() -> bytes:
                # convert() streams audio chunks
                chunks = [
                    chunk
                    async for chunk in client.text_to_speech.convert(
                        text=question.text,
                        voice_id=resolved_voice_id,
                        model_id=settings.ELEVENLABS_TTS_MODEL,
                        output_format="mp3_44100_128",
                    )
                ]
                return b"".join(chunks)

            audio_bytes = await with_timeout(_synthesize(), deadline, "ElevenLabs TTS timed out")
        latency_ms = int((time.time() - start) * 1000)

        await asyncio.get_running_loop().run_in_executor(None, _write_atomically, directory, path, audio_bytes)

        logger.info(
            "ElevenLabs TTS: %d chars → %d bytes in %dms (voice=%s, file=%s)",
            len(question.text),
            len(audio_bytes),
            latency_ms,
            resolved_voice_id,
            filename,
        )
        return filename

    except OperationTimeoutError as exc:
        logger.warning("%s after %.1fs (question=%s)", exc, deadline, question.id)
        return None
    except Exception as exc:  # noqa: BLE001
        logger.error("ElevenLabs TTS error: %s", exc)
        return None
