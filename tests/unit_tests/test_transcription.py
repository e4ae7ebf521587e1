import asyncio
import time
from types import SimpleNamespace

import pytest

from voxinterview.services.transcription import (
    ElevenLabsSpeechClient,
    EmptyTranscriptError,
    SpeechTranscriber,
    TranscriptionError,
    extract_transcript_text,
)

AUDIO = b"RIFF\x00\x00\x00\x00WAVEfmt " + bytes(32)


class FakeSpeechClient:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def convert(self, audio_bytes, *, filename, mime_type):
        self.calls.append((filename, mime_type))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if response == "hang":
            await asyncio.sleep(10)
        return response


def make_transcriber(client, **kwargs) -> SpeechTranscriber:
    kwargs.setdefault("backoff_seconds", 0)
    kwargs.setdefault("timeout_seconds", 1.0)
    return SpeechTranscriber(client, **kwargs)


@pytest.mark.asyncio
async def test_transcribe_returns_text():
    client = FakeSpeechClient({"text": "  I led the migration.  "})
    transcript = await make_transcriber(client).transcribe(AUDIO, "audio/wav")

    assert transcript == "I led the migration."
    assert client.calls == [("answer.wav", "audio/wav")]


@pytest.mark.asyncio
async def test_upload_name_follows_mime_type_or_given_filename():
    client = FakeSpeechClient({"text": "hello"})
    transcriber = make_transcriber(client)
    await transcriber.transcribe(AUDIO, "audio/webm")
    await transcriber.transcribe(AUDIO, "audio/mpeg", filename="take-2.mp3")
    assert client.calls == [("answer.webm", "audio/webm"), ("take-2.mp3", "audio/mpeg")]


@pytest.mark.asyncio
async def test_empty_audio_fails_without_calling_provider():
    client = FakeSpeechClient({"text": "unused"})
    with pytest.raises(TranscriptionError):
        await make_transcriber(client).transcribe(b"", "audio/wav")
    assert client.calls == []


@pytest.mark.asyncio
async def test_retries_transient_errors():
    client = FakeSpeechClient(ConnectionError("reset"), {"text": "second time lucky"})
    assert await make_transcriber(client).transcribe(AUDIO, "audio/wav") == "second time lucky"
    assert len(client.calls) == 2


@pytest.mark.asyncio
async def test_empty_transcripts_exhaust_retries():
    client = FakeSpeechClient({"text": ""})
    with pytest.raises(TranscriptionError) as exc_info:
        await make_transcriber(client, max_retries=2).transcribe(AUDIO, "audio/wav")

    assert len(client.calls) == 3
    assert isinstance(exc_info.value.cause, EmptyTranscriptError)


@pytest.mark.asyncio
async def test_timeouts_become_transcription_error():
    client = FakeSpeechClient("hang")
    with pytest.raises(TranscriptionError, match="timed out"):
        await make_transcriber(client, max_retries=1, timeout_seconds=0.01).transcribe(AUDIO, "audio/ogg")
    assert len(client.calls) == 2


def test_extract_prefers_text_then_transcript():
    assert extract_transcript_text({"text": "a", "transcript": "b"}) == "a"
    assert extract_transcript_text({"text": " ", "transcript": "b"}) == "b"


def test_extract_joins_segments_and_words():
    assert extract_transcript_text({"segments": [{"text": "Hello"}, {"text": "world"}]}) == "Hello world"
    words = SimpleNamespace(text=None, words=[SimpleNamespace(text="I"), SimpleNamespace(text=""), SimpleNamespace(text="shipped")])
    assert extract_transcript_text(words) == "I shipped"


def test_extract_returns_empty_for_unknown_shapes():
    assert extract_transcript_text({}) == ""
    assert extract_transcript_text(SimpleNamespace()) == ""


@pytest.mark.asyncio
async def test_missing_stt_key_fails_fast_without_retries():
    lookups = []

    def no_key(name):
        lookups.append(name)
        return ""

    transcriber = SpeechTranscriber(
        ElevenLabsSpeechClient(credentials=no_key, model_id="scribe_v1", timeout_seconds=1.0),
        max_retries=2,
        backoff_seconds=5.0,
    )

    start = time.perf_counter()
    with pytest.raises(TranscriptionError, match="not configured"):
        await transcriber.transcribe(AUDIO, "audio/wav")

    assert lookups == ["ELEVENLABS_API_KEY"]
    assert time.perf_counter() - start < 1.0
