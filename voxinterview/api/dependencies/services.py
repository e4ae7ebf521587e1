from functools import lru_cache

from voxinterview.config.manager import settings
from voxinterview.services.feedback import TranscriptAnalyzer
from voxinterview.services.llm import OpenAIFeedbackClient
from voxinterview.services.resilience import CircuitBreaker
from voxinterview.services.transcription import ElevenLabsSpeechClient, SpeechTranscriber


@lru_cache()
def get_circuit_breaker() -> CircuitBreaker:
    """Process-wide LLM circuit breaker; every analyzer shares this instance."""
    return CircuitBreaker(
        failure_threshold=settings.CIRCUIT_FAILURE_THRESHOLD,
        cooldown_seconds=settings.CIRCUIT_COOLDOWN_SECONDS,
        name="llm",
    )


def get_transcript_analyzer() -> TranscriptAnalyzer:
    return TranscriptAnalyzer(
        llm_client=OpenAIFeedbackClient(),
        circuit_breaker=get_circuit_breaker(),
        max_retries=settings.LLM_MAX_RETRIES,
        timeout_seconds=settings.LLM_TIMEOUT_SECONDS,
        backoff_seconds=settings.LLM_RETRY_BACKOFF_SECONDS,
    )


def get_speech_transcriber() -> SpeechTranscriber:
    return SpeechTranscriber(
        client=ElevenLabsSpeechClient(),
        max_retries=settings.STT_MAX_RETRIES,
        timeout_seconds=settings.STT_TIMEOUT_SECONDS,
        backoff_seconds=settings.STT_RETRY_BACKOFF_SECONDS,
    )
