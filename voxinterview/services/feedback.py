"""Transcript analysis: LLM feedback behind retries, a timeout and a circuit breaker."""

import logging
import typing

from voxinterview.models.schemas.feedback import FallbackFeedback, FeedbackResult, coerce_star_rating
from voxinterview.models.schemas.interview import Role
from voxinterview.services.confidence import score_confidence
from voxinterview.services.fallback_feedback import FALLBACK_TEXT, generate_fallback_feedback
from voxinterview.services.llm import (
    FEEDBACK_SYSTEM_PROMPT,
    LLMClient,
    LLMConfigurationError,
    build_feedback_prompt,
    parse_json_object,
)
from voxinterview.services.question_bank import get_role_profile, question_at
from voxinterview.services.resilience import (
    CircuitBreaker,
    RetryExhaustedError,
    linear_backoff,
    retry_with_backoff,
)

logger = logging.getLogger(__name__)

MAX_RETRIES = 1
DEFAULT_TIMEOUT_SECONDS = 8.0
DEFAULT_BACKOFF_SECONDS = 0.4

# Wording used when the LLM returns a bare number instead of a sentence.
NUMERIC_TEXT_TEMPLATES = {
    "clarity": "Response clarity rated {value}/4",
    "confidence": "Delivery confidence rated {value}/4",
    "relevance": "Answer relevance rated {value}/4",
    "suggestion": "Overall answer quality rated {value}/4",
}
TEXT_FIELDS = tuple(NUMERIC_TEXT_TEMPLATES)
RATING_FIELDS = ("situation", "task", "action", "result")


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def repair_text_field(name: str, value: typing.Any) -> str:
    """Turn an LLM text field into usable feedback text."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return NUMERIC_TEXT_TEMPLATES[name].format(value=_format_number(value))
    if isinstance(value, str) and value.strip():
        return value.strip()
    return FALLBACK_TEXT[name]


def repair_llm_feedback(payload: dict[str, typing.Any], *, confidence_score: int) -> FallbackFeedback:
    """Validate and repair a parsed LLM payload into feedback with in-range ratings."""
    return FallbackFeedback(
        **{name: repair_text_field(name, payload.get(name)) for name in TEXT_FIELDS},
        **{name: coerce_star_rating(payload.get(name)) for name in RATING_FIELDS},
        confidence_score=confidence_score,
    )


class TranscriptAnalyzer:
    """
    Produces STAR feedback for a transcript.

    The LLM is called only while the circuit breaker is closed; each request makes
    at most ``max_retries + 1`` attempts and counts as a single breaker failure when
    all of them fail. Any failure path returns fallback feedback instead of raising.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        circuit_breaker: CircuitBreaker,
        *,
        max_retries: int = MAX_RETRIES,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    ):
        self.llm_client = llm_client
        self.circuit_breaker = circuit_breaker
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds
        self.backoff_seconds = backoff_seconds

    async def analyze(self, transcript: str, role: Role | str, question_index: int) -> FeedbackResult:
        feedback, _ = await self.analyze_with_meta(transcript, role, question_index)
        return feedback

    async def analyze_with_meta(
        self,
        transcript: str,
        role: Role | str,
        question_index: int,
    ) -> tuple[FeedbackResult, bool]:
        """
        Analyze ``transcript`` as an answer to question ``question_index`` for ``role``.

        Returns:
            Tuple of (feedback, fallback_mode). ``fallback_mode`` is True when the LLM
            was skipped (breaker open) or all attempts failed.
        """
        question_index = max(0, question_index)
        profile = get_role_profile(role)
        current = question_at(role, question_index)
        upcoming = question_at(role, question_index + 1)
        next_question = upcoming.text if upcoming else None
        next_question_index = question_index + 1

        if not self.circuit_breaker.is_available():
            logger.info("LLM circuit open; returning fallback feedback (role=%s)", profile.title)
            return self._fallback(transcript, next_question, next_question_index), True

        confidence_score = score_confidence(transcript).score
        prompt = build_feedback_prompt(
            transcript=transcript,
            profile=profile,
            question=current.text if current else None,
        )

        async def _attempt() -> FallbackFeedback:
            raw = await self.llm_client.generate(prompt, system_prompt=FEEDBACK_SYSTEM_PROMPT)
            return repair_llm_feedback(parse_json_object(raw), confidence_score=confidence_score)

        try:
            partial = await retry_with_backoff(
                _attempt,
                attempts=self.max_retries + 1,
                timeout_seconds=self.timeout_seconds,
                backoff=linear_backoff(self.backoff_seconds),
                timeout_message="LLM feedback timed out",
                label="LLM feedback",
                give_up_on=(LLMConfigurationError,),
            )
        except LLMConfigurationError as e:
            # Not a provider failure, so the breaker is left alone
            logger.warning("LLM not configured; returning fallback feedback: %s", e)
            return self._fallback(transcript, next_question, next_question_index), True
        except RetryExhaustedError as e:
            self.circuit_breaker.record_failure()
            logger.warning("Using fallback feedback: %s", e)
            return self._fallback(transcript, next_question, next_question_index), True

        self.circuit_breaker.record_success()
        feedback = FeedbackResult.from_partial(
            partial,
            next_question=next_question,
            next_question_index=next_question_index,
        )
        return feedback, False

    @staticmethod
    def _fallback(transcript: str, next_question: str | None, next_question_index: int) -> FeedbackResult:
        return FeedbackResult.from_partial(
            generate_fallback_feedback(transcript),
            next_question=next_question,
            next_question_index=next_question_index,
        )
