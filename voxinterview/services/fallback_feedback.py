"""Deterministic feedback used when the LLM is unavailable or keeps failing."""

from voxinterview.models.schemas.feedback import NEUTRAL_STAR_RATING, FallbackFeedback
from voxinterview.services.confidence import score_confidence

BRIEF_ANSWER_WORDS = 30

FALLBACK_TEXT = {
    "clarity": "Your response was understandable, but could benefit from clearer structure.",
    "confidence": "Your tone was steady, but stronger delivery would improve impact.",
    "relevance": "You addressed the question, though more direct examples could help.",
    "suggestion": "Try structuring your answer using a clear beginning, middle, and end.",
}
BRIEF_CLARITY_TEXT = (
    "Your response was very brief. Walk through the situation, what you did, "
    "and the outcome so the interviewer can follow your reasoning."
)


def generate_fallback_feedback(transcript: str | None) -> FallbackFeedback:
    """Build complete, neutral feedback for ``transcript`` without calling any remote service."""
    confidence = score_confidence(transcript)
    text = dict(FALLBACK_TEXT)
    if confidence.word_count < BRIEF_ANSWER_WORDS:
        text["clarity"] = BRIEF_CLARITY_TEXT

    return FallbackFeedback(
        **text,
        situation=NEUTRAL_STAR_RATING,
        task=NEUTRAL_STAR_RATING,
        action=NEUTRAL_STAR_RATING,
        result=NEUTRAL_STAR_RATING,
        confidence_score=confidence.score,
    )
