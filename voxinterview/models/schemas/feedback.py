"""Feedback, confidence and analyze-endpoint models."""

import math
import typing

import pydantic

from voxinterview.models.schemas.base import BaseSchemaModel

STAR_RATING_MIN = 1
STAR_RATING_MAX = 4
NEUTRAL_STAR_RATING = 2


def coerce_star_rating(value: typing.Any) -> int:
    """
    Force an externally supplied STAR rating into [1, 4].

    Anything non-numeric (including bools and numeric strings), NaN, or outside
    the range becomes the neutral rating 2; in-range floats are rounded.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return NEUTRAL_STAR_RATING
    if math.isnan(value) or value < STAR_RATING_MIN or value > STAR_RATING_MAX:
        return NEUTRAL_STAR_RATING
    return int(round(value))


class ConfidenceAnalysis(BaseSchemaModel):
    """Local heuristic confidence score for a transcript."""
    score: int = pydantic.Field(ge=0, le=10, description="Heuristic confidence score (0-10)")
    word_count: int = pydantic.Field(default=0, ge=0, description="Number of whitespace-separated words")
    filler_count: int = pydantic.Field(default=0, ge=0, description="Number of filler word/phrase occurrences")
    filler_ratio: float = pydantic.Field(default=0.0, ge=0.0, description="fillerCount / wordCount, 3 decimals")
    notes: str = pydantic.Field(description="Human-readable explanation of the score")


class StarRatings(BaseSchemaModel):
    """STAR framework ratings, each an integer 1-4."""
    situation: int = pydantic.Field(default=NEUTRAL_STAR_RATING, ge=STAR_RATING_MIN, le=STAR_RATING_MAX)
    task: int = pydantic.Field(default=NEUTRAL_STAR_RATING, ge=STAR_RATING_MIN, le=STAR_RATING_MAX)
    action: int = pydantic.Field(default=NEUTRAL_STAR_RATING, ge=STAR_RATING_MIN, le=STAR_RATING_MAX)
    result: int = pydantic.Field(default=NEUTRAL_STAR_RATING, ge=STAR_RATING_MIN, le=STAR_RATING_MAX)

    @pydantic.field_validator("situation", "task", "action", "result", mode="before")
    @classmethod
    def clamp_rating(cls, v: typing.Any) -> int:
        return coerce_star_rating(v)

    @pydantic.computed_field(alias="starScore")  # type: ignore[prop-decorator]
    @property
    def star_score(self) -> float:
        return round((self.situation + self.task + self.action + self.result) / 4, 2)


class FallbackFeedback(StarRatings):
    """Feedback payload without question-progress fields; produced locally or from the LLM."""
    clarity: str
    confidence: str
    relevance: str
    suggestion: str
    confidence_score: int = pydantic.Field(ge=0, le=10, description="ConfidenceAnalysis.score for the same transcript")


class FeedbackResult(FallbackFeedback):
    """Complete per-answer feedback returned to the client."""
    next_question: str | None = pydantic.Field(default=None, description="Text of the next question, null when finished")
    next_question_index: int = pydantic.Field(ge=0, description="Index the client should ask next")

    @pydantic.computed_field(alias="completed")  # type: ignore[prop-decorator]
    @property
    def completed(self) -> bool:
        return self.next_question is None

    @classmethod
    def from_partial(
        cls,
        partial: FallbackFeedback,
        *,
        next_question: str | None,
        next_question_index: int,
    ) -> "FeedbackResult":
        return cls(
            **partial.model_dump(exclude={"star_score"}),
            next_question=next_question,
            next_question_index=next_question_index,
        )


class AnalyzeMeta(BaseSchemaModel):
    fallback_mode: bool = pydantic.Field(description="True when the LLM was bypassed or failed and local feedback was used")


class AnalyzeResponse(BaseSchemaModel):
    """Response for the audio analysis endpoint"""
    transcript: str = pydantic.Field(description="Transcript of the answer (truncated)")
    feedback: FeedbackResult
    confidence: ConfidenceAnalysis
    meta: AnalyzeMeta

    model_config = BaseSchemaModel.model_config.copy()
    model_config["json_schema_extra"] = {
        "examples": [
            {
                "transcript": "I led the migration of our checkout page to React...",
                "feedback": {
                    "clarity": "Clear and well ordered.",
                    "confidence": "Assertive delivery.",
                    "relevance": "Directly answers the question.",
                    "suggestion": "Quantify the result.",
                    "situation": 3,
                    "task": 3,
                    "action": 2,
                    "result": 4,
                    "starScore": 3.0,
                    "confidenceScore": 6,
                    "nextQuestion": "How do you approach debugging a complex UI issue?",
                    "nextQuestionIndex": 1,
                    "completed": False,
                },
                "confidence": {
                    "score": 6,
                    "wordCount": 64,
                    "fillerCount": 0,
                    "fillerRatio": 0.0,
                    "notes": "Speech pacing and word choice indicate steady confidence.",
                },
                "meta": {"fallbackMode": False},
            }
        ]
    }


class TranscriptionFailure(BaseSchemaModel):
    """Error body returned when speech-to-text produced no transcript"""
    error: str = pydantic.Field(default="transcription_failed")
    message: str
