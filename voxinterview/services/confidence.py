import re

from voxinterview.models.schemas.feedback import ConfidenceAnalysis

FILLER_WORDS = (
    "um", "uh", "like", "you know", "so", "basically",
    "actually", "literally", "kind of", "sort of",
)
DECISIVE_WORDS = ("built", "led", "designed", "implemented", "improved", "owned")

_FILLER_PATTERNS = [re.compile(rf"\b{re.escape(filler)}\b", re.IGNORECASE) for filler in FILLER_WORDS]
_DECISIVE_PATTERN = re.compile(r"\b(?:" + "|".join(DECISIVE_WORDS) + r")\b", re.IGNORECASE)

HEALTHY_LENGTH_RANGE = (50, 180)
HEALTHY_LENGTH_BONUS = 4
MIN_ACCEPTABLE_LENGTH = 30
MIN_LENGTH_BONUS = 2
MAX_DECISIVE_BONUS = 3
HIGH_FILLER_RATIO = 0.05
HIGH_FILLER_PENALTY = 3
LOW_FILLER_RATIO = 0.02
LOW_FILLER_PENALTY = 1

NO_SPEECH_NOTE = "No speech detected."
FILLER_HEAVY_NOTE = "Frequent filler words reduce perceived confidence."
STEADY_NOTE = "Speech pacing and word choice indicate steady confidence."


def score_confidence(transcript: str | None) -> ConfidenceAnalysis:
    """
    Heuristic confidence score (0-10) for a spoken answer.

    Args:
        transcript: Transcribed answer text; may be empty.

    Returns:
        ConfidenceAnalysis with score, word/filler counts, filler ratio and notes.
        Never raises; empty input scores 0.
    """
    text = (transcript or "").lower()
    word_count = len(text.split())

    if word_count == 0:
        return ConfidenceAnalysis(score=0, word_count=0, filler_count=0, filler_ratio=0.0, notes=NO_SPEECH_NOTE)

    filler_count = sum(len(pattern.findall(text)) for pattern in _FILLER_PATTERNS)
    filler_ratio = filler_count / word_count

    # Length heuristic
    low, high = HEALTHY_LENGTH_RANGE
    if low <= word_count <= high:
        length_bonus = HEALTHY_LENGTH_BONUS
    elif word_count >= MIN_ACCEPTABLE_LENGTH:
        length_bonus = MIN_LENGTH_BONUS
    else:
        length_bonus = 0

    # Ownership / impact verbs
    decisive_bonus = min(len(_DECISIVE_PATTERN.findall(text)), MAX_DECISIVE_BONUS)

    if filler_ratio > HIGH_FILLER_RATIO:
        filler_penalty = HIGH_FILLER_PENALTY
    elif filler_ratio > LOW_FILLER_RATIO:
        filler_penalty = LOW_FILLER_PENALTY
    else:
        filler_penalty = 0

    score = max(0, min(10, length_bonus + decisive_bonus - filler_penalty))

    return ConfidenceAnalysis(
        score=score,
        word_count=word_count,
        filler_count=filler_count,
        filler_ratio=round(filler_ratio, 3),
        notes=FILLER_HEAVY_NOTE if filler_penalty > LOW_FILLER_PENALTY else STEADY_NOTE,
    )
