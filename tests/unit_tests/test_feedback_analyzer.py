import asyncio
import json
import time

import pytest

from voxinterview.models.schemas.feedback import FeedbackResult
from voxinterview.models.schemas.interview import Role
from voxinterview.services.fallback_feedback import FALLBACK_TEXT
from voxinterview.services.feedback import TranscriptAnalyzer, repair_text_field
from voxinterview.services.llm import OpenAIFeedbackClient
from voxinterview.services.question_bank import ROLE_PROFILES
from voxinterview.services.resilience import CircuitBreaker

TRANSCRIPT = " ".join(["I built the caching layer and led the migration"] + ["delivery"] * 52)

GOOD_REPLY = json.dumps(
    {
        "clarity": "Clear and well structured.",
        "confidence": "Sounds assured.",
        "relevance": "On topic.",
        "suggestion": "Quantify the result.",
        "situation": 3,
        "task": 3,
        "action": 2,
        "result": 4,
    }
)


class FakeLLMClient:
    """Replays scripted replies; an exception instance is raised, ``"hang"`` never returns."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = 0
        self.prompts = []

    async def generate(self, prompt, *, system_prompt):
        self.calls += 1
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if reply == "hang":
            await asyncio.sleep(10)
        return reply


def make_analyzer(client, breaker=None, **kwargs) -> TranscriptAnalyzer:
    kwargs.setdefault("backoff_seconds", 0)
    kwargs.setdefault("timeout_seconds", 1.0)
    return TranscriptAnalyzer(client, breaker or CircuitBreaker(), **kwargs)


@pytest.mark.asyncio
async def test_valid_llm_reply_produces_feedback():
    client = FakeLLMClient(GOOD_REPLY)
    feedback, fallback_mode = await make_analyzer(client).analyze_with_meta(TRANSCRIPT, Role.FRONTEND, 0)

    assert fallback_mode is False
    assert client.calls == 1
    assert feedback.clarity == "Clear and well structured."
    assert (feedback.situation, feedback.task, feedback.action, feedback.result) == (3, 3, 2, 4)
    assert feedback.star_score == 3.0
    assert feedback.next_question == ROLE_PROFILES[Role.FRONTEND].questions[1].text
    assert feedback.next_question_index == 1
    assert feedback.completed is False


@pytest.mark.asyncio
async def test_prompt_mentions_role_and_current_question():
    client = FakeLLMClient(GOOD_REPLY)
    await make_analyzer(client).analyze(TRANSCRIPT, Role.SECURITY, 2)

    prompt = client.prompts[0]
    assert "Security Engineer" in prompt
    assert ROLE_PROFILES[Role.SECURITY].questions[2].text in prompt


@pytest.mark.asyncio
async def test_fenced_reply_is_accepted():
    client = FakeLLMClient(f"```json\n{GOOD_REPLY}\n```")
    _, fallback_mode = await make_analyzer(client).analyze_with_meta(TRANSCRIPT, Role.BACKEND, 0)
    assert fallback_mode is False


@pytest.mark.asyncio
async def test_malformed_reply_retries_then_falls_back():
    client = FakeLLMClient("not json at all")
    breaker = CircuitBreaker()
    feedback, fallback_mode = await make_analyzer(client, breaker).analyze_with_meta(TRANSCRIPT, Role.BACKEND, 0)

    assert fallback_mode is True
    assert client.calls == 2
    assert breaker.consecutive_failures == 1
    assert (feedback.situation, feedback.task, feedback.action, feedback.result) == (2, 2, 2, 2)
    assert feedback.clarity == FALLBACK_TEXT["clarity"]


@pytest.mark.asyncio
async def test_recovers_on_second_attempt():
    client = FakeLLMClient(ConnectionError("reset"), GOOD_REPLY)
    breaker = CircuitBreaker()
    _, fallback_mode = await make_analyzer(client, breaker).analyze_with_meta(TRANSCRIPT, Role.BACKEND, 0)

    assert fallback_mode is False
    assert client.calls == 2
    assert breaker.consecutive_failures == 0


@pytest.mark.asyncio
async def test_out_of_range_ratings_become_neutral():
    reply = json.dumps(
        {"clarity": "ok", "confidence": "ok", "relevance": "ok", "suggestion": "ok",
         "situation": 7, "task": 0, "action": "4", "result": 4}
    )
    feedback = await make_analyzer(FakeLLMClient(reply)).analyze(TRANSCRIPT, Role.FRONTEND, 0)
    assert (feedback.situation, feedback.task, feedback.action, feedback.result) == (2, 2, 2, 4)


@pytest.mark.asyncio
async def test_numeric_and_missing_text_fields_are_repaired():
    reply = json.dumps({"clarity": 3, "confidence": "", "situation": 4, "task": 4, "action": 4, "result": 4})
    feedback = await make_analyzer(FakeLLMClient(reply)).analyze(TRANSCRIPT, Role.FRONTEND, 0)

    assert "3/4" in feedback.clarity
    assert feedback.confidence == FALLBACK_TEXT["confidence"]
    assert feedback.relevance == FALLBACK_TEXT["relevance"]
    assert feedback.suggestion == FALLBACK_TEXT["suggestion"]


def test_repair_text_field_formats_floats_and_ignores_bools():
    assert repair_text_field("relevance", 2.0) == "Answer relevance rated 2/4"
    assert repair_text_field("clarity", True) == FALLBACK_TEXT["clarity"]
    assert repair_text_field("suggestion", "  Be specific.  ") == "Be specific."


@pytest.mark.asyncio
async def test_last_question_marks_interview_completed():
    last_index = len(ROLE_PROFILES[Role.BACKEND].questions) - 1
    feedback = await make_analyzer(FakeLLMClient(GOOD_REPLY)).analyze(TRANSCRIPT, Role.BACKEND, last_index)

    assert feedback.next_question is None
    assert feedback.next_question_index == last_index + 1
    assert feedback.completed is True


@pytest.mark.asyncio
async def test_negative_index_is_treated_as_first_question():
    feedback = await make_analyzer(FakeLLMClient(GOOD_REPLY)).analyze(TRANSCRIPT, Role.FRONTEND, -5)
    assert feedback.next_question_index == 1


@pytest.mark.asyncio
async def test_unknown_role_uses_frontend_questions():
    feedback = await make_analyzer(FakeLLMClient(GOOD_REPLY)).analyze(TRANSCRIPT, "marketing", 0)
    assert feedback.next_question == ROLE_PROFILES[Role.FRONTEND].questions[1].text


@pytest.mark.asyncio
async def test_repeated_timeouts_open_circuit_and_skip_llm():
    client = FakeLLMClient("hang")
    breaker = CircuitBreaker(failure_threshold=3, cooldown_seconds=60)
    analyzer = make_analyzer(client, breaker, timeout_seconds=0.01)

    for _ in range(3):
        _, fallback_mode = await analyzer.analyze_with_meta(TRANSCRIPT, Role.FRONTEND, 0)
        assert fallback_mode is True
    assert client.calls == 6
    assert breaker.is_available() is False

    start = time.perf_counter()
    feedback, fallback_mode = await analyzer.analyze_with_meta(TRANSCRIPT, Role.FRONTEND, 0)
    elapsed = time.perf_counter() - start

    assert fallback_mode is True
    assert client.calls == 6
    assert elapsed < 0.05
    assert feedback.star_score == 2.0


@pytest.mark.asyncio
async def test_fallback_and_success_share_the_same_shape():
    success = await make_analyzer(FakeLLMClient(GOOD_REPLY)).analyze(TRANSCRIPT, Role.FRONTEND, 0)
    fallback = await make_analyzer(FakeLLMClient("{")).analyze(TRANSCRIPT, Role.FRONTEND, 0)

    assert set(success.model_dump(by_alias=True)) == set(fallback.model_dump(by_alias=True))
    FeedbackResult.model_validate(fallback.model_dump(by_alias=True))


@pytest.mark.asyncio
async def test_missing_llm_key_falls_back_without_retry_or_breaker_failure():
    lookups = []

    def no_key(name):
        lookups.append(name)
        return ""

    breaker = CircuitBreaker(failure_threshold=1)
    analyzer = TranscriptAnalyzer(
        OpenAIFeedbackClient(credentials=no_key, model="gpt-4o-mini", timeout_seconds=1.0),
        breaker,
        max_retries=1,
        backoff_seconds=5.0,
    )

    start = time.perf_counter()
    feedback, fallback_mode = await analyzer.analyze_with_meta(TRANSCRIPT, Role.FRONTEND, 0)
    elapsed = time.perf_counter() - start

    assert fallback_mode is True
    assert lookups == ["OPENAI_API_KEY"]
    assert elapsed < 1.0
    assert breaker.consecutive_failures == 0
    assert breaker.is_available() is True
    assert feedback.star_score == 2.0
