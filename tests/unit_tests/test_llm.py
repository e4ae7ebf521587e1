import pytest

from voxinterview.services.llm import (
    LLMConfigurationError,
    LLMResponseError,
    OpenAIFeedbackClient,
    build_feedback_prompt,
    parse_json_object,
)
from voxinterview.services.question_bank import get_role_profile


def test_parse_plain_json():
    assert parse_json_object('{"clarity": "ok", "situation": 3}') == {"clarity": "ok", "situation": 3}


def test_parse_strips_code_fences():
    assert parse_json_object('```json\n{"task": 2}\n```') == {"task": 2}
    assert parse_json_object('```\n{"task": 2}\n```') == {"task": 2}


def test_parse_extracts_object_from_surrounding_text_and_trailing_commas():
    raw = 'Here is the evaluation:\n{"action": 4, "result": 3,}\nHope that helps.'
    assert parse_json_object(raw) == {"action": 4, "result": 3}


@pytest.mark.parametrize("raw", ["", "no braces here", "[1, 2, 3]", "{broken", '"just a string"'])
def test_parse_rejects_non_objects(raw):
    with pytest.raises(LLMResponseError):
        parse_json_object(raw)


def test_prompt_handles_missing_question_and_truncates_transcript():
    prompt = build_feedback_prompt(transcript="x" * 20_000, profile=get_role_profile("backend"), question=None)
    assert "No question provided" in prompt
    assert "Backend Developer" in prompt
    assert "x" * 20_000 not in prompt


@pytest.mark.asyncio
async def test_client_without_key_raises_configuration_error():
    client = OpenAIFeedbackClient(credentials=lambda name: "", model="gpt-4o-mini", timeout_seconds=1.0)
    with pytest.raises(LLMConfigurationError):
        await client.generate("prompt", system_prompt="system")


@pytest.mark.asyncio
async def test_client_reads_credentials_per_call():
    seen = []

    def credentials(name):
        seen.append(name)
        return ""

    client = OpenAIFeedbackClient(credentials=credentials, model="gpt-4o-mini", timeout_seconds=1.0)
    for _ in range(2):
        with pytest.raises(LLMConfigurationError):
            await client.generate("prompt", system_prompt="system")
    assert seen == ["OPENAI_API_KEY", "OPENAI_API_KEY"]
