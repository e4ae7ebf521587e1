import json
import logging
import re
import typing

import decouple
from openai import AsyncOpenAI

from voxinterview.config.manager import settings
from voxinterview.models.schemas.interview import RoleProfile

logger = logging.getLogger(__name__)

# Looks up a secret by name at call time, so rotated keys apply without a restart.
CredentialProvider = typing.Callable[[str], str]

MAX_TRANSCRIPT_CHARS = 8000


class LLMConfigurationError(Exception):
    """Raised when no API key is available for the LLM provider."""


class LLMResponseError(ValueError):
    """Raised when the LLM reply cannot be read as a JSON object."""


def env_credential_provider(name: str) -> str:
    """Read ``name`` from the live environment (then `.env`), falling back to loaded settings."""
    value = decouple.config(name, default="", cast=str)
    return str(value or getattr(settings, name, "") or "")


class LLMClient(typing.Protocol):
    async def generate(self, prompt: str, *, system_prompt: str) -> str:
        ...


class OpenAIFeedbackClient:
    """Chat-completions JSON client; a fresh AsyncOpenAI is built for every call."""

    def __init__(
        self,
        credentials: CredentialProvider = env_credential_provider,
        model: str | None = None,
        timeout_seconds: float | None = None,
        max_tokens: int = 1024,
    ):
        self._credentials = credentials
        self.model = model or settings.OPENAI_MODEL
        self.timeout_seconds = timeout_seconds or settings.LLM_TIMEOUT_SECONDS
        self.max_tokens = max_tokens

    async def generate(self, prompt: str, *, system_prompt: str) -> str:
        api_key = self._credentials("OPENAI_API_KEY")
        if not api_key:
            raise LLMConfigurationError("OpenAI API key not configured")

        # Use Chat Completions for all models; switch token param for newer families
        is_new_family = any(str(self.model).lower().startswith(p) for p in ("gpt-5", "gpt-4.1", "o4", "o3"))
        token_param_key = "max_completion_tokens" if is_new_family else "max_tokens"
        kwargs: dict[str, typing.Any] = {
            "model": self.model,
            "response_format": {"type": "json_object"},
            token_param_key: self.max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
        }
        # Only include temperature for older models; new families accept only the default
        if not is_new_family:
            kwargs["temperature"] = 0

        # Retries belong to the analyzer, so the SDK's own retry loop is disabled.
        async with AsyncOpenAI(api_key=api_key, timeout=self.timeout_seconds, max_retries=0) as client:
            resp = await client.chat.completions.create(**kwargs)
        raw = resp.choices[0].message.content or ""
        logger.debug("LLM raw output (%d chars)", len(raw))
        return raw


FEEDBACK_SYSTEM_PROMPT = (
    "You are an expert technical interviewer and interview coach. "
    "Evaluate spoken interview answers using the STAR framework (Situation, Task, Action, Result). "
    "Return STRICT JSON only. No markdown, no explanations, no extra fields."
)


def build_feedback_prompt(*, transcript: str, profile: RoleProfile, question: str | None) -> str:
    focus = ", ".join(profile.focus) or "general engineering"
    return (
        f"You are evaluating a candidate for a {profile.title} role (focus areas: {focus}).\n\n"
        f"Interview question:\n\"{question or 'No question provided'}\"\n\n"
        f"Candidate response:\n\"{(transcript or '')[:MAX_TRANSCRIPT_CHARS]}\"\n\n"
        "Evaluate the response using the STAR framework and the role expectations.\n\n"
        "Return a JSON object with exactly these keys:\n"
        "{\n"
        '  "clarity": string,\n'
        '  "confidence": string,\n'
        '  "relevance": string,\n'
        '  "suggestion": string,\n'
        '  "situation": integer 1-4,\n'
        '  "task": integer 1-4,\n'
        '  "action": integer 1-4,\n'
        '  "result": integer 1-4\n'
        "}\n\n"
        "Rules:\n"
        "- Be concise: one or two sentences per text field\n"
        "- Ratings must be integers from 1 to 4\n"
    )


def parse_json_object(raw_text: str) -> dict[str, typing.Any]:
    """
    Parse an LLM reply into a JSON object.

    Strips code fences and, failing a direct parse, extracts the outermost
    ``{...}`` span with trailing commas removed.

    Raises:
        LLMResponseError: if no JSON object can be recovered.
    """
    text = (raw_text or "").strip()
    # Strip common code fences
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    text = text.strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            raise LLMResponseError("LLM response did not contain valid JSON")
        candidate = re.sub(r",\s*(\}|\])", r"\1", text[start:end + 1])
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            raise LLMResponseError(f"LLM response did not contain valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise LLMResponseError(f"Expected a JSON object, got {type(data).__name__}")
    return data
