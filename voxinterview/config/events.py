import contextlib
import logging
import os
import typing

import fastapi

from voxinterview.config.manager import settings

logger = logging.getLogger(__name__)

# API keys checked at startup; a missing key only degrades its feature.
REQUIRED_API_KEYS = ("OPENAI_API_KEY", "ELEVENLABS_API_KEY")


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOGGING_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    for logger_name in settings.LOGGERS:
        logging.getLogger(logger_name).setLevel(settings.LOGGING_LEVEL)


def is_placeholder_secret(value: str | None) -> bool:
    """True for keys copied verbatim from a `.env.example` (``your_..._here``)."""
    if not value:
        return False
    return value.startswith("your_") or value.endswith("_here")


def validate_environment() -> list[str]:
    """
    Warn about missing or placeholder API keys.

    The LLM path degrades to fallback feedback and question audio is skipped,
    so nothing here is fatal. Returns the list of problems for callers/tests.
    """
    problems: list[str] = []
    for key in REQUIRED_API_KEYS:
        value = getattr(settings, key, "")
        if not value:
            problems.append(f"{key} is not set")
        elif is_placeholder_secret(value):
            problems.append(f"{key} looks like a placeholder value")

    for problem in problems:
        logger.warning("Environment check: %s", problem)
    if not problems:
        logger.info("Environment validation passed")
    return problems


def execute_backend_server_event_handler(backend_app: fastapi.FastAPI) -> typing.Any:
    async def launch_backend_server_events() -> None:
        configure_logging()
        validate_environment()
        os.makedirs(settings.AUDIO_CACHE_DIR, exist_ok=True)
        logger.info("%s %s started (env=%s)", settings.TITLE, settings.VERSION, settings.ENVIRONMENT)

    return launch_backend_server_events


def terminate_backend_server_event_handler(backend_app: fastapi.FastAPI) -> typing.Any:
    async def stop_backend_server_events() -> None:
        logger.info("%s shutting down", settings.TITLE)

    return stop_backend_server_events


@contextlib.asynccontextmanager
async def backend_lifespan(backend_app: fastapi.FastAPI) -> typing.AsyncIterator[None]:
    await execute_backend_server_event_handler(backend_app=backend_app)()
    yield
    await terminate_backend_server_event_handler(backend_app=backend_app)()

