import logging
import pathlib

import decouple
import pydantic
from pydantic_settings import BaseSettings

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).parent.parent.parent.parent.resolve()


class BackendBaseSettings(BaseSettings):
    TITLE: str = "VoxInterview Backend API"
    VERSION: str = "0.1.0"
    TIMEZONE: str = "UTC"
    DESCRIPTION: str | None = None
    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"  # Default environment, overridden by subclasses

    SERVER_HOST: str = decouple.config("BACKEND_SERVER_HOST", cast=str, default="127.0.0.1")  # type: ignore
    SERVER_PORT: int = decouple.config("BACKEND_SERVER_PORT", cast=int, default=5000)  # type: ignore
    SERVER_WORKERS: int = decouple.config("BACKEND_SERVER_WORKERS", cast=int, default=1)  # type: ignore
    API_PREFIX: str = "/api"
    DOCS_URL: str = "/docs"
    OPENAPI_URL: str = "/openapi.json"
    REDOC_URL: str = "/redoc"
    OPENAPI_PREFIX: str = ""

    IS_ALLOWED_CREDENTIALS: bool = decouple.config("IS_ALLOWED_CREDENTIALS", cast=bool, default=True)  # type: ignore
    ALLOWED_ORIGINS: list[str] = [
        "http://localhost:3000",  # React default port
        "http://127.0.0.1:3000",
        "http://localhost:5173",  # Vite default port
        "http://127.0.0.1:5173",
    ]
    ALLOWED_METHODS: list[str] = ["*"]
    ALLOWED_HEADERS: list[str] = ["*"]

    LOGGING_LEVEL: int = logging.INFO
    LOGGERS: tuple[str, str] = ("uvicorn.asgi", "uvicorn.access")

    # ------------------------------
    # LLM feedback (OpenAI)
    # ------------------------------
    OPENAI_MODEL: str = decouple.config("OPENAI_MODEL", cast=str, default="gpt-4o-mini")  # type: ignore
    OPENAI_API_KEY: str = decouple.config("OPENAI_API_KEY", cast=str, default="")  # type: ignore
    # Per-attempt deadline; the client itself never retries, the analyzer does.
    LLM_TIMEOUT_SECONDS: float = decouple.config("LLM_TIMEOUT_SECONDS", cast=float, default=8.0)  # type: ignore
    LLM_MAX_RETRIES: int = decouple.config("LLM_MAX_RETRIES", cast=int, default=1)  # type: ignore
    LLM_RETRY_BACKOFF_SECONDS: float = decouple.config("LLM_RETRY_BACKOFF_SECONDS", cast=float, default=0.4)  # type: ignore
    CIRCUIT_FAILURE_THRESHOLD: int = decouple.config("CIRCUIT_FAILURE_THRESHOLD", cast=int, default=3)  # type: ignore
    CIRCUIT_COOLDOWN_SECONDS: float = decouple.config("CIRCUIT_COOLDOWN_SECONDS", cast=float, default=60.0)  # type: ignore

    # ------------------------------
    # Speech (ElevenLabs)
    # ------------------------------
    ELEVENLABS_API_KEY: str = decouple.config("ELEVENLABS_API_KEY", cast=str, default="")  # type: ignore
    ELEVENLABS_STT_MODEL: str = decouple.config("ELEVENLABS_STT_MODEL", cast=str, default="scribe_v1")  # type: ignore
    ELEVENLABS_TTS_MODEL: str = decouple.config("ELEVENLABS_TTS_MODEL", cast=str, default="eleven_multilingual_v2")  # type: ignore
    ELEVENLABS_VOICE_ID: str = decouple.config("ELEVENLABS_VOICE_ID", cast=str, default="EXAVITQu4vr4xnSDxMaL")  # type: ignore
    STT_TIMEOUT_SECONDS: float = decouple.config("STT_TIMEOUT_SECONDS", cast=float, default=10.0)  # type: ignore
    STT_MAX_RETRIES: int = decouple.config("STT_MAX_RETRIES", cast=int, default=2)  # type: ignore
    STT_RETRY_BACKOFF_SECONDS: float = decouple.config("STT_RETRY_BACKOFF_SECONDS", cast=float, default=0.5)  # type: ignore
    TTS_TIMEOUT_SECONDS: float = decouple.config("TTS_TIMEOUT_SECONDS", cast=float, default=10.0)  # type: ignore

    # Audio processing settings (uploads are never stored; only question audio is cached)
    MAX_AUDIO_SIZE_MB: int = decouple.config("MAX_AUDIO_SIZE_MB", cast=int, default=50)  # type: ignore
    TRANSCRIPT_MAX_CHARS: int = decouple.config("TRANSCRIPT_MAX_CHARS", cast=int, default=5000)  # type: ignore
    AUDIO_CACHE_DIR: str = decouple.config("AUDIO_CACHE_DIR", cast=str, default=str(ROOT_DIR / "uploads"))  # type: ignore

    model_config = pydantic.ConfigDict(
        case_sensitive=True,
        env_file=f"{str(ROOT_DIR)}/.env",
        validate_assignment=True,
        extra='allow'
    )

    @property
    def set_backend_app_attributes(self) -> dict[str, str | bool | None]:
        """
        Set all `FastAPI` class' attributes with the custom values defined in `BackendBaseSettings`.
        """
        return {
            "title": self.TITLE,
            "version": self.VERSION,
            "debug": self.DEBUG,
            "description": self.DESCRIPTION,
            "docs_url": self.DOCS_URL,
            "openapi_url": self.OPENAPI_URL,
            "redoc_url": self.REDOC_URL,
            "openapi_prefix": self.OPENAPI_PREFIX,
            "api_prefix": self.API_PREFIX,
        }
