import fastapi
import uvicorn
from dotenv import load_dotenv
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from voxinterview.api.endpoints import router as api_endpoint_router
from voxinterview.api.routes.interview import UPLOADS_PATH
from voxinterview.config.events import backend_lifespan
from voxinterview.config.manager import settings


def initialize_backend_application() -> fastapi.FastAPI:
    # Load environment variables from .env if present
    load_dotenv()
    app = fastapi.FastAPI(**settings.set_backend_app_attributes, lifespan=backend_lifespan)  # type: ignore

    # Tags metadata for Swagger grouping
    tags_metadata = [
        {
            "name": "analysis",
            "description": "Answer transcription, confidence heuristics and STAR feedback.",
        },
        {
            "name": "interview",
            "description": "Question bank access and spoken question audio.",
        },
        {"name": "health", "description": "Liveness and LLM circuit breaker status."},
    ]
    # Attach tag descriptions to OpenAPI
    app.openapi_tags = tags_metadata  # type: ignore[attr-defined]

    app.title = "VoxInterview Backend API"
    if not getattr(settings, "DESCRIPTION", None):
        app.description = "APIs for spoken mock interviews: question delivery, transcription and resilient AI feedback."

    # CORS middleware should be added first to handle preflight requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=settings.IS_ALLOWED_CREDENTIALS,
        allow_methods=settings.ALLOWED_METHODS,
        allow_headers=settings.ALLOWED_HEADERS,
    )

    app.include_router(router=api_endpoint_router, prefix=settings.API_PREFIX)

    # Cached question audio; the directory is created on startup
    app.mount(UPLOADS_PATH, StaticFiles(directory=settings.AUDIO_CACHE_DIR, check_dir=False), name="uploads")

    # Add a root endpoint
    @app.get("/")
    async def root():
        return {
            "message": "Welcome to VoxInterview Backend API",
            "version": settings.VERSION,
            "docs": "/docs",
            "health": "/api/health",
        }

    return app


backend_app: fastapi.FastAPI = initialize_backend_application()

if __name__ == "__main__":
    uvicorn.run(
        app="voxinterview.main:backend_app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG,
        workers=settings.SERVER_WORKERS,
        log_level=settings.LOGGING_LEVEL,
    )
