"""Application entry-point for the FastAPI backend."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from novachat.core.config import Settings, get_settings
from novachat.core.logging_setup import setup_logging
from novachat.core.storage import Storage

from .api import router as api_router
from .gemini import GeminiClient
from .service import ProxyService
from .usage import UsageLogger, storage_sink


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app; everything downstream receives ``settings`` explicitly."""

    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    storage = Storage(settings.database_path, token_ttl_hours=settings.AUTH_TOKEN_TTL_HOURS)
    storage.initialize_database()
    usage_logger = UsageLogger(storage_sink(storage))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await usage_logger.drain()

    app = FastAPI(
        title="NovaChat AI Proxy",
        version="1.0.0",
        description="Authenticated proxy forwarding chat messages to the Gemini API.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage
    app.state.usage_logger = usage_logger
    app.state.proxy_service = ProxyService(
        settings,
        GeminiClient(settings.generate_content_url, timeout=settings.UPSTREAM_TIMEOUT_SECONDS),
        usage_logger,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Simple health endpoint."""

        return {"status": "ok", "model": settings.GEMINI_MODEL}

    return app
