"""TokenGuard: FastAPI application entry point."""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tokenguard import __version__
from tokenguard.config import Settings, get_settings
from tokenguard.engine.scan_pipeline import ScanPipeline
from tokenguard.evidence.attestor import Attestor
from tokenguard.infrastructure.logging import setup_logging
from tokenguard.presentation.api.routers import health, scan, verify
from tokenguard.presentation.exceptions import register_exception_handlers
from tokenguard.presentation.middleware import LoggingMiddleware, RequestIdMiddleware
from tokenguard.providers.registry import build_adapters

logger = structlog.get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.  *settings* defaults to the environment."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(level=settings.log_level, json_output=settings.json_logs)
        attestor = Attestor(settings.signing_key, settings.signing_key_id)
        adapters = build_adapters(settings)
        app.state.settings = settings
        app.state.attestor = attestor
        app.state.pipeline = ScanPipeline(
            adapters,
            attestor,
            timeout=settings.provider_timeout_seconds,
            schema_version=settings.schema_version,
        )
        app.state.started_at = time.monotonic()
        logger.info(
            "tokenguard_started",
            version=__version__,
            environment=settings.environment,
            providers=[a.provider_id for a in adapters],
        )
        yield
        logger.info("tokenguard_stopped")

    app = FastAPI(
        title="TokenGuard",
        description="Token risk evidence aggregation, policy decisions and signed attestations.",
        version=__version__,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(scan.router)
    app.include_router(verify.router)
    return app


def run() -> None:
    """CLI entry point."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "tokenguard.presentation.api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )
