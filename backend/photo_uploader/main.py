"""Punto de entrada principal para la aplicación FastAPI."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from photo_uploader.api.routes.about import router as about_router
from photo_uploader.api.routes.health import router as health_router
from photo_uploader.channels.sms.deps import build_pipeline
from photo_uploader.channels.sms.router import router as sms_router
from photo_uploader.core.config import SERVICE_NAME, VERSION, Settings, get_settings
from photo_uploader.core.logging import configure_logging, get_logger, log_event, resolve_log_level
from photo_uploader.core.middleware import RequestLoggingMiddleware
from photo_uploader.services.gallery import GalleryRebuildTrigger
from photo_uploader.services.storage import PhotoStore


def create_app(settings: Settings | None = None, *, store: PhotoStore | None = None) -> FastAPI:
    """Crea y configura la instancia de FastAPI.

    Sin `settings` se lee la configuración del entorno; si falta un valor
    obligatorio la construcción falla y el proceso no arranca.
    """
    settings = settings or get_settings()

    default_log_level = logging.DEBUG if settings.environment != "production" else logging.INFO
    log_level = resolve_log_level(settings.log_level, default=default_log_level)
    per_logger_files: dict[str, str] = {}
    if settings.log_file_path:
        log_dir = Path(settings.log_file_path).parent
        per_logger_files = {
            "photo_uploader.request": str(log_dir / "request.log"),
            "photo_uploader.channels.sms": str(log_dir / "sms.log"),
        }
    configure_logging(
        level=log_level,
        log_file=settings.log_file_path,
        per_logger_files=per_logger_files,
    )

    rebuild = GalleryRebuildTrigger(settings.update_api_url, timeout=settings.http_timeout_seconds)
    pipeline = build_pipeline(settings, store=store, rebuild=rebuild)
    log = get_logger("photo_uploader")

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        log_event(
            log,
            "app.started",
            version=VERSION,
            bucket=settings.s3_bucket,
            aws_region=settings.aws_region,
            allowed_senders=len(settings.allowed_senders),
        )
        yield
        await rebuild.aclose()

    app = FastAPI(title="Photo Uploader", version=VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.pipeline = pipeline
    app.state.rebuild_trigger = rebuild

    app.add_middleware(
        RequestLoggingMiddleware,
        level=resolve_log_level(settings.request_log_level),
        skip_prefixes=settings.request_log_skip_prefixes,
    )

    app.include_router(health_router)
    app.include_router(about_router)
    app.include_router(sms_router)

    log_event(log, "app.configured", service=SERVICE_NAME, environment=settings.environment)
    return app
