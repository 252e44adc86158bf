"""Dependencias reutilizables para rutas de SMS/MMS."""

from __future__ import annotations

from fastapi import Request

from photo_uploader.core.config import Settings
from photo_uploader.services.gallery import GalleryRebuildTrigger
from photo_uploader.services.media import MediaFetcher, MediaLocator
from photo_uploader.services.storage import PhotoStore, S3PhotoStore

from .service import IngestionPipeline


def build_pipeline(
    settings: Settings,
    *,
    store: PhotoStore | None = None,
    rebuild: GalleryRebuildTrigger | None = None,
) -> IngestionPipeline:
    """Arma el pipeline con los colaboradores reales según la configuración."""
    timeout = settings.http_timeout_seconds
    return IngestionPipeline(
        allow_list=settings.allowed_senders,
        locator=MediaLocator(external_prefix=settings.external_host_prefix, timeout=timeout),
        fetcher=MediaFetcher(timeout=timeout),
        store=store
        or S3PhotoStore(
            settings.s3_bucket,
            region=settings.aws_region,
            endpoint_url=settings.s3_endpoint_url,
        ),
        rebuild=rebuild or GalleryRebuildTrigger(settings.update_api_url, timeout=timeout),
    )


def get_pipeline(request: Request) -> IngestionPipeline:
    """Retorna el pipeline construido por `create_app` al arrancar."""
    return request.app.state.pipeline
