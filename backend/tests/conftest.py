"""Fixtures compartidas para las pruebas."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from photo_uploader.channels.sms.service import IngestionPipeline
from photo_uploader.core.config import Settings
from photo_uploader.main import create_app
from photo_uploader.services.media import MediaFetcher, MediaLocator

from support import ALLOWED_SENDER, MediaHost, StubRebuild, StubStore


@pytest.fixture(name="settings")
def fixture_settings() -> Settings:
    return Settings(
        _env_file=None,
        s3_bucket="gallery-photos",
        update_api_url="http://gallery.test/update",
        allowed_senders=[ALLOWED_SENDER],
    )


@pytest.fixture(name="media_host")
def fixture_media_host() -> MediaHost:
    return MediaHost()


@pytest.fixture(name="store")
def fixture_store() -> StubStore:
    return StubStore()


@pytest.fixture(name="rebuild")
def fixture_rebuild() -> StubRebuild:
    return StubRebuild()


@pytest.fixture(name="pipeline")
def fixture_pipeline(
    media_host: MediaHost, store: StubStore, rebuild: StubRebuild
) -> IngestionPipeline:
    transport = media_host.transport
    return IngestionPipeline(
        allow_list={ALLOWED_SENDER},
        locator=MediaLocator(transport=transport),
        fetcher=MediaFetcher(transport=transport),
        store=store,
        rebuild=rebuild,
    )


@pytest.fixture(name="async_client")
async def fixture_async_client(
    settings: Settings, store: StubStore, pipeline: IngestionPipeline
) -> AsyncClient:
    """Cliente asíncrono contra la app con colaboradores externos simulados."""
    app = create_app(settings, store=store)
    app.state.pipeline = pipeline
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
