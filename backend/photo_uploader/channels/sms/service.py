"""Pipeline de ingesta: mensaje MMS -> fotos en S3 -> regeneración de galería."""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass, field
from typing import Protocol

from photo_uploader.core.logging import get_logger, log_event
from photo_uploader.core.security import is_sender_allowed, mask_secret
from photo_uploader.services.content_type import sniff_content_type
from photo_uploader.services.media import (
    FetchError,
    LocateError,
    MediaFetcher,
    MediaLocator,
)
from photo_uploader.services.storage import PhotoStore, StoreWriteError, photo_key

from .payload import DecodeError, extract_inbound_message
from .schemas import IngestionOutcome, InboundMessage

logger = get_logger("photo_uploader.channels.sms")

NOT_ALLOWED_MESSAGE = "Sorry, not allowed!"
NO_MEDIA_MESSAGE = "No media found in message."
SINGLE_UPLOAD_MESSAGE = "Photo uploaded successfully!"


class RebuildTrigger(Protocol):
    def fire(self) -> object: ...


@dataclass(slots=True)
class IngestionResult:
    """Resultado de procesar un webhook; el router lo traduce a HTTP."""

    outcome: IngestionOutcome
    status_code: int
    message: str
    stored_keys: list[str] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status_code < 400


def build_caption(body: str, position: int, total: int) -> str:
    """Caption del adjunto `position` (base 1); numerado sólo si hay varios."""
    if total > 1:
        return f"{body} ({position}/{total})"
    return body


def success_message(count: int) -> str:
    if count == 1:
        return SINGLE_UPLOAD_MESSAGE
    return f"{count} photos uploaded successfully!"


class IngestionPipeline:
    """Orquesta autorización, reubicación de cada adjunto y respuesta.

    Los adjuntos se procesan en orden y de a uno. Cualquier falla aborta el
    resto del lote sin deshacer las escrituras previas.
    """

    def __init__(
        self,
        *,
        allow_list: Collection[str],
        locator: MediaLocator,
        fetcher: MediaFetcher,
        store: PhotoStore,
        rebuild: RebuildTrigger,
    ) -> None:
        self._allow_list = frozenset(allow_list)
        self._locator = locator
        self._fetcher = fetcher
        self._store = store
        self._rebuild = rebuild

    async def process(self, body: bytes) -> IngestionResult:
        """Procesa el cuerpo crudo del webhook."""
        try:
            message = extract_inbound_message(body)
        except DecodeError as exc:
            log_event(logger, "sms.decode_failed", level=logging.ERROR, error=str(exc))
            return IngestionResult(
                outcome=IngestionOutcome.FAILED,
                status_code=500,
                message=f"Error decoding payload: {exc}",
                error=exc,
            )
        return await self.ingest(message)

    async def ingest(self, message: InboundMessage) -> IngestionResult:
        sender = mask_secret(message.from_)
        if not is_sender_allowed(message.from_, self._allow_list):
            log_event(logger, "sms.sender_rejected", level=logging.WARNING, sender=sender)
            return IngestionResult(
                outcome=IngestionOutcome.DENIED, status_code=200, message=NOT_ALLOWED_MESSAGE
            )

        total = message.num_media
        if total == 0:
            log_event(logger, "sms.no_media", sender=sender, message_sid=message.message_sid)
            return IngestionResult(
                outcome=IngestionOutcome.NO_MEDIA, status_code=200, message=NO_MEDIA_MESSAGE
            )

        stored: list[str] = []
        for index in range(total):
            try:
                key = await self._store_attachment(message, index, total)
            except (LocateError, FetchError, StoreWriteError) as exc:
                log_event(
                    logger,
                    "sms.attachment_failed",
                    level=logging.ERROR,
                    sender=sender,
                    attachment_index=index,
                    stored_before_failure=len(stored),
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                return IngestionResult(
                    outcome=IngestionOutcome.FAILED,
                    status_code=500,
                    message=_failure_message(exc),
                    stored_keys=stored,
                    error=exc,
                )
            stored.append(key)

        log_event(logger, "sms.media_stored", sender=sender, count=total, keys=stored)
        self._rebuild.fire()
        return IngestionResult(
            outcome=IngestionOutcome.STORED,
            status_code=200,
            message=success_message(total),
            stored_keys=stored,
        )

    async def _store_attachment(self, message: InboundMessage, index: int, total: int) -> str:
        attachment = message.attachment_at(index)
        if attachment is None:
            raise LocateError(f"El mensaje no incluye MediaUrl{index}")

        location = await self._locator.locate(attachment.url)
        data = await self._fetcher.fetch(location.hostname)
        content_type = sniff_content_type(data)
        caption = build_caption(message.body, index + 1, total)
        key = photo_key(location.key)
        await self._store.put_photo(key=key, data=data, content_type=content_type, caption=caption)
        return key


def _failure_message(exc: Exception) -> str:
    if isinstance(exc, LocateError):
        return f"Error locating media: {exc}"
    if isinstance(exc, FetchError):
        return f"Error Reading file from S3: {exc}"
    return f"Error copying to S3: {exc}"
