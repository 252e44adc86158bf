"""Decodificación del formulario que Twilio envía al webhook de MMS."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import parse_qs

from pydantic import ValidationError

from photo_uploader.core.logging import get_logger

from .schemas import InboundMessage, MediaAttachment

logger = get_logger("photo_uploader.channels.sms")

# índice canónico en ASCII: `MediaUrl00` o dígitos no latinos no son adjuntos
_MEDIA_URL = re.compile(r"^MediaUrl(0|[1-9][0-9]*)\Z")
_MEDIA_CONTENT_TYPE = re.compile(r"^MediaContentType(0|[1-9][0-9]*)\Z")
_COUNT_FIELDS = ("NumMedia", "NumSegments")


class DecodeError(RuntimeError):
    """El cuerpo del webhook no pudo interpretarse como mensaje MMS."""


def parse_form(body: bytes) -> dict[str, list[str]]:
    """Convierte el cuerpo `application/x-www-form-urlencoded` en un multi-map."""
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"El cuerpo no es UTF-8 válido: {exc}") from exc
    try:
        return parse_qs(text, keep_blank_values=True, strict_parsing=False)
    except ValueError as exc:
        raise DecodeError(f"Formulario inválido: {exc}") from exc


def _parse_count(name: str, raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise DecodeError(f"{name} debe ser entero, se recibió {raw!r}") from exc
    if value < 0:
        raise DecodeError(f"{name} no puede ser negativo ({value})")
    return value


def extract_message(params: Mapping[str, Sequence[str]]) -> InboundMessage:
    """Construye un `InboundMessage` tomando el primer valor de cada campo.

    `MediaUrl<N>` y `MediaContentType<N>` se agrupan en adjuntos ordenados por
    índice en lugar de copiarse como campos escalares.
    """
    scalars: dict[str, Any] = {}
    urls: dict[int, str] = {}
    content_types: dict[int, str] = {}

    for key, values in params.items():
        if not values:
            continue
        first = values[0]
        if match := _MEDIA_URL.match(key):
            urls[int(match.group(1))] = first
            continue
        if match := _MEDIA_CONTENT_TYPE.match(key):
            content_types[int(match.group(1))] = first
            continue
        if key in _COUNT_FIELDS:
            scalars[key] = _parse_count(key, first)
            continue
        scalars[key] = first

    attachments = tuple(
        MediaAttachment(index=index, url=urls[index], content_type=content_types.get(index))
        for index in sorted(urls)
    )
    try:
        return InboundMessage.model_validate({**scalars, "attachments": attachments})
    except ValidationError as exc:
        raise DecodeError(f"Payload MMS inválido: {exc.error_count()} error(es)") from exc


def extract_inbound_message(body: bytes) -> InboundMessage:
    """Decodifica el cuerpo crudo del webhook en un mensaje estructurado."""
    message = extract_message(parse_form(body))
    logger.debug(
        "sms.payload_extracted",
        extra={
            "message_sid": message.message_sid,
            "num_media": message.num_media,
            "media_urls": message.media_urls,
        },
    )
    return message
