"""Escritura de fotos en el bucket destino (S3 o compatible) vía boto3."""

from __future__ import annotations

import asyncio
import logging
import string
from typing import Any, Protocol
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from photo_uploader.core.logging import get_logger, log_event

logger = get_logger(__name__)

PHOTO_PREFIX = "photos/"
PUBLIC_READ = "public-read"


class StoreWriteError(RuntimeError):
    """Errores de escritura en el almacenamiento de objetos."""


def photo_key(object_key: str) -> str:
    """Key destino de una foto; depende sólo del key de origen."""
    return f"{PHOTO_PREFIX}{object_key}"


def metadata_value(text: str) -> str:
    """Los headers `x-amz-meta-*` sólo admiten ASCII imprimible; lo demás se codifica con `%XX`."""
    if text.isascii() and text.isprintable():
        return text
    return quote(text, safe=string.punctuation.replace("%", "") + " ")


class PhotoStore(Protocol):
    async def put_photo(
        self, *, key: str, data: bytes, content_type: str, caption: str
    ) -> None: ...


class S3PhotoStore:
    """Guarda fotos públicas con su caption como metadata del objeto."""

    def __init__(
        self,
        bucket: str,
        *,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.bucket = bucket
        # Credenciales desde la cadena estándar de boto3 (env, perfil, rol).
        self._client = client or boto3.client("s3", region_name=region, endpoint_url=endpoint_url)

    async def put_photo(self, *, key: str, data: bytes, content_type: str, caption: str) -> None:
        """Sube `data` a `key` con ACL pública; un key repetido sobrescribe el objeto."""
        try:
            result = await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ACL=PUBLIC_READ,
                ContentType=content_type,
                Metadata={"caption": metadata_value(caption)},
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            log_event(
                logger,
                "storage.write_failed",
                level=logging.ERROR,
                bucket=self.bucket,
                key=key,
                code=code,
                error=str(exc),
            )
            raise StoreWriteError(f"S3 rechazó la escritura de {key} (code={code}): {exc}") from exc
        except BotoCoreError as exc:
            log_event(
                logger,
                "storage.write_failed",
                level=logging.ERROR,
                bucket=self.bucket,
                key=key,
                code=type(exc).__name__,
                error=str(exc),
            )
            raise StoreWriteError(f"Error de conexión con S3 al escribir {key}: {exc}") from exc

        log_event(
            logger,
            "storage.photo_written",
            bucket=self.bucket,
            key=key,
            content_type=content_type,
            size_bytes=len(data),
            etag=result.get("ETag"),
        )
