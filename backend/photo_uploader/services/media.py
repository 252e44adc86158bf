"""Resolución y descarga de media alojada por el proveedor de MMS.

Twilio expone cada adjunto en una URL transitoria que responde con una
redirección hacia el objeto real en S3. `MediaLocator` intercepta esa primera
redirección (sin seguirla) y deriva bucket/key del path destino; `MediaFetcher`
descarga los bytes desde la ubicación resuelta.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from photo_uploader.core.logging import get_logger, log_event

logger = get_logger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})
DEFAULT_EXTERNAL_PREFIX = "s3-external-"


class LocateError(RuntimeError):
    """No fue posible determinar la ubicación definitiva de un adjunto."""


class LocationNotFound(LocateError):
    """El host de media no respondió con una redirección."""


class RedirectRejected(LocateError):
    """La redirección apunta a un host no confiable como fuente de key."""


class UnexpectedLocationShape(LocateError):
    """El path de la redirección no tiene la forma `/<bucket>/<key>`."""


class FetchError(RuntimeError):
    """Falla de red o de lectura al descargar un adjunto."""


@dataclass(frozen=True, slots=True)
class ResolvedLocation:
    """Coordenada definitiva de un adjunto dentro del almacenamiento del proveedor."""

    hostname: str
    bucket: str
    key: str
    full_key: str


def parse_location(
    url: httpx.URL, *, external_prefix: str = DEFAULT_EXTERNAL_PREFIX
) -> ResolvedLocation:
    """Deriva bucket y key desde la URL destino de una redirección.

    `https://host/bucketA/a/b/c.jpg` -> bucket `bucketA`, key `a/b/c.jpg`.
    """
    if external_prefix and url.host.startswith(external_prefix):
        raise RedirectRejected(f"Redirección a host externo no permitida: {url.host}")

    path = url.path
    segments = path.split("/", 2)
    if len(segments) < 3 or segments[0] != "":
        raise UnexpectedLocationShape(f"Path de media inesperado: {path!r}")
    _, bucket, key = segments
    if not bucket or not key or key.endswith("/"):
        raise UnexpectedLocationShape(f"Path de media sin bucket/key: {path!r}")

    # la URL de descarga conserva el path codificado; bucket y key van decodificados
    netloc = url.netloc.decode("ascii")
    raw_path = url.raw_path.decode("ascii").split("?", 1)[0]
    return ResolvedLocation(
        hostname=f"{url.scheme}://{netloc}{raw_path}",
        bucket=bucket,
        key=key,
        full_key=path,
    )


class MediaLocator:
    """Resuelve la URL transitoria de un adjunto a su ubicación en S3."""

    def __init__(
        self,
        *,
        external_prefix: str = DEFAULT_EXTERNAL_PREFIX,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._external_prefix = external_prefix
        self._timeout = timeout
        self._transport = transport

    async def locate(self, media_url: str) -> ResolvedLocation:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=False,
                transport=self._transport,
            ) as client:
                response = await client.get(media_url)
        except httpx.HTTPError as exc:
            raise LocateError(f"Error de red al resolver {media_url}: {exc}") from exc

        location = response.headers.get("location")
        if response.status_code not in REDIRECT_STATUSES or not location:
            raise LocationNotFound(
                f"No se encontró la ubicación del archivo (status={response.status_code})"
            )

        target = response.url.join(location)
        log_event(logger, "media.redirected", target=str(target), status=response.status_code)
        resolved = parse_location(target, external_prefix=self._external_prefix)
        log_event(
            logger,
            "media.located",
            media_host=resolved.hostname,
            bucket=resolved.bucket,
            key=resolved.key,
            full_key=resolved.full_key,
        )
        return resolved


class MediaFetcher:
    """Descarga completa en memoria; los adjuntos MMS son pequeños."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def fetch(self, url: str) -> bytes:
        try:
            # sólo el locator intercepta redirecciones; el almacenamiento puede redirigir (p. ej. región)
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                data = response.content
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"Error leyendo archivo desde {url}: status={exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Error leyendo archivo desde {url}: {exc}") from exc

        log_event(logger, "media.fetched", url=url, size_bytes=len(data))
        return data
