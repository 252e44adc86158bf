"""Disparo asíncrono de la regeneración de la galería estática."""

from __future__ import annotations

import asyncio

import httpx

from photo_uploader.core.logging import get_logger, log_event

logger = get_logger(__name__)

_BODY_PREVIEW = 500


class GalleryRebuildTrigger:
    """Envía un POST vacío al servicio que reconstruye la galería.

    Contrato fire-and-forget: `fire()` agenda una tarea desacoplada y retorna de
    inmediato. Su resultado nunca llega a quien la disparó; las fallas sólo se
    registran en el log.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._timeout = timeout
        self._transport = transport
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def fire(self) -> asyncio.Task[None]:
        """Agenda la regeneración en segundo plano. Requiere un event loop activo."""
        task = asyncio.create_task(self._invoke(), name="gallery-rebuild")
        # el loop sólo guarda referencias débiles a las tareas
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _invoke(self) -> None:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self.url)
        except Exception as exc:  # noqa: BLE001 - ninguna falla debe escapar de la tarea
            logger.warning(
                "gallery.rebuild_failed",
                extra={"url": self.url, "error": str(exc)},
            )
            return

        log_event(
            logger,
            "gallery.rebuild_triggered",
            url=self.url,
            status_code=response.status_code,
            body=response.text[:_BODY_PREVIEW],
        )

    async def aclose(self) -> None:
        """Espera las regeneraciones en curso (se usa al apagar la app)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
