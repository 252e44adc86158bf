"""Endpoints del canal SMS/MMS (Twilio)."""

from fastapi import APIRouter, Depends, Request, Response
from twilio.twiml.messaging_response import MessagingResponse

from .deps import get_pipeline
from .service import IngestionPipeline

router = APIRouter(tags=["sms"])


def render_twiml(message: str) -> str:
    """Respuesta TwiML con un único `<Message>` de vuelta al remitente."""
    response = MessagingResponse()
    response.message(message)
    return str(response)


@router.post("/sms", summary="Webhook de recepción MMS")
async def sms_webhook(
    request: Request,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> Response:
    """Copia las fotos del MMS al bucket de la galería.

    Responde 200 aun cuando el remitente no está autorizado o no hay media,
    para que Twilio no reintente la entrega; sólo las fallas de
    decodificación, descarga o escritura devuelven 500.
    """
    payload = await request.body()
    result = await pipeline.process(payload)
    if not result.ok:
        return Response(content=result.message, status_code=result.status_code, media_type="text/plain")
    return Response(
        content=render_twiml(result.message),
        status_code=result.status_code,
        media_type="application/xml",
    )
