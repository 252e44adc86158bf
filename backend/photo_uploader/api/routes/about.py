"""Información básica del servicio."""
from fastapi import APIRouter

from photo_uploader.core.config import SERVICE_NAME, VERSION

router = APIRouter(tags=["info"])


@router.get("/about", summary="Versión del servicio")
def about() -> dict[str, str]:
    return {"service": SERVICE_NAME, "version": VERSION}
