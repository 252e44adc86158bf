"""Endpoint de salud mínimo para validaciones rápidas."""
from fastapi import APIRouter, Request

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Estado del servicio")
def healthcheck(request: Request) -> dict[str, str | int]:
    """Indica que la API está viva y cuántas regeneraciones siguen en curso."""
    rebuild = getattr(request.app.state, "rebuild_trigger", None)
    return {"status": "ok", "pending_rebuilds": rebuild.pending if rebuild is not None else 0}
