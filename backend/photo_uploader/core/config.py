"""Configuración central basada en variables de entorno."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

SERVICE_NAME = "photo-uploader"
VERSION = "0.1.0"


class Settings(BaseSettings):
    """Valores leídos desde `.env` o el entorno al arrancar el proceso.

    `s3_bucket`, `update_api_url` y `allowed_senders` son obligatorios: si falta
    alguno la construcción falla con `ValidationError` y la app no arranca.
    """

    environment: str = "development"
    log_level: str | None = Field(
        default=None,
        description="Nivel de logging global (ej. debug, info, warning). Cuando no se define, usa un valor por ambiente.",
    )
    request_log_level: str = Field(
        default="info",
        description=(
            "Nivel mínimo para registrar solicitudes en middleware. "
            "Valores más altos (warning/error) reducen registros de peticiones exitosas."
        ),
    )
    request_log_skip_prefixes: tuple[str, ...] = Field(
        default=("/health", "/favicon", "/docs", "/openapi"),
        description="Prefijos de ruta para los que no se registrarán eventos de request.started/completed.",
    )
    log_file_path: str | None = None

    s3_bucket: str = Field(
        min_length=1,
        validation_alias=AliasChoices("UPLOADER_S3_BUCKET", "S3_BUCKET"),
        description="Bucket destino donde se guardan las fotos recibidas.",
    )
    update_api_url: str = Field(
        min_length=1,
        validation_alias=AliasChoices("UPLOADER_UPDATE_API_URL", "UPDATE_API_URL"),
        description="Endpoint que regenera la galería estática.",
    )
    allowed_senders: Annotated[frozenset[str], NoDecode] = Field(
        validation_alias=AliasChoices("UPLOADER_ALLOWED_SENDERS", "ALLOWED_SENDERS"),
        description="Números autorizados a publicar fotos (separados por coma o lista JSON).",
    )
    aws_region: str = Field(
        default="us-east-1",
        validation_alias=AliasChoices("UPLOADER_AWS_REGION", "AWS_REGION"),
    )
    s3_endpoint_url: str | None = Field(
        default=None,
        description="Endpoint S3 alterno (MinIO, localstack). `None` usa AWS.",
    )
    external_host_prefix: str = Field(
        default="s3-external-",
        description="Prefijo de host que identifica alias externos no confiables en redirecciones de media.",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout para llamadas salientes al host de media y al endpoint de regeneración.",
    )
    port: int = Field(default=8080, ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="UPLOADER_",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("allowed_senders", mode="before")
    @classmethod
    def _split_senders(cls, value: Any) -> Any:
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                value = json.loads(text)
            else:
                value = [chunk.strip() for chunk in text.split(",")]
        if isinstance(value, (list, tuple, set, frozenset)):
            senders = frozenset(str(item).strip() for item in value if str(item).strip())
            if not senders:
                raise ValueError("allowed_senders no puede estar vacío")
            return senders
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Construye (una sola vez) la configuración del proceso."""
    return Settings()  # type: ignore[call-arg]
