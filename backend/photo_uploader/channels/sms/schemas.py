"""Esquemas Pydantic para webhooks MMS de Twilio."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MediaAttachment(BaseModel):
    """Referencia transitoria a un adjunto (`MediaUrl<N>`)."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    url: str
    content_type: str | None = None

    @property
    def field_name(self) -> str:
        return f"MediaUrl{self.index}"


class InboundMessage(BaseModel):
    """Mensaje entrante ya decodificado desde el formulario del webhook."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    from_: str = Field(default="", alias="From")
    to: str = Field(default="", alias="To")
    body: str = Field(default="", alias="Body")
    num_media: int = Field(default=0, ge=0, alias="NumMedia")
    num_segments: int = Field(default=0, ge=0, alias="NumSegments")
    message_sid: str | None = Field(default=None, alias="MessageSid")
    sms_message_sid: str | None = Field(default=None, alias="SmsMessageSid")
    account_sid: str | None = Field(default=None, alias="AccountSid")
    api_version: str | None = Field(default=None, alias="ApiVersion")
    from_city: str | None = Field(default=None, alias="FromCity")
    from_state: str | None = Field(default=None, alias="FromState")
    from_zip: str | None = Field(default=None, alias="FromZip")
    from_country: str | None = Field(default=None, alias="FromCountry")
    to_city: str | None = Field(default=None, alias="ToCity")
    to_state: str | None = Field(default=None, alias="ToState")
    to_zip: str | None = Field(default=None, alias="ToZip")
    to_country: str | None = Field(default=None, alias="ToCountry")
    attachments: tuple[MediaAttachment, ...] = ()

    @property
    def media_urls(self) -> dict[str, str]:
        """Vista `MediaUrl<N>` -> URL, útil para logging."""
        return {item.field_name: item.url for item in self.attachments}

    def attachment_at(self, index: int) -> MediaAttachment | None:
        for item in self.attachments:
            if item.index == index:
                return item
        return None


class IngestionOutcome(str, Enum):
    DENIED = "denied"
    NO_MEDIA = "no_media"
    STORED = "stored"
    FAILED = "failed"
