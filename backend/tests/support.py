"""Dobles de prueba y helpers compartidos por las suites."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from urllib.parse import urlencode

import httpx

from photo_uploader.services.storage import StoreWriteError

ALLOWED_SENDER = "+1555"
MEDIA_BASE = "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages/MM123/Media"
S3_BASE = "https://s3.amazonaws.com/bucketX"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 16


@dataclass
class StoredPhoto:
    key: str
    data: bytes
    content_type: str
    caption: str


@dataclass
class StubStore:
    """Almacén en memoria; `fail_on_call` hace fallar la n-ésima escritura (base 1)."""

    fail_on_call: int | None = None
    calls: int = 0
    writes: list[StoredPhoto] = field(default_factory=list)
    objects: dict[str, StoredPhoto] = field(default_factory=dict)

    async def put_photo(self, *, key: str, data: bytes, content_type: str, caption: str) -> None:
        self.calls += 1
        if self.fail_on_call == self.calls:
            raise StoreWriteError(f"S3 rechazó la escritura de {key}")
        photo = StoredPhoto(key=key, data=data, content_type=content_type, caption=caption)
        self.writes.append(photo)
        self.objects[key] = photo


@dataclass
class StubRebuild:
    fired: int = 0

    def fire(self) -> None:
        self.fired += 1


class MediaHost:
    """Simula el host de media de Twilio (redirecciones) y el bucket de origen."""

    def __init__(self) -> None:
        self.redirects: dict[str, str] = {}
        self.objects: dict[str, bytes] = {}
        self.broken: set[str] = set()
        self.requests: list[str] = []

    def add_media(self, name: str, path: str, data: bytes = PNG_BYTES, *, base: str = S3_BASE) -> str:
        media_url = f"{MEDIA_BASE}/{name}"
        target = f"{base}/{path}"
        self.redirects[media_url] = target
        self.objects[target] = data
        return media_url

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url in self.broken:
            raise httpx.ConnectError("connection reset", request=request)
        if url in self.redirects:
            return httpx.Response(302, headers={"Location": self.redirects[url]})
        if url in self.objects:
            return httpx.Response(200, content=self.objects[url])
        return httpx.Response(404, text="Not Found")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def build_form(
    *,
    sender: str = ALLOWED_SENDER,
    body: str = "Hello",
    media_urls: Sequence[str] = (),
    num_media: int | None = None,
) -> bytes:
    fields: list[tuple[str, str]] = [
        ("ToCountry", "US"),
        ("SmsMessageSid", "MM123"),
        ("NumMedia", str(len(media_urls) if num_media is None else num_media)),
        ("Body", body),
        ("To", "+17205550000"),
        ("NumSegments", "1"),
        ("MessageSid", "MM123"),
        ("AccountSid", "AC123"),
        ("From", sender),
        ("ApiVersion", "2010-04-01"),
    ]
    for index, url in enumerate(media_urls):
        fields.append((f"MediaContentType{index}", "image/png"))
        fields.append((f"MediaUrl{index}", url))
    return urlencode(fields).encode()
