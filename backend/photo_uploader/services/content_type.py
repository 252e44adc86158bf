"""Detección de Content-Type a partir de los primeros bytes del archivo."""

from __future__ import annotations

SNIFF_LENGTH = 512
DEFAULT_BINARY = "application/octet-stream"
DEFAULT_TEXT = "text/plain; charset=utf-8"

# (firma, máscara opcional, tipo). La máscara se aplica byte a byte al encabezado.
_SIGNATURES: list[tuple[bytes, bytes | None, str]] = [
    (b"\xff\xd8\xff", None, "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", None, "image/png"),
    (b"GIF87a", None, "image/gif"),
    (b"GIF89a", None, "image/gif"),
    (b"RIFF\x00\x00\x00\x00WEBPVP", b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff\xff\xff", "image/webp"),
    (b"RIFF\x00\x00\x00\x00WAVE", b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff", "audio/wave"),
    (b"BM", None, "image/bmp"),
    (b"\x00\x00\x01\x00", None, "image/x-icon"),
    (b"\x00\x00\x02\x00", None, "image/x-icon"),
    (b"II*\x00", None, "image/tiff"),
    (b"MM\x00*", None, "image/tiff"),
    (b"%PDF-", None, "application/pdf"),
    (b"OggS\x00", None, "application/ogg"),
    (b"ID3", None, "audio/mpeg"),
    (b"PK\x03\x04", None, "application/zip"),
    (b"\x1f\x8b\x08", None, "application/x-gzip"),
]

# bytes de control que delatan contenido binario (TAB, LF, FF, CR y ESC no cuentan)
_BINARY_CONTROL = (
    frozenset(range(0x00, 0x09))
    | {0x0B, 0x0E, 0x0F}
    | frozenset(range(0x10, 0x1B))
    | frozenset(range(0x1C, 0x20))
)


def _matches(head: bytes, signature: bytes, mask: bytes | None) -> bool:
    if len(head) < len(signature):
        return False
    if mask is None:
        return head.startswith(signature)
    return all((head[i] & mask[i]) == signature[i] for i in range(len(signature)))


def _is_mp4(head: bytes) -> bool:
    # caja `ftyp`: tamaño big-endian de 4 bytes seguido de la marca
    if len(head) < 12:
        return False
    box_size = int.from_bytes(head[:4], "big")
    if box_size % 4 != 0 or len(head) < box_size or head[4:8] != b"ftyp":
        return False
    for start in range(8, box_size, 4):
        if start == 12:
            continue  # versión menor
        if head[start : start + 3] == b"mp4":
            return True
    return False


def _is_3gpp(head: bytes) -> bool:
    return len(head) >= 11 and head[4:8] == b"ftyp" and head[8:11] == b"3gp"


def sniff_content_type(data: bytes) -> str:
    """Devuelve el MIME inferido desde la firma de `data` (máx. 512 bytes).

    Nunca falla: si nada coincide se reporta texto plano o binario genérico.
    """
    head = data[:SNIFF_LENGTH]
    for signature, mask, mime_type in _SIGNATURES:
        if _matches(head, signature, mask):
            return mime_type
    if _is_3gpp(head):
        return "video/3gpp"
    if _is_mp4(head):
        return "video/mp4"
    if head.startswith(b"\xef\xbb\xbf") or not any(byte in _BINARY_CONTROL for byte in head):
        return DEFAULT_TEXT
    return DEFAULT_BINARY
