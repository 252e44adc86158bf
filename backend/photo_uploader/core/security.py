"""Autorización de remitentes y helpers para logging seguro."""

from collections.abc import Collection


def is_sender_allowed(sender: str, allow_list: Collection[str]) -> bool:
    """Indica si `sender` está en la lista de remitentes autorizados.

    Comparación exacta: sin normalizar formato, comodines ni prefijos.
    """
    if not sender:
        return False
    return sender in allow_list


def mask_secret(value: str | None) -> str | None:
    """Enmascara secretos (y números telefónicos) para logging seguro."""
    if not value:
        return value
    if len(value) <= 4:
        return "***"
    return f"{value[:2]}***{value[-2:]}"
