"""Mensaje saliente hacia el endpoint de ingesta."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional

from .reading import Reading

CONTENT_TYPE_JSON = "application/json"
CONTENT_ENCODING_UTF8 = "utf-8"


def new_message_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class OutboundMessage:
    """Lectura serializada + propiedades de sistema del mensaje.

    Se crea una por tick, la posee el ciclo que la creó y se descarta
    después del intento de envío.
    """
    body: bytes
    message_id: str = field(default_factory=new_message_id)
    content_type: str = CONTENT_TYPE_JSON
    content_encoding: str = CONTENT_ENCODING_UTF8

    @classmethod
    def from_reading(
        cls,
        reading: Reading,
        message_id: Optional[str] = None,
    ) -> "OutboundMessage":
        body = reading.to_json().encode(CONTENT_ENCODING_UTF8)
        return cls(body=body, message_id=message_id or new_message_id())

    @property
    def body_text(self) -> str:
        return self.body.decode(self.content_encoding)


@dataclass(frozen=True)
class SendAck:
    """Confirmación de envío devuelta por el transporte."""
    message_id: str
    mid: Optional[int] = None
