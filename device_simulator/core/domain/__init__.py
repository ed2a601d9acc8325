"""Modelos de dominio del simulador."""

from .message import (
    CONTENT_ENCODING_UTF8,
    CONTENT_TYPE_JSON,
    OutboundMessage,
    SendAck,
    new_message_id,
)
from .reading import HUMIDITY_MAX, TEMPERATURE_MAX, Reading

__all__ = [
    "CONTENT_ENCODING_UTF8",
    "CONTENT_TYPE_JSON",
    "HUMIDITY_MAX",
    "TEMPERATURE_MAX",
    "OutboundMessage",
    "Reading",
    "SendAck",
    "new_message_id",
]
