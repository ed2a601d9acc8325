"""Parsing de connection strings de dispositivo y generación de SAS tokens.

FORMATO:
    HostName=<hub>.azure-devices.net;DeviceId=<device>;SharedAccessKey=<base64>
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import time
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import quote_plus, urlencode

from device_simulator.errors import HubConnectionError

REQUIRED_KEYS = ("HostName", "DeviceId", "SharedAccessKey")


@dataclass(frozen=True)
class DeviceConnectionString:
    host_name: str
    device_id: str
    shared_access_key: str

    @property
    def resource_uri(self) -> str:
        return f"{self.host_name}/devices/{self.device_id}"

    def __repr__(self) -> str:
        # No exponer la clave en logs
        return (
            f"DeviceConnectionString(host_name={self.host_name!r}, "
            f"device_id={self.device_id!r})"
        )


def parse_connection_string(raw: str) -> DeviceConnectionString:
    """Parsea un connection string de dispositivo.

    Raises:
        HubConnectionError: si el connection string está malformado
    """
    if not raw or not raw.strip():
        raise HubConnectionError("Connection string is empty")

    fields: Dict[str, str] = {}
    for segment in raw.strip().strip(";").split(";"):
        key, sep, value = segment.partition("=")
        key = key.strip()
        if not sep or not key:
            raise HubConnectionError(f"Malformed connection string segment: {key or segment!r}")
        fields[key] = value.strip()

    missing = [k for k in REQUIRED_KEYS if not fields.get(k)]
    if missing:
        raise HubConnectionError(
            f"Malformed connection string: missing {', '.join(missing)}"
        )

    key = fields["SharedAccessKey"]
    try:
        base64.b64decode(key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HubConnectionError("SharedAccessKey is not valid base64", cause=e)

    return DeviceConnectionString(
        host_name=fields["HostName"],
        device_id=fields["DeviceId"],
        shared_access_key=key,
    )


def generate_sas_token(
    resource_uri: str,
    key: str,
    ttl_seconds: int,
    now: Optional[float] = None,
) -> str:
    """Genera un SAS token firmado con HMAC-SHA256.

    sig = base64(HMAC-SHA256(b64decode(key), quote_plus(uri) + "\\n" + expiry))
    """
    expiry = int((now if now is not None else time.time()) + ttl_seconds)
    to_sign = f"{quote_plus(resource_uri)}\n{expiry}".encode("utf-8")
    signature = base64.b64encode(
        hmac.new(base64.b64decode(key), to_sign, hashlib.sha256).digest()
    )
    token = {
        "sr": resource_uri,
        "sig": signature.decode("utf-8"),
        "se": str(expiry),
    }
    return "SharedAccessSignature " + urlencode(token)
