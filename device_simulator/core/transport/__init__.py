"""Transportes hacia el endpoint de ingesta.

Estructura:
- base.py: contrato DeviceTransport
- connection_string.py: parsing de credenciales y SAS tokens
- mqtt_client.py: conector IoT Hub sobre paho-mqtt
"""

from .base import DeviceTransport
from .connection_string import (
    DeviceConnectionString,
    generate_sas_token,
    parse_connection_string,
)
from .mqtt_client import IoTHubMQTTClient

__all__ = [
    "DeviceConnectionString",
    "DeviceTransport",
    "IoTHubMQTTClient",
    "generate_sas_token",
    "parse_connection_string",
]
