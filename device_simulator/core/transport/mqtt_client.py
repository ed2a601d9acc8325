"""Cliente MQTT para envío de telemetría a IoT Hub."""

from __future__ import annotations

import logging
import ssl
import threading
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import paho.mqtt.client as mqtt

from device_simulator.errors import HubConnectionError, SendError
from device_simulator.metrics import TRANSPORT_CONNECTED

from ..domain.message import OutboundMessage, SendAck
from .base import DeviceTransport
from .connection_string import (
    DeviceConnectionString,
    generate_sas_token,
    parse_connection_string,
)

logger = logging.getLogger(__name__)

IOTHUB_MQTT_PORT = 8883
IOTHUB_API_VERSION = "2021-04-12"
TELEMETRY_QOS = 1


class IoTHubMQTTClient(DeviceTransport):
    """Conector de dispositivo hacia IoT Hub sobre MQTT 3.1.1 + TLS.

    Responsabilidades:
    - Parsear la credencial y autenticar con SAS token
    - Mantener una única sesión durante toda la ejecución
    - Publicar telemetría con QoS 1 y esperar el PUBACK
    - Renovar el token en cada desconexión para que el reconnect de paho funcione
    """

    def __init__(
        self,
        connection_string: str,
        connect_timeout: float = 5.0,
        send_timeout: float = 10.0,
        sas_ttl: int = 3600,
        port: int = IOTHUB_MQTT_PORT,
        client_factory: Optional[Callable[..., mqtt.Client]] = None,
    ):
        self._raw_connection_string = connection_string
        self._connect_timeout = connect_timeout
        self._send_timeout = send_timeout
        self._sas_ttl = sas_ttl
        self._port = port
        self._client_factory = client_factory or mqtt.Client

        self._credentials: Optional[DeviceConnectionString] = None
        self._client: Optional[mqtt.Client] = None
        self._connected = False
        self._closed = False
        self._connack = threading.Event()
        self._connack_rc: Any = None
        self._lock = threading.Lock()

        # Stats
        self._published = 0
        self._failed = 0
        self._reconnects = 0
        self._ever_connected = False

    def connect(self) -> None:
        """Conecta al hub y espera el CONNACK."""
        self._credentials = parse_connection_string(self._raw_connection_string)
        creds = self._credentials

        try:
            self._client = self._client_factory(
                client_id=creds.device_id,
                protocol=mqtt.MQTTv311,
                callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            )

            self._client.on_connect = self._on_connect
            self._client.on_disconnect = self._on_disconnect

            self._client.username_pw_set(self._username, self._new_token())
            self._client.tls_set_context(ssl.create_default_context())
            self._client.reconnect_delay_set(min_delay=1, max_delay=60)

            logger.info(
                "[MQTT] Connecting to %s:%d as %s",
                creds.host_name, self._port, creds.device_id,
            )
            self._client.connect(creds.host_name, self._port, keepalive=60)
            self._client.loop_start()
        except (OSError, ValueError) as e:
            self._abort_connect()
            raise HubConnectionError(
                f"Cannot reach {creds.host_name}:{self._port}: {e}", cause=e,
            )

        if not self._connack.wait(timeout=self._connect_timeout):
            self._abort_connect()
            raise HubConnectionError(
                f"Connection timeout after {self._connect_timeout:.1f}s"
            )

        if not self._connected:
            rc = self._connack_rc
            self._abort_connect()
            raise HubConnectionError(f"Connection refused by hub: rc={rc}")

        TRANSPORT_CONNECTED.set(1)
        logger.info("[MQTT] Connected to %s", creds.host_name)

    def send(self, message: OutboundMessage) -> SendAck:
        """Publica un mensaje y espera el PUBACK."""
        client = self._client
        if client is None or self._closed:
            self._record(False)
            raise SendError("Transport is not open", message_id=message.message_id)

        try:
            info = client.publish(
                self._telemetry_topic(message),
                message.body,
                qos=TELEMETRY_QOS,
            )
            info.wait_for_publish(timeout=self._send_timeout)
        except (RuntimeError, ValueError) as e:
            self._record(False)
            raise SendError(
                f"Publish failed: {e}", message_id=message.message_id, cause=e,
            )

        if not info.is_published():
            self._record(False)
            raise SendError(
                f"Publish not acknowledged within {self._send_timeout:.1f}s",
                message_id=message.message_id,
            )

        self._record(True)
        return SendAck(message_id=message.message_id, mid=info.mid)

    def close(self) -> None:
        """Desconecta del hub. Idempotente."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            client = self._client

        if client is not None:
            try:
                client.disconnect()
            except Exception as e:
                logger.warning("[MQTT] Disconnect error: %s", e)
            finally:
                client.loop_stop()

        self._connected = False
        TRANSPORT_CONNECTED.set(0)
        logger.info("[MQTT] Closed. %s", self.stats)

    def _abort_connect(self) -> None:
        if self._client is not None:
            try:
                self._client.loop_stop()
            except Exception as e:
                logger.debug("[MQTT] loop_stop after failed connect: %s", e)
        self._connected = False

    def _telemetry_topic(self, message: OutboundMessage) -> str:
        """Topic de eventos con las propiedades de sistema del mensaje."""
        props = "&".join(
            f"{key}={quote(value, safe='')}"
            for key, value in (
                ("$.mid", message.message_id),
                ("$.ct", message.content_type),
                ("$.ce", message.content_encoding),
            )
        )
        return f"devices/{self._credentials.device_id}/messages/events/{props}"

    @property
    def _username(self) -> str:
        creds = self._credentials
        return f"{creds.host_name}/{creds.device_id}/?api-version={IOTHUB_API_VERSION}"

    def _new_token(self) -> str:
        creds = self._credentials
        return generate_sas_token(creds.resource_uri, creds.shared_access_key, self._sas_ttl)

    def _record(self, ok: bool) -> None:
        with self._lock:
            if ok:
                self._published += 1
            else:
                self._failed += 1

    def _on_connect(self, client, userdata, flags, rc, properties=None):
        """Callback de conexión."""
        self._connack_rc = rc
        if rc == 0:
            self._connected = True
            if self._ever_connected:
                self._reconnects += 1
                logger.info("[MQTT] Reconnected to hub (reconnects=%d)", self._reconnects)
            self._ever_connected = True
            TRANSPORT_CONNECTED.set(1)
        else:
            self._connected = False
            logger.error("[MQTT] Connection failed: rc=%s", rc)
        self._connack.set()

    def _on_disconnect(self, client, userdata, flags, rc, properties=None):
        """Callback de desconexión."""
        self._connected = False
        TRANSPORT_CONNECTED.set(0)
        if self._closed:
            return
        logger.warning("[MQTT] Disconnected (rc=%s)", rc)
        # Token nuevo para el reconnect automático de paho
        client.username_pw_set(self._username, self._new_token())

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def transport_name(self) -> str:
        return "mqtt"

    @property
    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "published": self._published,
                "failed": self._failed,
                "reconnects": self._reconnects,
                "connected": self._connected,
            }
