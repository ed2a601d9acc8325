"""Fixtures compartidas por los tests del simulador."""

import threading
import time
from typing import Callable, List, Optional

import pytest

from device_simulator.common.config import SimulatorConfig
from device_simulator.core.domain.message import OutboundMessage, SendAck
from device_simulator.core.transport.base import DeviceTransport
from device_simulator.errors import SendError

TEST_KEY = "c2VjcmV0LWtleS1mb3ItdGVzdHM="  # base64("secret-key-for-tests")
TEST_CONNECTION_STRING = (
    f"HostName=test-hub.azure-devices.net;DeviceId=dev-1;SharedAccessKey={TEST_KEY}"
)

ENV_KEYS = (
    "IOTHUB_DEVICE_CONNECTION_STRING",
    "SIMULATOR_SEND_INTERVAL_MS",
    "SIMULATOR_LOGGING",
    "SIMULATOR_NUM_WORKERS",
    "SIMULATOR_DRAIN_TIMEOUT",
    "SIMULATOR_CONNECT_TIMEOUT",
    "SIMULATOR_SEND_TIMEOUT",
    "SIMULATOR_SAS_TTL",
    "SIMULATOR_METRICS_PORT",
)


class FakeTransport(DeviceTransport):
    """Transporte en memoria para tests.

    - connect_error: excepción a lanzar en connect()
    - fail_sends: todos los send() lanzan SendError
    - send_delay: segundos que tarda cada send()
    - gate: si se pasa, cada send() espera a que el Event se active
    """

    def __init__(
        self,
        connect_error: Optional[Exception] = None,
        fail_sends: bool = False,
        send_delay: float = 0.0,
        gate: Optional[threading.Event] = None,
    ):
        self.connect_error = connect_error
        self.fail_sends = fail_sends
        self.send_delay = send_delay
        self.gate = gate

        self.connect_calls = 0
        self.close_calls = 0
        self.messages: List[OutboundMessage] = []
        self.attempts = 0
        self.completed = 0
        self.active = 0
        self.max_active = 0
        self.closed_while_active = False
        self._connected = False
        self._lock = threading.Lock()

    def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error
        self._connected = True

    def send(self, message: OutboundMessage) -> SendAck:
        with self._lock:
            self.attempts += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.messages.append(message)
        try:
            if self.gate is not None:
                self.gate.wait(timeout=5.0)
            if self.send_delay:
                time.sleep(self.send_delay)
            if self.fail_sends:
                raise SendError("simulated failure", message_id=message.message_id)
            return SendAck(message_id=message.message_id, mid=self.attempts)
        finally:
            with self._lock:
                self.active -= 1
                self.completed += 1

    def close(self) -> None:
        with self._lock:
            self.close_calls += 1
            if self.active:
                self.closed_while_active = True
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def transport_name(self) -> str:
        return "fake"


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Espera activa hasta que predicate() sea True o venza el timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Entorno sin variables del simulador ni .env."""
    for key in ENV_KEYS:
        # setenv + delenv para que monkeypatch limpie también lo que cargue dotenv
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.setenv("SIMULATOR_ENV_FILE", str(tmp_path / "missing.env"))
    return monkeypatch


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def fast_config() -> SimulatorConfig:
    """Config con intervalo corto (la validación de mínimo se hace antes del core)."""
    return SimulatorConfig(
        connection_string=TEST_CONNECTION_STRING,
        send_interval_ms=50,
        logging=True,
        num_workers=4,
        drain_timeout=2.0,
    )
