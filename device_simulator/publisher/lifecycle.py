"""Controlador del ciclo de vida del simulador.

Máquina de estados:
    IDLE → CONNECTING → RUNNING → DRAINING → STOPPED
    CONNECTING → STOPPED  (fallo de conexión, exit 1)
    IDLE → STOPPED        (cancelado antes de conectar)

Política de drenaje: al cancelar se detienen los ticks, se espera a los
ciclos en curso hasta `drain_timeout` segundos y recién entonces se cierra
la conexión. Lo que siga corriendo después del timeout queda abandonado.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import List, Optional

from device_simulator.common.config import SimulatorConfig
from device_simulator.core.transport.base import DeviceTransport
from device_simulator.core.transport.mqtt_client import IoTHubMQTTClient
from device_simulator.errors import HubConnectionError
from device_simulator.telemetry.generator import TelemetryGenerator

from .cancellation import CancellationToken
from .cycle import PublishCycle
from .scheduler import TickScheduler
from .stats import PublisherStats

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONNECTION_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2


class SimulatorState(str, Enum):
    """Estados del controlador."""
    IDLE = "idle"
    CONNECTING = "connecting"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


_TRANSITIONS = {
    SimulatorState.IDLE: {SimulatorState.CONNECTING, SimulatorState.STOPPED},
    SimulatorState.CONNECTING: {SimulatorState.RUNNING, SimulatorState.STOPPED},
    SimulatorState.RUNNING: {SimulatorState.DRAINING},
    SimulatorState.DRAINING: {SimulatorState.STOPPED},
    SimulatorState.STOPPED: set(),
}


class LifecycleController:
    """Conecta, publica en cada tick hasta la cancelación y apaga ordenadamente.

    Uso:
        token = CancellationToken()
        install_signal_handlers(token)
        exit_code = LifecycleController(cfg, cancellation=token).run()
    """

    def __init__(
        self,
        config: SimulatorConfig,
        transport: Optional[DeviceTransport] = None,
        generator: Optional[TelemetryGenerator] = None,
        cancellation: Optional[CancellationToken] = None,
        stats: Optional[PublisherStats] = None,
    ):
        self._config = config
        self._transport = transport or IoTHubMQTTClient(
            config.connection_string,
            connect_timeout=config.connect_timeout,
            send_timeout=config.send_timeout,
            sas_ttl=config.sas_ttl,
        )
        self._cancellation = cancellation or CancellationToken()
        self._stats = stats or PublisherStats()
        self._cycle = PublishCycle(
            generator or TelemetryGenerator(),
            log_messages=config.logging,
            stats=self._stats,
        )
        self._scheduler = TickScheduler(
            self._cycle,
            self._transport,
            interval_seconds=config.send_interval_seconds,
            num_workers=config.num_workers,
            stats=self._stats,
        )

        self._state = SimulatorState.IDLE
        self._history: List[SimulatorState] = [SimulatorState.IDLE]
        self._state_lock = threading.Lock()

    def run(self) -> int:
        """Ejecuta el ciclo de vida completo. Devuelve el exit code del proceso."""
        if self._cancellation.is_cancelled:
            logger.info("[LIFECYCLE] Cancelled before connecting")
            self._transition(SimulatorState.STOPPED)
            return EXIT_OK

        self._transition(SimulatorState.CONNECTING)
        try:
            self._transport.connect()
        except HubConnectionError as e:
            logger.error("[LIFECYCLE] Connection error: %s", e)
            self._transport.close()
            self._transition(SimulatorState.STOPPED)
            return EXIT_CONNECTION_ERROR

        self._transition(SimulatorState.RUNNING)
        try:
            self._scheduler.start()
            self._cancellation.wait()
            logger.info(
                "[LIFECYCLE] Cancellation received (%s)", self._cancellation.reason,
            )
        finally:
            self._shutdown()
        return EXIT_OK

    def _shutdown(self) -> None:
        self._transition(SimulatorState.DRAINING)
        try:
            self._scheduler.stop(drain_timeout=self._config.drain_timeout)
        finally:
            self._transport.close()
            self._transition(SimulatorState.STOPPED)
        logger.info("[LIFECYCLE] Stopped. %s", self._stats)

    def _transition(self, new_state: SimulatorState) -> None:
        with self._state_lock:
            if new_state not in _TRANSITIONS[self._state]:
                raise RuntimeError(
                    f"Invalid state transition {self._state.value} -> {new_state.value}"
                )
            logger.info("[LIFECYCLE] %s -> %s", self._state.value, new_state.value)
            self._state = new_state
            self._history.append(new_state)

    @property
    def state(self) -> SimulatorState:
        return self._state

    @property
    def state_history(self) -> List[SimulatorState]:
        with self._state_lock:
            return list(self._history)

    @property
    def stats(self) -> PublisherStats:
        return self._stats

    @property
    def cancellation(self) -> CancellationToken:
        return self._cancellation
