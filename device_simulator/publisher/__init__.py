"""Publish loop del simulador.

Estructura modular:
- cycle.py: un ciclo generar → serializar → enviar, aislado de fallos
- scheduler.py: timer + thread pool que dispara un ciclo por tick
- cancellation.py: token de cancelación y señales de apagado
- lifecycle.py: máquina de estados connect → run → drain → stop
- stats.py: contadores del publicador
"""

from .cancellation import CancellationToken, install_signal_handlers
from .cycle import PublishCycle
from .lifecycle import (
    EXIT_CONFIGURATION_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_OK,
    LifecycleController,
    SimulatorState,
)
from .scheduler import TickScheduler
from .stats import PublisherStats

__all__ = [
    "CancellationToken",
    "install_signal_handlers",
    "PublishCycle",
    "EXIT_CONFIGURATION_ERROR",
    "EXIT_CONNECTION_ERROR",
    "EXIT_OK",
    "LifecycleController",
    "SimulatorState",
    "TickScheduler",
    "PublisherStats",
]
