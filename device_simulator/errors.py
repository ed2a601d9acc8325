"""Taxonomía de errores del simulador.

Tres categorías cerradas para que los llamadores decidan por tipo de fallo
y no inspeccionando texto libre:
- CONFIGURATION: la configuración no es válida, no se intenta conectar
- CONNECTION: no se pudo abrir la sesión con el hub, fatal
- SEND: falló el envío de un mensaje, se loguea y se descarta
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Categorías de error."""
    CONFIGURATION = "configuration"
    CONNECTION = "connection"
    SEND = "send"


class SimulatorError(Exception):
    """Base de todos los errores del simulador."""

    kind: ErrorKind

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class ConfigurationError(SimulatorError):
    """Configuración inválida (credencial vacía, intervalo bajo el mínimo...)."""

    kind = ErrorKind.CONFIGURATION


class HubConnectionError(SimulatorError):
    """No se pudo establecer la sesión con el endpoint de ingesta."""

    kind = ErrorKind.CONNECTION


class SendError(SimulatorError):
    """Fallo al enviar un mensaje de telemetría."""

    kind = ErrorKind.SEND

    def __init__(
        self,
        message: str,
        message_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.message_id = message_id
        super().__init__(message, cause=cause)
