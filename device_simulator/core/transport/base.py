"""DeviceTransport - Interface base del conector hacia el endpoint de ingesta.

Define el contrato que usa el ciclo de publicación, independiente del
protocolo concreto (MQTT hacia IoT Hub, fakes en tests, etc.).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from ..domain.message import OutboundMessage, SendAck


class DeviceTransport(ABC):
    """Interface común para los transportes del simulador.

    Ciclo de vida: connect() una vez → send() N veces (posiblemente en
    paralelo desde varios workers) → close() una vez.
    """

    @abstractmethod
    def connect(self) -> None:
        """Abre la sesión con el endpoint.

        Raises:
            HubConnectionError: credencial malformada o endpoint inalcanzable
        """
        pass

    @abstractmethod
    def send(self, message: OutboundMessage) -> SendAck:
        """Envía un mensaje y espera la confirmación.

        Debe ser seguro llamarlo desde varios threads a la vez.

        Raises:
            SendError: si el envío falla o no se confirma a tiempo
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Cierra la sesión. Idempotente y seguro tras fallos previos."""
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @property
    @abstractmethod
    def transport_name(self) -> str:
        """Nombre del transporte (mqtt, fake...)."""
        pass

    @property
    def stats(self) -> Dict[str, Any]:
        """Estadísticas del transporte."""
        return {}
