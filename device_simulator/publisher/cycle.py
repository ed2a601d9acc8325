"""Ciclo de publicación: generar → serializar → enviar.

GARANTÍA: run_once nunca propaga excepciones. El fallo de un ciclo es
invisible para el scheduler y para los demás ciclos.
"""

from __future__ import annotations

import logging
from typing import Optional

from device_simulator.core.domain.message import OutboundMessage, SendAck
from device_simulator.core.transport.base import DeviceTransport
from device_simulator.errors import SendError
from device_simulator.telemetry.generator import TelemetryGenerator

from .stats import PublisherStats

logger = logging.getLogger(__name__)


class PublishCycle:
    """Unidad de trabajo ejecutada una vez por tick.

    Uso:
        cycle = PublishCycle(TelemetryGenerator(), log_messages=True)
        cycle.run_once(transport)
    """

    def __init__(
        self,
        generator: TelemetryGenerator,
        log_messages: bool = False,
        stats: Optional[PublisherStats] = None,
    ):
        self._generator = generator
        self._log_messages = log_messages
        self._stats = stats or PublisherStats()

    def run_once(self, transport: DeviceTransport) -> Optional[SendAck]:
        """Genera una lectura y la envía.

        Returns:
            SendAck si el envío se confirmó, None si falló
        """
        try:
            reading = self._generator.generate()
            message = OutboundMessage.from_reading(reading)
        except Exception as e:
            self._stats.record_failed()
            logger.exception("[PUBLISH] Telemetry build error: %s", e)
            return None

        if self._log_messages:
            logger.info("body:%s, messageId:%s", message.body_text, message.message_id)

        try:
            ack = transport.send(message)
        except SendError as e:
            self._stats.record_failed()
            logger.error("[PUBLISH] Telemetry send error: messageId=%s err=%s", message.message_id, e)
            return None
        except Exception as e:
            self._stats.record_failed()
            logger.exception(
                "[PUBLISH] Unexpected send error: messageId=%s err=%s", message.message_id, e,
            )
            return None

        self._stats.record_sent()
        logger.debug("[PUBLISH] Sent messageId=%s", message.message_id)
        return ack

    @property
    def stats(self) -> PublisherStats:
        return self._stats
