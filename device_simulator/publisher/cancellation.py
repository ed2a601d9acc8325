"""Señal de cancelación cooperativa para el apagado del simulador."""

from __future__ import annotations

import logging
import signal
import threading
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CancellationToken:
    """Token de cancelación compartido entre el controlador y el scheduler.

    Cancelar solo detiene la programación de trabajo nuevo; los ciclos ya
    en curso terminan (o fallan) por su cuenta.
    """

    def __init__(self):
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "requested") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Bloquea hasta la cancelación. True si fue cancelado."""
        return self._event.wait(timeout)

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason


def install_signal_handlers(
    token: CancellationToken,
    signals: Iterable[signal.Signals] = SHUTDOWN_SIGNALS,
) -> None:
    """SIGINT (Ctrl+C) y SIGTERM (apagado del host) cancelan el token.

    Debe llamarse desde el thread principal.
    """

    def _handler(signum, frame):
        name = signal.Signals(signum).name
        logger.info("[SHUTDOWN] Received %s, initiating shutdown...", name)
        token.cancel(reason=name)

    for sig in signals:
        signal.signal(sig, _handler)
