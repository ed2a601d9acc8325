"""Generador de lecturas sintéticas."""

from __future__ import annotations

import random
import threading
from typing import Optional

from device_simulator.core.domain.reading import HUMIDITY_MAX, TEMPERATURE_MAX, Reading


class TelemetryGenerator:
    """Produce una lectura independiente por invocación.

    - temperature ~ U[0, 40)
    - humidity ~ U[0, 100)

    El RNG se inyecta (semilla fija en tests) y se protege con un lock
    porque varios ciclos pueden generar en paralelo.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    @classmethod
    def seeded(cls, seed: int) -> "TelemetryGenerator":
        return cls(random.Random(seed))

    def generate(self) -> Reading:
        with self._lock:
            temperature = self._rng.random() * TEMPERATURE_MAX
            humidity = self._rng.random() * HUMIDITY_MAX
        return Reading(temperature=temperature, humidity=humidity)
