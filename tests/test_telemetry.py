"""Tests del generador de lecturas y de los modelos de dominio.

Ejecutar:
    pytest tests/test_telemetry.py -v
"""

import json
import random
import threading

import pytest
from pydantic import ValidationError

from device_simulator.core.domain import (
    CONTENT_ENCODING_UTF8,
    CONTENT_TYPE_JSON,
    HUMIDITY_MAX,
    TEMPERATURE_MAX,
    OutboundMessage,
    Reading,
)
from device_simulator.telemetry.generator import TelemetryGenerator


# =============================================================================
# GENERADOR
# =============================================================================

class TestTelemetryGenerator:
    """Rangos y determinismo del generador."""

    def test_readings_within_range(self):
        generator = TelemetryGenerator.seeded(1234)

        for _ in range(5000):
            reading = generator.generate()
            assert 0.0 <= reading.temperature < TEMPERATURE_MAX
            assert 0.0 <= reading.humidity < HUMIDITY_MAX

    def test_same_seed_same_sequence(self):
        a = TelemetryGenerator.seeded(42)
        b = TelemetryGenerator.seeded(42)

        assert [a.generate() for _ in range(10)] == [b.generate() for _ in range(10)]

    def test_uses_injected_rng(self):
        class ExtremeRandom(random.Random):
            def random(self):
                return 0.999999999

        reading = TelemetryGenerator(ExtremeRandom()).generate()

        assert reading.temperature < TEMPERATURE_MAX
        assert reading.humidity < HUMIDITY_MAX

    def test_zero_is_valid(self):
        class ZeroRandom(random.Random):
            def random(self):
                return 0.0

        reading = TelemetryGenerator(ZeroRandom()).generate()

        assert reading.temperature == 0.0
        assert reading.humidity == 0.0

    def test_concurrent_generation(self):
        """Varios threads comparten el generador sin errores."""
        generator = TelemetryGenerator.seeded(7)
        readings = []
        lock = threading.Lock()

        def worker():
            for _ in range(200):
                r = generator.generate()
                with lock:
                    readings.append(r)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(readings) == 1600
        assert all(0.0 <= r.temperature < TEMPERATURE_MAX for r in readings)


# =============================================================================
# MODELOS
# =============================================================================

class TestReading:
    """Validación y serialización de Reading."""

    def test_serializes_with_wire_names(self):
        reading = Reading(temperature=21.5, humidity=40.25)

        assert json.loads(reading.to_json()) == {"Temperature": 21.5, "Humidity": 40.25}

    def test_accepts_wire_names(self):
        reading = Reading(Temperature=10.0, Humidity=20.0)
        assert reading.temperature == 10.0

    @pytest.mark.parametrize(
        "temperature,humidity",
        [(40.0, 50.0), (-0.1, 50.0), (20.0, 100.0), (20.0, -1.0), (float("nan"), 1.0)],
    )
    def test_rejects_out_of_range(self, temperature, humidity):
        with pytest.raises(ValidationError):
            Reading(temperature=temperature, humidity=humidity)

    def test_is_frozen(self):
        reading = Reading(temperature=1.0, humidity=2.0)
        with pytest.raises(ValidationError):
            reading.temperature = 3.0


class TestOutboundMessage:
    """Construcción del mensaje saliente."""

    def test_from_reading(self):
        reading = Reading(temperature=21.5, humidity=40.25)

        message = OutboundMessage.from_reading(reading)

        assert json.loads(message.body) == {"Temperature": 21.5, "Humidity": 40.25}
        assert message.body_text == reading.to_json()
        assert message.content_type == CONTENT_TYPE_JSON
        assert message.content_encoding == CONTENT_ENCODING_UTF8
        assert message.message_id

    def test_explicit_message_id(self):
        reading = Reading(temperature=1.0, humidity=2.0)
        message = OutboundMessage.from_reading(reading, message_id="abc")
        assert message.message_id == "abc"

    def test_ids_are_unique(self):
        generator = TelemetryGenerator.seeded(3)

        ids = {OutboundMessage.from_reading(generator.generate()).message_id for _ in range(2000)}

        assert len(ids) == 2000
