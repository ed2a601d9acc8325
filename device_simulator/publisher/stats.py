"""Statistics for the publish loop."""

from __future__ import annotations

import threading
import time

from device_simulator.metrics import INFLIGHT_CYCLES, MESSAGES_TOTAL, TICKS_DROPPED, TICKS_TOTAL


class PublisherStats:
    """Estadísticas del publicador (thread-safe)."""

    def __init__(self):
        self._lock = threading.Lock()
        self.ticks = 0
        self.sent = 0
        self.failed = 0
        self.in_flight = 0
        self.cancelled = 0
        self.abandoned = 0
        self.dropped = 0
        self.last_sent_at: float = 0

    def record_tick(self) -> None:
        with self._lock:
            self.ticks += 1
            self.in_flight += 1
        TICKS_TOTAL.inc()
        INFLIGHT_CYCLES.inc()

    def record_cycle_done(self) -> None:
        with self._lock:
            self.in_flight -= 1
        INFLIGHT_CYCLES.dec()

    def record_sent(self) -> None:
        with self._lock:
            self.sent += 1
            self.last_sent_at = time.time()
        MESSAGES_TOTAL.labels(status='sent').inc()

    def record_failed(self) -> None:
        with self._lock:
            self.failed += 1
        MESSAGES_TOTAL.labels(status='failed').inc()

    def record_cancelled(self) -> None:
        with self._lock:
            self.cancelled += 1

    def record_abandoned(self, count: int) -> None:
        with self._lock:
            self.abandoned += count

    def record_dropped(self) -> None:
        with self._lock:
            self.dropped += 1
        TICKS_DROPPED.inc()

    def __str__(self) -> str:
        return (
            f"Stats: ticks={self.ticks} sent={self.sent} failed={self.failed} "
            f"in_flight={self.in_flight} cancelled={self.cancelled} abandoned={self.abandoned} "
            f"dropped={self.dropped}"
        )

    def to_dict(self) -> dict:
        """Convert stats to dictionary."""
        with self._lock:
            return {
                "ticks": self.ticks,
                "sent": self.sent,
                "failed": self.failed,
                "in_flight": self.in_flight,
                "cancelled": self.cancelled,
                "abandoned": self.abandoned,
                "dropped": self.dropped,
                "last_sent_at": self.last_sent_at,
            }
