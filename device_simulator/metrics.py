"""Métricas Prometheus del simulador."""

from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge, start_http_server

logger = logging.getLogger(__name__)

TICKS_TOTAL = Counter(
    'device_simulator_ticks_total',
    'Total ticks fired by the publish scheduler',
)
TICKS_DROPPED = Counter(
    'device_simulator_ticks_dropped_total',
    'Ticks dropped because every publish worker was busy',
)
MESSAGES_TOTAL = Counter(
    'device_simulator_messages_total',
    'Total telemetry messages by send result',
    ['status']  # sent, failed
)
INFLIGHT_CYCLES = Gauge(
    'device_simulator_inflight_cycles',
    'Publish cycles currently running or queued',
)
TRANSPORT_CONNECTED = Gauge(
    'device_simulator_connected',
    'Transport connection status',
)


def start_metrics_server(port: int) -> None:
    """Expone /metrics en el puerto dado."""
    start_http_server(port)
    logger.info("[METRICS] Serving Prometheus metrics on :%d", port)
