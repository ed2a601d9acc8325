"""CLI entry point for the device simulator."""

from __future__ import annotations

import argparse
import logging
import os
from typing import List, Optional

from .common.config import get_settings, validate_config
from .errors import ConfigurationError
from .metrics import start_metrics_server
from .publisher import (
    EXIT_CONFIGURATION_ERROR,
    CancellationToken,
    LifecycleController,
    install_signal_handlers,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="IoT Hub device simulation app.")
    p.add_argument(
        "-c", "--connectionString", "--connection-string",
        dest="connection_string",
        help="Connection string of IoT Hub device.",
    )
    p.add_argument(
        "-s", "--sendInterval", "--send-interval",
        dest="send_interval_ms", type=int,
        help="Telemetry send interval in milliseconds (minimum 1000, default 5000).",
    )
    p.add_argument(
        "-l", "--logging",
        dest="logging", action="store_true", default=None,
        help="Output a log line per sent message.",
    )
    p.add_argument(
        "--workers", dest="num_workers", type=int,
        help="Max publish cycles running at once; extra ticks are dropped (default 4).",
    )
    p.add_argument(
        "--drain-timeout", dest="drain_timeout", type=float,
        help="Seconds to wait for in-flight cycles on shutdown (default 10).",
    )
    p.add_argument(
        "--metrics-port", dest="metrics_port", type=int,
        help="Port for the Prometheus /metrics endpoint (0 disables it).",
    )
    return p


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    args = build_parser().parse_args(argv)

    try:
        cfg = validate_config(get_settings(overrides=vars(args)))
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIGURATION_ERROR

    logger.info("Device simulator started")
    logger.info(
        "Config: interval=%dms, logging=%s, workers=%d, drain_timeout=%.1fs",
        cfg.send_interval_ms, cfg.logging, cfg.num_workers, cfg.drain_timeout,
    )

    if cfg.metrics_port:
        start_metrics_server(cfg.metrics_port)

    token = CancellationToken()
    install_signal_handlers(token)
    return LifecycleController(cfg, cancellation=token).run()


if __name__ == "__main__":
    raise SystemExit(main())
