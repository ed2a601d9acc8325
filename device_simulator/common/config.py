from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from device_simulator.errors import ConfigurationError

MIN_SEND_INTERVAL_MS = 1000
DEFAULT_SEND_INTERVAL_MS = 5000
DEFAULT_NUM_WORKERS = 4
DEFAULT_DRAIN_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_SEND_TIMEOUT = 10.0
DEFAULT_SAS_TTL = 3600

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off", "")


def _default_env_file() -> str:
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class SimulatorConfig:
    connection_string: str
    send_interval_ms: int = DEFAULT_SEND_INTERVAL_MS
    logging: bool = False

    num_workers: int = DEFAULT_NUM_WORKERS
    drain_timeout: float = DEFAULT_DRAIN_TIMEOUT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    send_timeout: float = DEFAULT_SEND_TIMEOUT
    sas_ttl: int = DEFAULT_SAS_TTL
    metrics_port: int = 0

    @property
    def send_interval_seconds(self) -> float:
        return self.send_interval_ms / 1000.0


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _parse_number(name: str, raw: str, cast):
    try:
        return cast(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def get_settings(
    overrides: Optional[Mapping[str, object]] = None,
    env_file: Optional[str] = None,
) -> SimulatorConfig:
    """Construye la configuración desde env file + variables de entorno.

    Los valores de `overrides` (típicamente argumentos CLI) tienen prioridad;
    las claves con valor None se ignoran.
    """
    # Cargar env file (si existe) sin pisar variables reales del entorno.
    env_file = env_file or os.getenv("SIMULATOR_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    values = {
        "connection_string": os.getenv("IOTHUB_DEVICE_CONNECTION_STRING", ""),
        "send_interval_ms": _parse_number(
            "SIMULATOR_SEND_INTERVAL_MS",
            os.getenv("SIMULATOR_SEND_INTERVAL_MS", str(DEFAULT_SEND_INTERVAL_MS)),
            int,
        ),
        "logging": _parse_bool("SIMULATOR_LOGGING", os.getenv("SIMULATOR_LOGGING", "false")),
        "num_workers": _parse_number(
            "SIMULATOR_NUM_WORKERS",
            os.getenv("SIMULATOR_NUM_WORKERS", str(DEFAULT_NUM_WORKERS)),
            int,
        ),
        "drain_timeout": _parse_number(
            "SIMULATOR_DRAIN_TIMEOUT",
            os.getenv("SIMULATOR_DRAIN_TIMEOUT", str(DEFAULT_DRAIN_TIMEOUT)),
            float,
        ),
        "connect_timeout": _parse_number(
            "SIMULATOR_CONNECT_TIMEOUT",
            os.getenv("SIMULATOR_CONNECT_TIMEOUT", str(DEFAULT_CONNECT_TIMEOUT)),
            float,
        ),
        "send_timeout": _parse_number(
            "SIMULATOR_SEND_TIMEOUT",
            os.getenv("SIMULATOR_SEND_TIMEOUT", str(DEFAULT_SEND_TIMEOUT)),
            float,
        ),
        "sas_ttl": _parse_number(
            "SIMULATOR_SAS_TTL",
            os.getenv("SIMULATOR_SAS_TTL", str(DEFAULT_SAS_TTL)),
            int,
        ),
        "metrics_port": _parse_number(
            "SIMULATOR_METRICS_PORT",
            os.getenv("SIMULATOR_METRICS_PORT", "0"),
            int,
        ),
    }

    if overrides:
        for key, value in overrides.items():
            if value is not None:
                values[key] = value

    return SimulatorConfig(**values)


def validate_config(cfg: SimulatorConfig) -> SimulatorConfig:
    """Valida la configuración antes de entrar al ciclo de publicación.

    Raises:
        ConfigurationError: si algún valor es inválido
    """
    if not cfg.connection_string or not cfg.connection_string.strip():
        raise ConfigurationError("Connection string must be set")

    if cfg.send_interval_ms < MIN_SEND_INTERVAL_MS:
        raise ConfigurationError(
            f"Send interval is too short: {cfg.send_interval_ms}ms "
            f"(minimum {MIN_SEND_INTERVAL_MS}ms)"
        )

    if cfg.num_workers < 1:
        raise ConfigurationError(f"Workers must be >= 1, got {cfg.num_workers}")

    for name in ("drain_timeout", "connect_timeout", "send_timeout"):
        if getattr(cfg, name) < 0:
            raise ConfigurationError(f"{name} must be >= 0")

    if cfg.sas_ttl <= 0:
        raise ConfigurationError(f"SAS token TTL must be > 0, got {cfg.sas_ttl}")

    if not (0 <= cfg.metrics_port <= 65535):
        raise ConfigurationError(f"Invalid metrics port: {cfg.metrics_port}")

    return cfg
