"""Modelo de dominio para lecturas simuladas."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator

TEMPERATURE_MAX = 40.0
HUMIDITY_MAX = 100.0


class Reading(BaseModel):
    """Lectura simulada de temperatura y humedad.

    Valor efímero: vive solo dentro de un tick y no tiene identidad propia
    fuera del mensaje que la transporta.

    Formato en el cable:
    {
        "Temperature": 23.4,
        "Humidity": 56.7
    }
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    temperature: float = Field(..., alias="Temperature", ge=0.0, lt=TEMPERATURE_MAX)
    humidity: float = Field(..., alias="Humidity", ge=0.0, lt=HUMIDITY_MAX)

    @field_validator("temperature", "humidity")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if math.isnan(v) or math.isinf(v):
            raise ValueError("Value must be finite")
        return v

    def to_json(self) -> str:
        """Serializa con los nombres de campo del payload."""
        return self.model_dump_json(by_alias=True)
