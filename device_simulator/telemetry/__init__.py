from .generator import TelemetryGenerator

__all__ = ["TelemetryGenerator"]
