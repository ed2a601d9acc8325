"""IoT Hub device simulator.

Conecta con el hub como dispositivo y publica periódicamente lecturas
sintéticas de temperatura y humedad hasta recibir SIGINT/SIGTERM.

Módulos:
- common.config: SimulatorConfig desde env/.env + CLI
- core.domain: Reading, OutboundMessage
- core.transport: conector MQTT hacia IoT Hub
- telemetry: generador de lecturas
- publisher: ciclo, scheduler y controlador de ciclo de vida
- cli: entry point (main)
"""

__version__ = "0.1.0"
