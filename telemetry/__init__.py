"""
Telemetry module for structured logging.

Provides JSONFormatter for JSON log lines and TelemetryService, which
installs it on the root logger.
"""

from telemetry.service import (
    JSONFormatter,
    TelemetryService,
    get_telemetry_service,
    initialize_telemetry,
)

__all__ = [
    "JSONFormatter",
    "TelemetryService",
    "get_telemetry_service",
    "initialize_telemetry",
]
