"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from journeykit.shared.telemetry.logging import get_logger, setup_logging
from journeykit.shared.telemetry.telemetry import TelemetryConfig, setup_from_settings
from journeykit.shared.telemetry.tracing import add_span_attributes, traced

__all__ = [
    "setup_logging",
    "get_logger",
    "TelemetryConfig",
    "setup_from_settings",
    "traced",
    "add_span_attributes",
]
