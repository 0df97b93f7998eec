"""OpenTelemetry setup for the journeykit CLI and library callers.

Spans go to the console by default, or to an OTLP gRPC collector when
``telemetry_exporter="otlp"`` and an endpoint are configured. Once a
provider is installed, httpx (one client span per platform request) and
stdlib logging (trace ids on log records) are instrumented.
"""

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from journeykit.core.config import Settings

logger = logging.getLogger(__name__)


def build_span_exporter(
    exporter_type: str, otlp_endpoint: str | None = None
) -> SpanExporter | None:
    """Return the span exporter for a configured exporter name (None for "none").

    "otlp" without an endpoint and unknown names fall back to the console.
    """
    if exporter_type == "none":
        return None
    if exporter_type == "otlp":
        if otlp_endpoint:
            return OTLPSpanExporter(
                endpoint=otlp_endpoint, insecure=otlp_endpoint.startswith("http://")
            )
        logger.warning("OTLP exporter selected without an endpoint; using console")
    elif exporter_type != "console":
        logger.warning("Unknown span exporter %r; using console", exporter_type)
    return ConsoleSpanExporter()


class TelemetryConfig:
    """Tracer provider lifecycle for one process run.

    Attributes:
        tracer_provider: The installed provider, or None while disabled/not started.
    """

    def __init__(
        self,
        service_name: str,
        service_version: str,
        enabled: bool = True,
        environment: str = "development",
        realm: str | None = None,
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.enabled = enabled
        self.environment = environment
        self.realm = realm
        self.tracer_provider: TracerProvider | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelemetryConfig":
        return cls(
            service_name=settings.app_name,
            service_version=settings.app_version,
            enabled=settings.telemetry_enabled,
            environment=settings.telemetry_environment,
            realm=settings.realm,
        )

    def _resource(self) -> Resource:
        attributes = {
            SERVICE_NAME: self.service_name,
            SERVICE_VERSION: self.service_version,
            "deployment.environment": self.environment,
        }
        if self.realm:
            attributes["journeykit.realm"] = self.realm
        return Resource(attributes=attributes)

    def start(
        self,
        exporter_type: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> TracerProvider | None:
        """Install the global tracer provider. Returns None when disabled or on failure.

        Telemetry never stops an operation: setup errors are logged and the
        run continues untraced.
        """
        if not self.enabled:
            logger.debug("Telemetry disabled")
            return None
        try:
            provider = TracerProvider(
                resource=self._resource(), sampler=TraceIdRatioBased(sample_rate)
            )
            exporter = build_span_exporter(exporter_type, otlp_endpoint)
            if exporter is not None:
                provider.add_span_processor(BatchSpanProcessor(exporter))
            trace.set_tracer_provider(provider)
        except Exception as e:
            logger.exception("Failed to initialize telemetry: %s", e)
            return None
        self.tracer_provider = provider
        logger.debug(
            "Tracing %s %s via %s exporter",
            self.service_name,
            self.service_version,
            exporter_type,
        )
        return provider

    def instrument(self) -> None:
        """Instrument httpx and logging against the installed provider."""
        if self.tracer_provider is None:
            return
        for name, instrumentor in (
            ("httpx", HTTPXClientInstrumentor()),
            ("logging", LoggingInstrumentor()),
        ):
            try:
                instrumentor.instrument(tracer_provider=self.tracer_provider)
            except Exception as e:
                logger.exception("Failed to instrument %s: %s", name, e)

    def shutdown(self) -> None:
        """Flush pending spans and release the provider."""
        if self.tracer_provider is None:
            return
        try:
            self.tracer_provider.shutdown()
        except Exception as e:
            logger.exception("Error during telemetry shutdown: %s", e)
        self.tracer_provider = None


def setup_from_settings(settings: Settings) -> TelemetryConfig:
    """Start and instrument telemetry from settings (a no-op when disabled)."""
    telemetry = TelemetryConfig.from_settings(settings)
    telemetry.start(
        exporter_type=settings.telemetry_exporter,
        otlp_endpoint=settings.telemetry_otlp_endpoint,
        sample_rate=settings.telemetry_sample_rate,
    )
    telemetry.instrument()
    return telemetry
