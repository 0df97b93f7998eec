"""Tests for telemetry setup and the traced decorator."""

import pytest
from opentelemetry.sdk.trace.export import ConsoleSpanExporter

from journeykit.application.dtos import DeletionResult
from journeykit.shared.telemetry import TelemetryConfig, setup_from_settings, traced
from journeykit.shared.telemetry.telemetry import build_span_exporter
from tests.conftest import make_settings


def test_exporter_selection() -> None:
    assert build_span_exporter("none") is None
    assert isinstance(build_span_exporter("console"), ConsoleSpanExporter)
    assert isinstance(build_span_exporter("otlp"), ConsoleSpanExporter)
    assert isinstance(build_span_exporter("jaeger"), ConsoleSpanExporter)


def test_disabled_telemetry_installs_nothing() -> None:
    telemetry = setup_from_settings(make_settings(telemetry_enabled=False))
    assert telemetry.tracer_provider is None
    telemetry.shutdown()


def test_config_from_settings_carries_realm() -> None:
    telemetry = TelemetryConfig.from_settings(make_settings(realm="bravo"))
    assert telemetry.realm == "bravo"
    assert telemetry.service_name == "journeykit"


@pytest.mark.asyncio
async def test_traced_passes_results_and_errors_through() -> None:
    @traced("test.delete")
    async def delete(journey_id: str) -> DeletionResult:
        return DeletionResult(journey_id=journey_id)

    @traced()
    def explode(journey_id: str) -> None:
        raise RuntimeError(journey_id)

    assert (await delete("Login")).journey_id == "Login"
    assert delete.__name__ == "delete"
    with pytest.raises(RuntimeError, match="Login"):
        explode(journey_id="Login")
