"""Telemetry providers for snackroom."""

from snackroom.telemetry.base import Attr, Metric, MetricPoint, Span, SpanKind, TelemetryProvider
from snackroom.telemetry.console import ConsoleTelemetryProvider
from snackroom.telemetry.mock import MockTelemetryProvider
from snackroom.telemetry.noop import NoopTelemetryProvider

__all__ = [
    "Attr",
    "ConsoleTelemetryProvider",
    "Metric",
    "MetricPoint",
    "MockTelemetryProvider",
    "NoopTelemetryProvider",
    "Span",
    "SpanKind",
    "TelemetryProvider",
]
