"""In-memory telemetry provider for assertions in tests."""

from __future__ import annotations

from typing import Any

from snackroom.telemetry.base import MetricPoint, Span, SpanKind, TelemetryProvider


class MockTelemetryProvider(TelemetryProvider):
    """Keeps every finished span and metric point.

    Example::

        telemetry = MockTelemetryProvider()
        controller = SessionController(telemetry=telemetry)
        ...
        assert telemetry.get_spans(SpanKind.SESSION_END)[0].attributes["reason"] == "timeout"
    """

    def __init__(self) -> None:
        self.spans: list[Span] = []
        self.metrics: list[MetricPoint] = []

    @property
    def name(self) -> str:
        return "mock"

    def on_span_end(self, span: Span) -> None:
        self.spans.append(span)

    def record_metric(
        self,
        name: str,
        value: float,
        *,
        unit: str = "",
        attributes: dict[str, Any] | None = None,
    ) -> None:
        self.metrics.append(MetricPoint(name, value, unit, dict(attributes or {})))

    def get_spans(self, kind: SpanKind) -> list[Span]:
        return [s for s in self.spans if s.kind == kind]

    def spans_for_session(self, session_id: str) -> list[Span]:
        return [s for s in self.spans if s.session_id == session_id]

    def get_metrics(self, name: str) -> list[MetricPoint]:
        return [m for m in self.metrics if m.name == name]

    def reset(self) -> None:
        self.spans.clear()
        self.metrics.clear()
