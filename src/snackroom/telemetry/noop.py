"""Telemetry provider that discards everything; the controller's default."""

from __future__ import annotations

from typing import Any

from snackroom.telemetry.base import Span, TelemetryProvider


class NoopTelemetryProvider(TelemetryProvider):
    @property
    def name(self) -> str:
        return "noop"

    def on_span_end(self, span: Span) -> None:
        pass

    def record_metric(
        self,
        name: str,
        value: float,
        *,
        unit: str = "",
        attributes: dict[str, Any] | None = None,
    ) -> None:
        pass
