"""Telemetry provider that writes spans and metrics to the log."""

from __future__ import annotations

import logging
from typing import Any

from snackroom.telemetry.base import Span, TelemetryProvider

logger = logging.getLogger("snackroom.telemetry")


def _fmt_attrs(attributes: dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in sorted(attributes.items()))


class ConsoleTelemetryProvider(TelemetryProvider):
    """One log line per finished span and per metric point.

    Failed spans are logged at WARNING regardless of *level*.
    """

    def __init__(self, *, level: int = logging.INFO) -> None:
        self._level = level

    @property
    def name(self) -> str:
        return "console"

    def on_span_end(self, span: Span) -> None:
        elapsed = span.elapsed_ms or 0.0
        extra = {"span_kind": span.kind.value, "session_id": span.session_id}
        if span.ok:
            logger.log(
                self._level,
                "span %s %.1fms %s",
                span.name,
                elapsed,
                _fmt_attrs(span.attributes),
                extra=extra,
            )
        else:
            logger.warning(
                "span %s failed after %.1fms: %s",
                span.name,
                elapsed,
                span.error,
                extra=extra,
            )

    def record_metric(
        self,
        name: str,
        value: float,
        *,
        unit: str = "",
        attributes: dict[str, Any] | None = None,
    ) -> None:
        logger.log(
            self._level,
            "metric %s=%g%s %s",
            name,
            value,
            unit,
            _fmt_attrs(attributes or {}),
        )
