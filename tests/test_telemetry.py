"""Tests for telemetry providers."""

from __future__ import annotations

import logging

import pytest

from snackroom.telemetry import (
    ConsoleTelemetryProvider,
    Metric,
    MockTelemetryProvider,
    NoopTelemetryProvider,
    SpanKind,
)


class TestMockTelemetry:
    def test_span_lifecycle(self) -> None:
        telemetry = MockTelemetryProvider()

        with telemetry.span(SpanKind.SESSION_ACCEPT, "accept", session_id="s1") as span:
            span.attributes["handle"] = "h1"
            assert telemetry.spans == []

        recorded = telemetry.get_spans(SpanKind.SESSION_ACCEPT)[0]
        assert recorded is span
        assert recorded.ok
        assert recorded.attributes["handle"] == "h1"
        assert recorded.elapsed_ms is not None
        assert telemetry.spans_for_session("s1") == [span]

    def test_span_records_error(self) -> None:
        telemetry = MockTelemetryProvider()

        with pytest.raises(ValueError), telemetry.span(SpanKind.VOICE_TOKEN, "voice"):
            raise ValueError("bad")

        span = telemetry.spans[0]
        assert not span.ok
        assert span.error == "bad"

    def test_metrics_and_reset(self) -> None:
        telemetry = MockTelemetryProvider()
        telemetry.record_metric(Metric.QUEUE_SIZE, 3, attributes={"k": "v"})

        point = telemetry.get_metrics(Metric.QUEUE_SIZE)[0]
        assert point.value == 3
        assert point.attributes == {"k": "v"}

        telemetry.reset()
        assert telemetry.metrics == []


class TestConsoleTelemetry:
    def test_logs_finished_span(self, caplog: pytest.LogCaptureFixture) -> None:
        telemetry = ConsoleTelemetryProvider()

        with caplog.at_level(logging.INFO, logger="snackroom.telemetry"):
            with telemetry.span(SpanKind.SESSION_END, "session.end", attributes={"reason": "x"}):
                pass
            telemetry.record_metric(Metric.QUEUE_SIZE, 2)

        assert "span session.end" in caplog.text
        assert "reason=x" in caplog.text
        assert "metric snackroom.queue.size=2" in caplog.text

    def test_failed_span_is_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        telemetry = ConsoleTelemetryProvider(level=logging.DEBUG)

        with pytest.raises(RuntimeError), telemetry.span(SpanKind.CUSTOM, "boom"):
            raise RuntimeError("nope")

        failed = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert failed and "nope" in failed[0].getMessage()


class TestNoopTelemetry:
    def test_noop_accepts_everything(self) -> None:
        telemetry = NoopTelemetryProvider()

        with telemetry.span(SpanKind.CUSTOM, "x") as span:
            span.attributes["k"] = "v"
        telemetry.record_metric(Metric.SESSION_DURATION_MS, 12.0)
        telemetry.close()
