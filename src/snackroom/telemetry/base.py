"""Span and metric hooks around controller transitions."""

from __future__ import annotations

import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class SpanKind(StrEnum):
    SESSION_ACCEPT = "session.accept"
    SESSION_END = "session.end"
    SESSION_RESUME = "session.resume"
    VOICE_TOKEN = "voice.token"
    PAYMENT_CHECKOUT = "payment.checkout"
    TIMER_FIRED = "timer.fired"
    CUSTOM = "custom"


class Attr:
    """Attribute keys shared by spans and metrics."""

    PROVIDER = "provider"
    SESSION_ID = "session_id"
    HANDLE = "handle"
    DURABLE_ID = "durable_id"
    ROOM_TAG = "room_tag"
    MODE = "mode"
    REASON = "reason"
    TIMER_NAME = "timer.name"
    QUEUE_SIZE = "queue.size"
    DURATION_MS = "duration_ms"
    VOICE_DEGRADED = "voice.degraded"
    PAYMENT_AMOUNT = "payment.amount"


class Metric:
    QUEUE_SIZE = "snackroom.queue.size"
    SESSION_DURATION_MS = "snackroom.session.duration_ms"


@dataclass
class Span:
    """One timed transition or provider call.

    Callers add attributes while the span is open; the provider sees the
    finished span once, when it closes.
    """

    kind: SpanKind
    name: str
    session_id: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    opened: float = field(default_factory=time.monotonic)
    closed: float | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def elapsed_ms(self) -> float | None:
        if self.closed is None:
            return None
        return (self.closed - self.opened) * 1000


@dataclass(frozen=True)
class MetricPoint:
    name: str
    value: float
    unit: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)


class TelemetryProvider(ABC):
    """Receives finished spans and metric points from the controller."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def on_span_end(self, span: Span) -> None:
        """Called exactly once per span, after it closed."""

    @abstractmethod
    def record_metric(
        self,
        name: str,
        value: float,
        *,
        unit: str = "",
        attributes: dict[str, Any] | None = None,
    ) -> None: ...

    def close(self) -> None:  # noqa: B027
        """Flush anything buffered."""

    @contextmanager
    def span(
        self,
        kind: SpanKind,
        name: str,
        *,
        session_id: str | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[Span]:
        """Open a span for the duration of the ``with`` block.

        An exception leaving the block marks the span failed and is
        re-raised unchanged.
        """
        span = Span(kind=kind, name=name, session_id=session_id, attributes=dict(attributes or {}))
        try:
            yield span
        except Exception as exc:
            span.error = str(exc) or type(exc).__name__
            raise
        finally:
            span.closed = time.monotonic()
            self.on_span_end(span)
