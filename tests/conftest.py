"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any, TypeVar

import pytest

from snackroom.config import OrchestratorConfig
from snackroom.core.controller import SessionController
from snackroom.models.commands import RegisterIntent
from snackroom.models.enums import Mood, ParticipantRole, VisitorMode
from snackroom.models.notifications import Notification
from snackroom.providers.payment.mock import MockPaymentProvider
from snackroom.providers.voice.mock import MockVoiceProvider
from snackroom.telemetry.mock import MockTelemetryProvider

N = TypeVar("N")

OPERATOR = "op-1"


@pytest.fixture
def advance() -> Callable[[int], Coroutine[Any, Any, None]]:
    """Yield control to let pending tasks run without real delay.

    Replaces ``await asyncio.sleep(0.05)`` patterns with zero-delay
    event loop yields::

        await advance()       # 5 yields (default)
        await advance(10)     # 10 yields for heavier workloads
    """

    async def _advance(n: int = 5) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


class Recorder:
    """Send callback that keeps every notification, per handle."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, Notification]] = []

    async def __call__(self, handle: str, message: Notification) -> None:
        self.sent.append((handle, message))

    def to(self, handle: str, kind: type[N] | None = None) -> list[N]:
        return [
            m  # type: ignore[misc]
            for h, m in self.sent
            if h == handle and (kind is None or isinstance(m, kind))
        ]

    def last(self, handle: str, kind: type[N]) -> N | None:
        found = self.to(handle, kind)
        return found[-1] if found else None

    def of_type(self, kind: type[N]) -> list[tuple[str, N]]:
        return [(h, m) for h, m in self.sent if isinstance(m, kind)]  # type: ignore[misc]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def fast_config() -> OrchestratorConfig:
    """Session budget and grace windows short enough to run for real."""
    return OrchestratorConfig(
        session_max_seconds=0.5,
        warning_lead_seconds=0.2,
        min_warning_delay_seconds=0,
        disconnect_grace_seconds=0.1,
        paying_grace_seconds=0.3,
    )


@pytest.fixture
def voice() -> MockVoiceProvider:
    return MockVoiceProvider()


@pytest.fixture
def payment() -> MockPaymentProvider:
    return MockPaymentProvider()


@pytest.fixture
def telemetry() -> MockTelemetryProvider:
    return MockTelemetryProvider()


@pytest.fixture
async def controller(
    fast_config: OrchestratorConfig,
    voice: MockVoiceProvider,
    payment: MockPaymentProvider,
    telemetry: MockTelemetryProvider,
) -> AsyncIterator[SessionController]:
    ctrl = SessionController(fast_config, voice=voice, payment=payment, telemetry=telemetry)
    yield ctrl
    await ctrl.close()


async def connect_operator(
    controller: SessionController, recorder: Recorder, handle: str = OPERATOR
) -> str:
    await controller.connect(handle, recorder, ParticipantRole.OPERATOR)
    return handle


async def register_visitor(
    controller: SessionController,
    recorder: Recorder,
    handle: str,
    durable_id: str | None = None,
    *,
    mood: Mood = Mood.LISTEN,
    mode: VisitorMode = VisitorMode.TEXT,
    room_tag: str | None = None,
) -> str:
    """Connect *handle* as a visitor and put it in the queue."""
    await controller.connect(handle, recorder)
    await controller.dispatch(
        handle,
        RegisterIntent(
            durable_id=durable_id or f"d-{handle}",
            mood=mood,
            mode=mode,
            room_tag=room_tag,
        ),
    )
    return handle
