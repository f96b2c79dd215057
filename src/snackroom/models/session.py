"""Active session record."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from pydantic import BaseModel

from snackroom.models.enums import Mood, VisitorMode


class VoiceInfo(BaseModel):
    """Voice room credentials issued for one session."""

    room_url: str
    visitor_token: str
    operator_token: str

    def for_visitor(self) -> VoiceCredentials:
        return VoiceCredentials(room_url=self.room_url, token=self.visitor_token)

    def for_operator(self) -> VoiceCredentials:
        return VoiceCredentials(room_url=self.room_url, token=self.operator_token)


class VoiceCredentials(BaseModel):
    """The half of :class:`VoiceInfo` handed to one side."""

    room_url: str
    token: str


@dataclass
class Session:
    """The single paired operator/visitor interaction.

    Holds live ``asyncio`` timer tasks, so it is a plain dataclass rather
    than a pydantic model.  Created only by the controller's accept
    transition and dropped only by its end transition.
    """

    durable_id: str
    connection_handle: str
    mood: Mood | None
    mode: VisitorMode | None
    room_tag: str | None
    max_duration_ms: int
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    voice_info: VoiceInfo | None = None
    voice_error: str | None = None
    timers: dict[str, asyncio.Task[None]] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def deadline(self) -> datetime:
        return self.started_at + timedelta(milliseconds=self.max_duration_ms)

    def elapsed_ms(self, now: datetime | None = None) -> int:
        now = now or datetime.now(UTC)
        return int((now - self.started_at).total_seconds() * 1000)
