"""Participant model."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from snackroom.models.enums import Mood, ParticipantStatus, VisitorMode


class Participant(BaseModel):
    """A visitor connection and what it asked for.

    One record exists per live connection handle.  The durable id is
    only known once the visitor has identified itself.
    """

    handle: str
    durable_id: str | None = None
    mood: Mood | None = None
    mode: VisitorMode | None = None
    status: ParticipantStatus = ParticipantStatus.CONNECTED
    joined_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    is_paying: bool = False
    room_tag: str | None = None
