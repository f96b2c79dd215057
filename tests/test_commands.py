"""Tests for inbound command parsing and outbound serialisation."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from snackroom.models.commands import (
    Accept,
    CommandParseError,
    CreateCheckout,
    EndSession,
    JoinRoom,
    Leave,
    RegisterIntent,
    SendMessage,
    TipIntent,
    VoiceJoinRequest,
    parse_command,
)
from snackroom.models.enums import EndReason, Mood, VisitorMode
from snackroom.models.notifications import SessionEnded, SessionStarted


class TestParseCommand:
    @pytest.mark.parametrize(
        ("frame", "expected"),
        [
            ({"type": "join-room", "room_tag": "r1"}, JoinRoom),
            ({"type": "leave"}, Leave),
            ({"type": "send-message", "text": "hi"}, SendMessage),
            ({"type": "tip-intent", "amount": 500}, TipIntent),
            ({"type": "create-checkout", "amount": 500}, CreateCheckout),
            ({"type": "accept", "handle": "h1"}, Accept),
            ({"type": "end-session"}, EndSession),
            ({"type": "voice-join-request"}, VoiceJoinRequest),
        ],
    )
    def test_known_frames(self, frame: dict[str, object], expected: type) -> None:
        assert isinstance(parse_command(json.dumps(frame)), expected)

    def test_register_intent(self) -> None:
        command = parse_command(
            b'{"type": "register-intent", "durable_id": "d1", "mood": "advise", "mode": "voice"}'
        )

        assert isinstance(command, RegisterIntent)
        assert command.mood == Mood.ADVISE
        assert command.mode == VisitorMode.VOICE
        assert command.room_tag is None

    def test_register_defaults_to_text(self) -> None:
        command = parse_command({"type": "register-intent", "durable_id": "d1", "mood": "relax"})

        assert isinstance(command, RegisterIntent)
        assert command.mode == VisitorMode.TEXT

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "[1, 2]",
            '{"type": "unknown"}',
            '{"no_type": true}',
            '{"type": "register-intent", "durable_id": "", "mood": "relax"}',
            '{"type": "register-intent", "durable_id": "d1", "mood": "sad"}',
            '{"type": "send-message", "text": ""}',
            '{"type": "create-checkout", "amount": 0}',
        ],
    )
    def test_rejects_bad_frames(self, raw: str) -> None:
        with pytest.raises(CommandParseError):
            parse_command(raw)

    @pytest.mark.parametrize("raw", [b"\xff\xfe{", b'{"type": "leave\xc3"}'])
    def test_rejects_undecodable_bytes(self, raw: bytes) -> None:
        with pytest.raises(CommandParseError):
            parse_command(raw)

    def test_internal_events_not_accepted_from_wire(self) -> None:
        with pytest.raises(CommandParseError):
            parse_command({"type": "timer-fired", "name": "expiry", "session_id": "s"})


class TestNotifications:
    def test_session_ended_wire_shape(self) -> None:
        data = json.loads(SessionEnded(reason=EndReason.OPERATOR_ENDED).model_dump_json())

        assert data == {"type": "session-ended", "reason": "mama_ended"}

    def test_session_started_defaults(self) -> None:
        started = SessionStarted(
            handle="h1",
            started_at=datetime.now(UTC),
            max_duration_ms=600_000,
        )
        data = json.loads(started.model_dump_json())

        assert data["type"] == "session-started"
        assert data["resumed"] is False
        assert data["voice_info"] is None
