"""Tests for the websocket transport."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import InvalidStatus

from snackroom.config import OrchestratorConfig, ServerConfig
from snackroom.core.controller import SessionController
from snackroom.models.enums import ParticipantRole
from snackroom.transport.websocket import WebSocketServer, origin_allowed, role_from_path


async def _recv(ws: ClientConnection) -> dict[str, Any]:
    return json.loads(await asyncio.wait_for(ws.recv(), timeout=2))


async def _recv_until(ws: ClientConnection, kind: str) -> dict[str, Any]:
    while True:
        message = await _recv(ws)
        if message["type"] == kind:
            return message


@pytest.fixture
async def server() -> AsyncIterator[WebSocketServer]:
    config = ServerConfig(
        host="127.0.0.1",
        port=0,
        allowed_origins=["https://snack.example"],
        orchestrator=OrchestratorConfig(),
    )
    controller = SessionController(config.orchestrator)
    srv = WebSocketServer(controller, config)
    await srv.start()
    yield srv
    await srv.stop()
    await controller.close()


class TestHelpers:
    @pytest.mark.parametrize(
        ("path", "role"),
        [
            ("/?role=mama", ParticipantRole.OPERATOR),
            ("/ws?role=Operator", ParticipantRole.OPERATOR),
            ("/?role=guest", ParticipantRole.VISITOR),
            ("/", ParticipantRole.VISITOR),
        ],
    )
    def test_role_from_path(self, path: str, role: ParticipantRole) -> None:
        assert role_from_path(path) == role

    def test_origin_allowed(self) -> None:
        assert origin_allowed(None, []) is True
        assert origin_allowed("https://a.example", []) is True
        assert origin_allowed("https://a.example/", ["https://a.example"]) is True
        assert origin_allowed("https://b.example", ["https://a.example"]) is False
        assert origin_allowed(None, ["https://a.example"]) is False


class TestWebSocketServer:
    async def test_health(self, server: WebSocketServer) -> None:
        async with httpx.AsyncClient() as client:
            resp = await client.get(f"http://127.0.0.1:{server.port}/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert isinstance(body["ts"], int)

    async def test_rejects_foreign_origin(self, server: WebSocketServer) -> None:
        with pytest.raises(InvalidStatus):
            async with connect(
                f"ws://127.0.0.1:{server.port}/", origin="https://evil.example"
            ):
                pass

    async def test_register_reaches_operator(self, server: WebSocketServer) -> None:
        base = f"ws://127.0.0.1:{server.port}"
        origin = "https://snack.example"
        async with connect(f"{base}/?role=mama", origin=origin) as operator:
            first = await _recv(operator)
            assert first == {"type": "queue-update", "queue": []}

            visitor = await connect(f"{base}/", origin=origin)
            await visitor.send(
                json.dumps({"type": "register-intent", "durable_id": "d1", "mood": "listen"})
            )

            registered = await _recv_until(operator, "visitor-registered")
            assert registered["mood"] == "listen"
            update = await _recv_until(operator, "queue-update")
            assert [e["handle"] for e in update["queue"]] == [registered["handle"]]

            position = await _recv_until(visitor, "queue-position")
            assert position == {"type": "queue-position", "position": 1, "size": 1}

            await operator.send(json.dumps({"type": "accept", "handle": registered["handle"]}))
            started = await _recv_until(visitor, "session-started")
            assert started["resumed"] is False
            await visitor.close()

    async def test_bad_frame_gets_error(self, server: WebSocketServer) -> None:
        async with connect(
            f"ws://127.0.0.1:{server.port}/", origin="https://snack.example"
        ) as visitor:
            await visitor.send("{not json")
            error = await _recv(visitor)

        assert error["type"] == "error"
        assert error["code"] == "bad_request"

    async def test_undecodable_binary_frame_keeps_connection(
        self, server: WebSocketServer
    ) -> None:
        async with connect(
            f"ws://127.0.0.1:{server.port}/", origin="https://snack.example"
        ) as visitor:
            await visitor.send(b"\xff\xfe{")
            error = await _recv(visitor)
            await visitor.send("{still not json")
            second = await _recv(visitor)

        assert error["code"] == "bad_request"
        assert second["code"] == "bad_request"

    async def test_disconnect_removes_visitor(self, server: WebSocketServer) -> None:
        base = f"ws://127.0.0.1:{server.port}"
        origin = "https://snack.example"
        async with connect(f"{base}/?role=mama", origin=origin) as operator:
            await _recv(operator)
            async with connect(f"{base}/", origin=origin) as visitor:
                await visitor.send(
                    json.dumps({"type": "register-intent", "durable_id": "d1", "mood": "relax"})
                )
                await _recv_until(operator, "visitor-registered")
                await _recv_until(operator, "queue-update")

            update = await _recv_until(operator, "queue-update")
            assert update["queue"] == []
