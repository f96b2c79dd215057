"""JSON-over-websocket transport for the session controller.

Each accepted connection gets a fresh opaque handle.  Inbound text frames
are parsed into commands and dispatched; outbound notifications are
serialised with ``model_dump_json``.  The connection's role comes from
the ``role`` query parameter (``?role=mama`` or ``?role=operator`` for the
operator; anything else is a visitor).
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from collections.abc import Iterable
from http import HTTPStatus
from urllib.parse import parse_qs, urlsplit

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.datastructures import Headers
from websockets.exceptions import ConnectionClosed
from websockets.http11 import Request, Response

from snackroom.config import ServerConfig
from snackroom.core.controller import SessionController
from snackroom.models.commands import CommandParseError, parse_command
from snackroom.models.enums import ParticipantRole
from snackroom.models.notifications import ErrorNotice, Notification

logger = logging.getLogger("snackroom.transport")

_OPERATOR_ROLES = frozenset({"mama", "operator"})


def role_from_path(path: str) -> ParticipantRole:
    """Read the connection role from the request path's query string."""
    query = parse_qs(urlsplit(path).query)
    role = (query.get("role") or [""])[0].lower()
    return ParticipantRole.OPERATOR if role in _OPERATOR_ROLES else ParticipantRole.VISITOR


def origin_allowed(origin: str | None, allowed: Iterable[str]) -> bool:
    """An empty allow-list admits every origin; otherwise the origin must match."""
    allowed = [entry.rstrip("/") for entry in allowed]
    if not allowed:
        return True
    return origin is not None and origin.rstrip("/") in allowed


def _json_response(status: HTTPStatus, payload: dict[str, object]) -> Response:
    body = json.dumps(payload).encode()
    headers = Headers(
        [
            ("Content-Type", "application/json"),
            ("Content-Length", str(len(body))),
            ("Connection", "close"),
        ]
    )
    return Response(status.value, status.phrase, headers, body)


class WebSocketServer:
    """Serve the controller over websockets.

    Example:
        controller = SessionController(config.orchestrator)
        server = WebSocketServer(controller, config)
        await server.start()
        ...
        await server.stop()
    """

    def __init__(self, controller: SessionController, config: ServerConfig) -> None:
        self._controller = controller
        self._config = config
        self._server: Server | None = None

    @property
    def port(self) -> int | None:
        """The bound port, useful when configured with port 0."""
        if self._server is None:
            return None
        for sock in self._server.sockets:
            return int(sock.getsockname()[1])
        return None

    async def start(self) -> None:
        self._server = await serve(
            self._handle,
            self._config.host,
            self._config.port,
            process_request=self._process_request,
        )
        logger.info("Listening on ws://%s:%s", self._config.host, self.port)

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("Server stopped")

    async def serve_forever(self, stop: asyncio.Event) -> None:
        """Run until *stop* is set, then shut the controller down."""
        await self.start()
        try:
            await stop.wait()
        finally:
            await self.stop()
            await self._controller.close()

    # -- Handshake -------------------------------------------------------------

    def _process_request(self, connection: ServerConnection, request: Request) -> Response | None:
        if urlsplit(request.path).path == "/health":
            return _json_response(HTTPStatus.OK, {"ok": True, "ts": int(time.time() * 1000)})

        origin = request.headers.get("Origin")
        if not origin_allowed(origin, self._config.allowed_origins):
            logger.warning("Rejected connection from origin %s", origin)
            return connection.respond(HTTPStatus.FORBIDDEN, "Origin not allowed\n")
        return None

    # -- Connection loop -------------------------------------------------------

    async def _handle(self, connection: ServerConnection) -> None:
        handle = uuid.uuid4().hex
        role = role_from_path(connection.request.path if connection.request else "/")

        async def send(target: str, message: Notification) -> None:
            await connection.send(message.model_dump_json())

        logger.debug("Connection %s opened as %s", handle, role)
        await self._controller.connect(handle, send, role)
        reason: str | None = None
        try:
            async for frame in connection:
                try:
                    command = parse_command(frame)
                except CommandParseError as exc:
                    logger.debug("Bad frame from %s: %s", handle, exc)
                    await self._controller.dispatcher.send(
                        handle, ErrorNotice(code="bad_request", message=str(exc))
                    )
                    continue
                await self._controller.dispatch(handle, command)
        except ConnectionClosed as exc:
            reason = str(exc)
        finally:
            await self._controller.disconnect(handle, reason)
            logger.debug("Connection %s closed", handle)
