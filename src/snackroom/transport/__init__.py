"""Network transports that feed the session controller."""

from snackroom.transport.websocket import WebSocketServer, origin_allowed, role_from_path

__all__ = ["WebSocketServer", "origin_allowed", "role_from_path"]
