"""Run the snackroom websocket server: ``python -m snackroom``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from snackroom.config import ServerConfig, load_config
from snackroom.core.controller import SessionController
from snackroom.core.errors import ConfigError
from snackroom.providers.payment.base import PaymentProvider
from snackroom.providers.payment.stripe import StripePaymentProvider
from snackroom.providers.voice.base import VoiceRoomProvider
from snackroom.providers.voice.daily import DailyVoiceProvider
from snackroom.telemetry.console import ConsoleTelemetryProvider
from snackroom.telemetry.noop import NoopTelemetryProvider
from snackroom.transport.websocket import WebSocketServer

logger = logging.getLogger("snackroom")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="snackroom", description=__doc__)
    parser.add_argument("--host", help="Bind address (overrides HOST)")
    parser.add_argument("--port", type=int, help="Bind port (overrides PORT)")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument(
        "--telemetry",
        action="store_true",
        help="Log spans and metrics through the console telemetry provider",
    )
    return parser.parse_args(argv)


def build_controller(config: ServerConfig, *, console_telemetry: bool = False) -> SessionController:
    """Wire the controller with whichever providers *config* enables."""
    voice: VoiceRoomProvider | None = None
    if config.daily is not None:
        voice = DailyVoiceProvider(config.daily)
    payment: PaymentProvider | None = None
    if config.stripe is not None:
        payment = StripePaymentProvider(config.stripe)
    telemetry = ConsoleTelemetryProvider() if console_telemetry else NoopTelemetryProvider()
    return SessionController(
        config.orchestrator,
        voice=voice,
        payment=payment,
        telemetry=telemetry,
    )


async def _run(config: ServerConfig, *, console_telemetry: bool) -> None:
    controller = build_controller(config, console_telemetry=console_telemetry)
    server = WebSocketServer(controller, config)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await server.serve_forever(stop)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    try:
        config = load_config()
        overrides: dict[str, object] = {}
        if args.host:
            overrides["host"] = args.host
        if args.port is not None:
            overrides["port"] = args.port
        if overrides:
            config = config.model_copy(update=overrides)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    asyncio.run(_run(config, console_telemetry=args.telemetry))
    return 0


if __name__ == "__main__":
    sys.exit(main())
