"""
Command line entry point: ``chathub server`` and ``chathub client``.
"""
import argparse
import asyncio
import socket
import sys
from typing import Optional, Sequence

import uvicorn

from application.services.chat_service import ChatHub
from application.services.dashboard import run_dashboard
from core.config import settings
from core.logging_config import configure_logging, get_logger
from domain.common.exceptions import ServerBindError
from main import create_app


logger = get_logger(__name__)


def bind_listener(host: str, port: int) -> socket.socket:
    """Bind the listening socket up front so a bind failure is reported as such."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        raise ServerBindError(host, port, exc.strerror or str(exc)) from exc
    sock.set_inheritable(True)
    return sock


async def serve(host: str, port: int, *, dashboard: bool = False) -> None:
    hub = ChatHub.create(
        max_messages=settings.chat.max_messages,
        guest_prefix=settings.chat.guest_prefix,
    )
    sock = bind_listener(host, port)
    server = uvicorn.Server(uvicorn.Config(create_app(hub), log_config=None))
    logger.info("chat_server_listening", url=f"http://{host}:{port}", dashboard=dashboard)

    if not dashboard:
        await server.serve(sockets=[sock])
        return

    # The dashboard owns the process; the listener is the cancellable unit.
    serve_task = asyncio.create_task(server.serve(sockets=[sock]), name="chat-listener")
    dashboard_task = asyncio.create_task(
        run_dashboard(
            hub.presence,
            refresh_interval_s=settings.dashboard.refresh_interval_s,
            max_rows=settings.dashboard.max_rows,
        ),
        name="chat-dashboard",
    )
    try:
        await asyncio.wait({serve_task, dashboard_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (dashboard_task, serve_task):
            task.cancel()
        await asyncio.gather(dashboard_task, serve_task, return_exceptions=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chathub", description="A simple CLI chat tool")
    sub = parser.add_subparsers(dest="command", required=True)

    server = sub.add_parser("server", help="Start chat server")
    server.add_argument("-a", "--address", default=settings.HOST,
                        help=f"Listen address (default: {settings.HOST})")
    server.add_argument("-p", "--port", type=int, default=settings.PORT,
                        help=f"Listen port (default: {settings.PORT})")
    server.add_argument("--dashboard", "--tui", dest="dashboard", action="store_true",
                        default=settings.dashboard.enabled,
                        help="Render the presence dashboard instead of logs")

    client = sub.add_parser("client", help="Connect to chat server")
    client.add_argument("name", nargs="?", default=settings.client.name,
                        help="Your chat name (random if omitted)")
    client.add_argument("-a", "--address", default=settings.HOST,
                        help=f"Server address (default: {settings.HOST})")
    client.add_argument("-p", "--port", type=int, default=settings.PORT,
                        help=f"Server port (default: {settings.PORT})")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "client":
        configure_logging("WARNING")
        from client.chat_client import run_client
        return run_client(args.name, args.address, args.port)

    # Keep the dashboard screen free of log noise
    configure_logging("WARNING" if args.dashboard else None)
    try:
        asyncio.run(serve(args.address, args.port, dashboard=args.dashboard))
    except ServerBindError as exc:
        logger.error("chat_server_bind_failed", **(exc.details or {}))
        print(exc.message, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
