"""Terminal chat client.

Connects to ``ws://<address>:<port>/room/1``, declares its name, then
prints whatever the hub sends while forwarding stdin lines as chat.
"""
from __future__ import annotations

import asyncio
import random
import sys
import threading
from typing import Callable, List, Optional

import websockets

from application.ports.realtime import (
    ClientChat,
    ClientConnect,
    ServerChat,
    Typed,
    UserJoined,
    UserLeft,
    UserList,
    decode_server_message,
)
from core.logging_config import get_logger


logger = get_logger(__name__)


ADJECTIVES = ["Happy", "Quick", "Silent", "Brave", "Clever", "Swift", "Bright", "Calm"]
NOUNS = ["Panda", "Eagle", "Tiger", "Wolf", "Fox", "Bear", "Lion", "Hawk"]


def generate_random_name(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    return f"{rng.choice(ADJECTIVES)}{rng.choice(NOUNS)}{rng.randrange(1000)}"


def render_server_frame(raw: str) -> List[str]:
    """Lines to print for one frame received from the hub.

    Frames that are not typed server messages (backlog replay, legacy
    peers, HTTP posts) are shown as-is.
    """
    result = decode_server_message(raw)
    if not isinstance(result, Typed):
        return [result.raw]
    message = result.message
    if isinstance(message, ServerChat):
        return [message.text]
    if isinstance(message, UserList):
        return (
            [f"=== Users online: {message.count} ==="]
            + [f"  {u.name}" for u in message.users]
            + ["========================"]
        )
    if isinstance(message, UserJoined):
        return [f"*** {message.name} joined the chat ***"]
    if isinstance(message, UserLeft):
        return [f"*** {message.name} left the chat ***"]
    return [raw]


class ChatClient:
    def __init__(
        self,
        name: Optional[str],
        address: str = "127.0.0.1",
        port: int = 12345,
        *,
        read_line: Optional[Callable[[str], str]] = None,
        write: Callable[[str], None] = print,
    ) -> None:
        self.name = name or generate_random_name()
        self.url = f"ws://{address}:{port}/room/1"
        self._read_line = read_line or input
        self._write = write

    async def run(self) -> None:
        self._write(f"Connecting to chat server as {self.name}...")
        async with websockets.connect(self.url) as ws:
            await ws.send(ClientConnect(name=self.name).encode())
            self._write(f"Chat started as {self.name}. Type your messages and press Enter.")
            self._write("Press Ctrl+C to exit.")
            reader = asyncio.create_task(self._reader(ws))
            writer = asyncio.create_task(self._writer(ws))
            try:
                await asyncio.wait({reader, writer}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for task in (reader, writer):
                    task.cancel()
                await asyncio.gather(reader, writer, return_exceptions=True)

    async def _reader(self, ws) -> None:
        try:
            async for raw in ws:
                if isinstance(raw, bytes):
                    continue
                for line in render_server_frame(raw):
                    self._write(line)
        except websockets.ConnectionClosed:
            pass
        self._write("Server closed connection")

    async def _writer(self, ws) -> None:
        lines: asyncio.Queue = asyncio.Queue()
        self._start_stdin_pump(asyncio.get_running_loop(), lines)
        while True:
            line = await lines.get()
            if line is None:
                self._write("Exiting chat...")
                return
            if not line.strip():
                continue
            await ws.send(ClientChat(text=line).encode())

    def _start_stdin_pump(self, loop: asyncio.AbstractEventLoop, lines: asyncio.Queue) -> threading.Thread:
        """Read stdin on a daemon thread so a blocked read never holds the process open."""

        def pump() -> None:
            while True:
                try:
                    line = self._read_line(f"{self.name}: ")
                except (EOFError, KeyboardInterrupt):
                    line = None
                try:
                    loop.call_soon_threadsafe(lines.put_nowait, line)
                except RuntimeError:
                    # event loop already closed
                    return
                if line is None:
                    return

        thread = threading.Thread(target=pump, name="chat-stdin", daemon=True)
        thread.start()
        return thread


def run_client(name: Optional[str], address: str, port: int) -> int:
    client = ChatClient(name, address, port)
    try:
        asyncio.run(client.run())
    except KeyboardInterrupt:
        return 0
    except (OSError, websockets.InvalidURI, websockets.InvalidHandshake) as exc:
        logger.error("chat_client_connect_failed", url=client.url, error=str(exc))
        print(f"Failed to connect to {client.url}: {exc}", file=sys.stderr)
        return 1
    return 0
