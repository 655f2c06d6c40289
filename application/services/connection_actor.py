"""Per-connection lifecycle: handshake, two racing loops, teardown.

States run strictly forward::

    HANDSHAKING -> ACTIVE -> CLOSING -> CLOSED

Failures here stay local to the connection; they are logged and end the
actor, never the hub.
"""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Optional

import structlog

from application.ports.realtime import (
    ClientChat,
    ClientConnect,
    ClientDisconnect,
    Legacy,
    NonTextFrame,
    Transport,
    Typed,
    decode_client_message,
    legacy_text,
)
from application.services.chat_service import ChatHub
from domain.chat.entity import generate_guest_name, new_connection_id
from infrastructure.realtime.connection_manager import OutboundChannel
from core.logging_config import get_logger


logger = get_logger(__name__)


class ConnectionState(str, Enum):
    HANDSHAKING = "handshaking"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


def resolve_display_name(raw: Optional[str], guest_prefix: str = "User_") -> str:
    """Pick a display name from the first frame a peer sent.

    ``Connect{name}`` wins; a legacy ``"Name: body"`` frame yields the part
    before the first colon; anything else gets a generated guest name.
    """
    if raw is None:
        return generate_guest_name(guest_prefix)
    result = decode_client_message(raw)
    if isinstance(result, Typed):
        if isinstance(result.message, ClientConnect) and result.message.name:
            return result.message.name
        return generate_guest_name(guest_prefix)
    name = legacy_text(result.raw).split(":", 1)[0]
    return name or generate_guest_name(guest_prefix)


class ConnectionActor:
    def __init__(self, hub: ChatHub, transport: Transport, *, connection_id: Optional[str] = None) -> None:
        self._hub = hub
        self._transport = transport
        self.connection_id = connection_id or new_connection_id()
        self.channel = OutboundChannel()
        self.state = ConnectionState.HANDSHAKING
        self.name: Optional[str] = None

    async def run(self) -> None:
        with structlog.contextvars.bound_contextvars(connection_id=self.connection_id):
            self.name = await self._handshake()
            await self._run_active()

    async def _handshake(self) -> str:
        try:
            raw = await self._transport.receive_text()
        except NonTextFrame:
            raw = None
        except Exception as exc:
            logger.warning("chat_handshake_failed", error=str(exc))
            raw = None
        name = resolve_display_name(raw, self._hub.guest_prefix)
        logger.info("chat_handshake_completed", user_name=name, declared=raw is not None)
        return name

    async def _run_active(self) -> None:
        assert self.name is not None
        self.state = ConnectionState.ACTIVE
        user = self._hub.join(self.connection_id, self.name, self.channel)
        announced = False
        try:
            # Broadcasts that arrive meanwhile wait in the channel, behind the backlog.
            for message in self._hub.backlog():
                await self._transport.send_text(message.text)
            self._hub.announce_joined(user)
            announced = True
            await self._race_loops()
        except Exception as exc:
            logger.warning("chat_connection_error", error=str(exc), error_type=type(exc).__name__)
        finally:
            self.state = ConnectionState.CLOSING
            self._hub.leave(self.connection_id, self.name, self.channel, announce=announced)
            self.state = ConnectionState.CLOSED

    async def _race_loops(self) -> None:
        inbound = asyncio.create_task(self._inbound_loop(), name=f"chat-in-{self.connection_id}")
        outbound = asyncio.create_task(self._outbound_loop(), name=f"chat-out-{self.connection_id}")
        try:
            done, _ = await asyncio.wait({inbound, outbound}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (inbound, outbound):
                if not task.done():
                    task.cancel()
            await asyncio.gather(inbound, outbound, return_exceptions=True)
        for task in done:
            if task.cancelled():
                continue
            exc = task.exception()
            if exc is not None:
                logger.info(
                    "chat_loop_ended",
                    loop=task.get_name().split("-")[1],
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

    async def _inbound_loop(self) -> None:
        while True:
            try:
                raw = await self._transport.receive_text()
            except NonTextFrame:
                continue
            if raw is None:
                return
            result = decode_client_message(raw)
            if isinstance(result, Legacy):
                self._hub.post_raw(result.raw)
                continue
            message = result.message
            if isinstance(message, ClientChat):
                self._hub.post_chat(self.name, message.text)
            elif isinstance(message, ClientDisconnect):
                logger.info("chat_disconnect_requested")
                return
            # A repeated Connect is a no-op.

    async def _outbound_loop(self) -> None:
        while True:
            message = await self.channel.receive()
            await self._transport.send_text(message.text)
