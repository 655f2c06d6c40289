"""In-process outbound channels and the broadcaster that fans out to them.

Each live connection owns one ``OutboundChannel``: an unbounded FIFO that
the connection's outbound loop drains to the network. The hub keeps every
channel in a ``ClientRegistry`` and broadcasts by enqueueing, which never
blocks and never awaits.
"""
from __future__ import annotations

import asyncio
import threading
from typing import List

from domain.chat.entity import ChatMessage
from core.logging_config import get_logger


logger = get_logger(__name__)


class ChannelClosed(Exception):
    """The receiving side of an outbound channel is gone."""


class OutboundChannel:
    """Unbounded, ordered queue of frames for a single connection."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[ChatMessage] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, message: ChatMessage) -> None:
        if self._closed:
            raise ChannelClosed()
        self._queue.put_nowait(message)

    async def receive(self) -> ChatMessage:
        return await self._queue.get()

    def close(self) -> None:
        """Drop the receiving side; pending items are discarded."""
        self._closed = True
        self.drain()

    def drain(self) -> List[ChatMessage]:
        """Take every pending item without waiting."""
        items = []
        while not self._queue.empty():
            items.append(self._queue.get_nowait())
        return items

    def qsize(self) -> int:
        return self._queue.qsize()


class ClientRegistry:
    """Set of live outbound channels plus the broadcast primitive."""

    def __init__(self) -> None:
        self._channels: List[OutboundChannel] = []
        self._lock = threading.Lock()

    def add(self, channel: OutboundChannel) -> None:
        with self._lock:
            self._channels.append(channel)

    def remove(self, channel: OutboundChannel) -> None:
        with self._lock:
            try:
                self._channels.remove(channel)
            except ValueError:
                pass

    def broadcast(self, message: ChatMessage) -> None:
        """Best-effort delivery to every channel.

        A channel that refuses the message is skipped, never retried, and
        pruned once the pass is over.
        """
        with self._lock:
            targets = list(self._channels)
        dead: List[OutboundChannel] = []
        for channel in targets:
            try:
                channel.send(message)
            except ChannelClosed:
                dead.append(channel)
        if dead:
            with self._lock:
                self._channels = [c for c in self._channels if c not in dead]
            logger.info("chat_broadcast_pruned", pruned=len(dead), delivered=len(targets) - len(dead))

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)

    def __contains__(self, channel: object) -> bool:
        with self._lock:
            return channel in self._channels
