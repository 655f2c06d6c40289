"""Pytest bootstrap configuration.

Pins settings that tests rely on before application modules are imported,
and provides in-memory stand-ins for network transports.
"""
import os

os.environ.setdefault("CHAT__MAX_MESSAGES", "1000")
os.environ.setdefault("CHAT__GUEST_PREFIX", "User_")

import asyncio
from typing import List, Optional, Union

import pytest

from application.services.chat_service import ChatHub


class FakeTransport:
    """Scripted peer: frames are fed through ``push``; sends are recorded."""

    def __init__(self, *frames: Union[str, None, BaseException]) -> None:
        self._inbox: asyncio.Queue = asyncio.Queue()
        for frame in frames:
            self._inbox.put_nowait(frame)
        self.sent: List[str] = []
        self.fail_sends = False
        self.closed = False

    def push(self, frame: Union[str, None, BaseException]) -> None:
        self._inbox.put_nowait(frame)

    def hang_up(self) -> None:
        self._inbox.put_nowait(None)

    async def receive_text(self) -> Optional[str]:
        if self.closed:
            return None
        frame = await self._inbox.get()
        if frame is None:
            self.closed = True
        if isinstance(frame, BaseException):
            raise frame
        return frame

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise ConnectionResetError("peer went away")
        self.sent.append(data)


async def eventually(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def hub() -> ChatHub:
    return ChatHub.create(max_messages=1000)


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def wait_until():
    return eventually
