import asyncio
import random
import re
import threading

import pytest

from application.ports.realtime import ClientChat, PublicUser, ServerChat, UserJoined, UserLeft, UserList
from client.chat_client import ChatClient, generate_random_name, render_server_frame


def test_random_name_shape():
    name = generate_random_name(random.Random(7))
    assert re.fullmatch(r"[A-Z][a-z]+[A-Z][a-z]+\d{1,3}", name)


def test_client_uses_room_url_and_random_name_when_unset():
    client = ChatClient(None, "127.0.0.1", 8080)
    assert client.url == "ws://127.0.0.1:8080/room/1"
    assert client.name

    assert ChatClient("Alice").name == "Alice"


def test_render_typed_frames():
    assert render_server_frame(ServerChat(text="Alice: hi").encode()) == ["Alice: hi"]
    assert render_server_frame(UserJoined(name="Bob").encode()) == ["*** Bob joined the chat ***"]
    assert render_server_frame(UserLeft(name="Bob").encode()) == ["*** Bob left the chat ***"]
    assert render_server_frame(
        UserList(count=2, users=[PublicUser(name="a"), PublicUser(name="b")]).encode()
    ) == ["=== Users online: 2 ===", "  a", "  b", "========================"]


def test_render_plain_frames_verbatim():
    assert render_server_frame("Carol: from the backlog") == ["Carol: from the backlog"]


class _RecordingSocket:
    def __init__(self):
        self.sent = []

    async def send(self, frame):
        self.sent.append(frame)


@pytest.mark.asyncio
async def test_writer_sends_non_blank_lines_until_eof():
    script = iter(["hello", "   ", "bye"])

    def read_line(prompt):
        try:
            return next(script)
        except StopIteration:
            raise EOFError

    out = []
    ws = _RecordingSocket()
    client = ChatClient("Alice", read_line=read_line, write=out.append)

    await asyncio.wait_for(client._writer(ws), timeout=2)

    assert ws.sent == [ClientChat(text="hello").encode(), ClientChat(text="bye").encode()]
    assert out[-1] == "Exiting chat..."


@pytest.mark.asyncio
async def test_blocked_stdin_read_does_not_hold_the_writer_open():
    release = threading.Event()
    started = threading.Event()

    def read_line(prompt):
        started.set()
        release.wait()
        raise EOFError

    client = ChatClient("Alice", read_line=read_line, write=lambda line: None)
    writer = asyncio.create_task(client._writer(_RecordingSocket()))
    await asyncio.sleep(0)
    assert await asyncio.to_thread(started.wait, 2)

    stdin_threads = [t for t in threading.enumerate() if t.name == "chat-stdin"]
    assert stdin_threads and all(t.daemon for t in stdin_threads)

    writer.cancel()
    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(writer, timeout=2)
    release.set()
