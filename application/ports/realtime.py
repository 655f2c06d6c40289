"""
Realtime wire protocol and transport port (contracts-first).

Frames are JSON objects whose ``type`` field selects the variant; the
variant's fields sit alongside it::

    {"type": "Connect", "name": "Alice"}
    {"type": "Chat", "text": "hi"}
    {"type": "Disconnect"}
    {"type": "UserList", "count": 1, "users": [{"name": "Alice"}]}

Decoding never raises. A frame that does not match the schema comes back
as ``Legacy(raw)`` so older peers that send bare text keep working.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Iterable, Literal, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from domain.chat.entity import User
from domain.common.exceptions import ProtocolError


class _Frame(BaseModel):
    model_config = ConfigDict(frozen=True)

    def encode(self) -> str:
        return self.model_dump_json()


# -------------------- client -> server --------------------
class ClientConnect(_Frame):
    """Declares the sender's display name; sent once after the upgrade."""
    type: Literal["Connect"] = "Connect"
    name: str


class ClientChat(_Frame):
    type: Literal["Chat"] = "Chat"
    text: str


class ClientDisconnect(_Frame):
    type: Literal["Disconnect"] = "Disconnect"


ClientMessage = Annotated[
    Union[ClientConnect, ClientChat, ClientDisconnect],
    Field(discriminator="type"),
]


# -------------------- server -> client --------------------
class PublicUser(_Frame):
    """Reduced projection of a user; the connection id never leaves the hub."""
    name: str


class ServerChat(_Frame):
    type: Literal["Chat"] = "Chat"
    text: str


class UserList(_Frame):
    type: Literal["UserList"] = "UserList"
    count: int
    users: list[PublicUser] = Field(default_factory=list)

    @classmethod
    def from_users(cls, users: Iterable[User]) -> "UserList":
        public = [PublicUser(name=u.name) for u in users]
        return cls(count=len(public), users=public)


class UserJoined(_Frame):
    type: Literal["UserJoined"] = "UserJoined"
    name: str


class UserLeft(_Frame):
    type: Literal["UserLeft"] = "UserLeft"
    name: str


ServerMessage = Annotated[
    Union[ServerChat, UserList, UserJoined, UserLeft],
    Field(discriminator="type"),
]


class LegacyMessage(BaseModel):
    """Pre-protocol frame shape: ``{"text": "Name: body"}``."""
    text: str


_client_adapter: TypeAdapter = TypeAdapter(ClientMessage)
_server_adapter: TypeAdapter = TypeAdapter(ServerMessage)
_legacy_adapter: TypeAdapter = TypeAdapter(LegacyMessage)


# -------------------- decode result --------------------
@dataclass(frozen=True)
class Typed:
    message: _Frame


@dataclass(frozen=True)
class Legacy:
    raw: str


DecodeResult = Union[Typed, Legacy]


def _parse(adapter: TypeAdapter, raw: str):
    try:
        return adapter.validate_json(raw)
    except ValidationError as exc:
        raise ProtocolError(str(exc.errors()[0].get("msg", "invalid frame")), raw) from exc


def decode_client_message(raw: str) -> DecodeResult:
    try:
        return Typed(_parse(_client_adapter, raw))
    except ProtocolError:
        return Legacy(raw)


def decode_server_message(raw: str) -> DecodeResult:
    try:
        return Typed(_parse(_server_adapter, raw))
    except ProtocolError:
        return Legacy(raw)


def legacy_text(raw: str) -> str:
    """Text carried by a legacy frame: the ``text`` field of a
    ``{"text": ...}`` object, or the raw frame itself."""
    try:
        return _parse(_legacy_adapter, raw).text
    except ProtocolError:
        return raw


def encode(message: _Frame) -> str:
    return message.encode()


# -------------------- transport port --------------------
class Transport(Protocol):
    """One bidirectional connection as seen by the connection actor.

    ``receive_text`` returns ``None`` once the peer is gone and raises
    ``NonTextFrame`` for frames that carry no text. ``send_text`` raises
    on write failure.
    """

    async def receive_text(self) -> Optional[str]: ...

    async def send_text(self, data: str) -> None: ...


class NonTextFrame(Exception):
    """The peer sent a frame without text content (e.g. binary)."""


__all__ = [
    "ClientConnect",
    "ClientChat",
    "ClientDisconnect",
    "ClientMessage",
    "PublicUser",
    "ServerChat",
    "UserList",
    "UserJoined",
    "UserLeft",
    "ServerMessage",
    "LegacyMessage",
    "Typed",
    "Legacy",
    "DecodeResult",
    "decode_client_message",
    "decode_server_message",
    "legacy_text",
    "encode",
    "Transport",
    "NonTextFrame",
]
