"""
Chat domain entities: messages and connected users.
"""
from datetime import datetime, timezone
from dataclasses import dataclass, field
import uuid


@dataclass(frozen=True)
class ChatMessage:
    """A single chat line. Immutable once created."""

    text: str


def chat_message(sender: str, body: str) -> ChatMessage:
    """Build a sender-prefixed chat line, ``"sender: body"``."""
    return ChatMessage(text=f"{sender}: {body}")


def new_connection_id() -> str:
    """Opaque, unique identity for one connection."""
    return str(uuid.uuid4())


def generate_guest_name(prefix: str = "User_") -> str:
    """Name for a peer that never declared one, e.g. ``User_1a2b3c4d``."""
    return prefix + uuid.uuid4().hex[:8]


@dataclass
class User:
    """A connected user, owned by the presence registry for one connection."""

    id: str
    name: str
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def connected_for(self, now: datetime | None = None) -> float:
        """Seconds since the connection was registered."""
        now = now or datetime.now(timezone.utc)
        return max(0.0, (now - self.connected_at).total_seconds())
