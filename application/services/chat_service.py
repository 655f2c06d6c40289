"""Application service for the chat hub.

Owns the three shared registries and the use-cases that touch more than
one of them. Every method is synchronous: registry locks are never held
across an await.
"""
from __future__ import annotations

from typing import List

from application.ports.realtime import ServerChat, UserJoined, UserLeft, UserList
from domain.chat.entity import ChatMessage, User, chat_message
from infrastructure.realtime.connection_manager import ClientRegistry, OutboundChannel
from infrastructure.realtime.message_store import MAX_MESSAGES, MessageStore
from infrastructure.realtime.presence import PresenceRegistry
from core.logging_config import get_logger


logger = get_logger(__name__)


class ChatHub:
    def __init__(
        self,
        *,
        messages: MessageStore,
        presence: PresenceRegistry,
        clients: ClientRegistry,
        guest_prefix: str = "User_",
    ) -> None:
        self._messages = messages
        self._presence = presence
        self._clients = clients
        self.guest_prefix = guest_prefix

    @classmethod
    def create(cls, *, max_messages: int = MAX_MESSAGES, guest_prefix: str = "User_") -> "ChatHub":
        return cls(
            messages=MessageStore(max_messages),
            presence=PresenceRegistry(),
            clients=ClientRegistry(),
            guest_prefix=guest_prefix,
        )

    @property
    def messages(self) -> MessageStore:
        return self._messages

    @property
    def presence(self) -> PresenceRegistry:
        return self._presence

    @property
    def clients(self) -> ClientRegistry:
        return self._clients

    # Chat use-cases
    def post_chat(self, sender: str, text: str) -> ChatMessage:
        """Store ``"sender: text"`` and broadcast it as a typed Chat frame."""
        message = chat_message(sender, text)
        self._messages.append(message)
        self.broadcast_event(ServerChat(text=message.text))
        logger.debug("chat_message_posted", sender=sender, size=len(message.text))
        return message

    def post_raw(self, text: str) -> ChatMessage:
        """Store and broadcast ``text`` verbatim (legacy peers, HTTP ingress)."""
        message = ChatMessage(text=text)
        self._messages.append(message)
        self._clients.broadcast(message)
        logger.debug("chat_raw_message_posted", size=len(text))
        return message

    def backlog(self) -> List[ChatMessage]:
        return self._messages.list()

    # Presence use-cases
    def join(self, connection_id: str, name: str, channel: OutboundChannel) -> User:
        user = self._presence.register(connection_id, name)
        self._clients.add(channel)
        logger.info("chat_user_registered", user_name=name, online=len(self._presence))
        return user

    def announce_joined(self, user: User) -> None:
        self.broadcast_event(self.user_list())
        self.broadcast_event(UserJoined(name=user.name))

    def leave(self, connection_id: str, name: str, channel: OutboundChannel, *, announce: bool = True) -> None:
        self._clients.remove(channel)
        channel.close()
        self._presence.unregister(connection_id)
        if announce:
            self.broadcast_event(UserLeft(name=name))
        logger.info("chat_user_unregistered", user_name=name, online=len(self._presence))

    def user_list(self) -> UserList:
        return UserList.from_users(self._presence.snapshot())

    def broadcast_event(self, frame) -> None:
        """Encode a server frame and fan it out to every live connection."""
        self._clients.broadcast(ChatMessage(text=frame.encode()))
