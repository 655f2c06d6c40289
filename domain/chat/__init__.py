from .entity import ChatMessage, User, chat_message, generate_guest_name, new_connection_id

__all__ = [
    "ChatMessage",
    "User",
    "chat_message",
    "generate_guest_name",
    "new_connection_id",
]
