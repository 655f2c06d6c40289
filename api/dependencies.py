"""
API dependencies: access to the process-wide chat hub.
"""
from starlette.requests import HTTPConnection

from application.services.chat_service import ChatHub


def get_chat_hub(conn: HTTPConnection) -> ChatHub:
    """Hub created by the application lifespan (works for HTTP and WebSocket)."""
    hub = getattr(conn.app.state, "chat_hub", None)
    if hub is None:
        raise RuntimeError("Chat hub not initialized. Ensure lifespan sets app.state.chat_hub.")
    return hub
