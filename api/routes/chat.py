"""Chat room routes: WebSocket channel plus the HTTP polling fallback.

There is exactly one room, ``/room/1``.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, WebSocket, status
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel
from starlette.websockets import WebSocketState

from application.services.chat_service import ChatHub
from application.services.connection_actor import ConnectionActor
from api.dependencies import get_chat_hub
from infrastructure.realtime.transport import WebSocketTransport
from core.logging_config import get_logger


logger = get_logger(__name__)


router = APIRouter(tags=["Chat"])


class PostMessageRequest(BaseModel):
    text: str


@router.get("/messages", response_class=PlainTextResponse)
async def get_messages(hub: ChatHub = Depends(get_chat_hub)) -> PlainTextResponse:
    """Full backlog, one message per line."""
    body = "".join(f"{m.text}\n" for m in hub.backlog())
    return PlainTextResponse(body, status_code=status.HTTP_200_OK)


@router.post("/room/1", status_code=status.HTTP_201_CREATED)
async def post_message(req: PostMessageRequest, hub: ChatHub = Depends(get_chat_hub)) -> Response:
    hub.post_raw(req.text)
    logger.info("chat_http_message_posted", size=len(req.text))
    return Response(status_code=status.HTTP_201_CREATED)


@router.get("/users")
async def get_users(hub: ChatHub = Depends(get_chat_hub)) -> dict:
    """Presence snapshot; only display names are exposed."""
    return hub.user_list().model_dump(exclude={"type"})


@router.websocket("/room/1")
async def room_websocket(ws: WebSocket, hub: ChatHub = Depends(get_chat_hub)) -> None:
    await ws.accept()
    actor = ConnectionActor(hub, WebSocketTransport(ws))
    logger.info("chat_connection_opened", connection_id=actor.connection_id)
    await actor.run()
    logger.info("chat_connection_closed", connection_id=actor.connection_id, user_name=actor.name)
    if ws.client_state == WebSocketState.CONNECTED and ws.application_state == WebSocketState.CONNECTED:
        try:
            await ws.close()
        except RuntimeError:
            pass
