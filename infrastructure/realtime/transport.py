"""Starlette WebSocket adapter for the ``Transport`` port."""
from __future__ import annotations

from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect

from application.ports.realtime import NonTextFrame


class WebSocketTransport:
    def __init__(self, ws: WebSocket) -> None:
        self._ws = ws

    async def receive_text(self) -> Optional[str]:
        try:
            message = await self._ws.receive()
        except (WebSocketDisconnect, RuntimeError):
            return None
        if message["type"] == "websocket.disconnect":
            return None
        text = message.get("text")
        if text is None:
            raise NonTextFrame()
        return text

    async def send_text(self, data: str) -> None:
        await self._ws.send_text(data)
