"""Domain-level chat exceptions, shared by the domain and infrastructure layers.

The core layer only maps these to HTTP responses; the domain never depends
on the core layer.
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class ChatException(Exception):
    """Base class for chat hub errors."""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "ChatError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class ProtocolError(ChatException):
    """A frame did not match the tagged wire schema.

    Raised only inside the codec; callers always see the legacy fallback.
    """

    def __init__(self, reason: str, raw: Optional[str] = None):
        details = {"reason": reason}
        if raw is not None:
            details["raw"] = raw[:200]
        super().__init__(
            code=BusinessCode.PROTOCOL_ERROR,
            message=f"Invalid message format: {reason}",
            error_type="ProtocolError",
            details=details,
        )


class ServerBindError(ChatException):
    """The listener could not bind its address. Fatal at startup."""

    def __init__(self, host: str, port: int, reason: str):
        super().__init__(
            code=BusinessCode.NETWORK_ERROR,
            message=f"Failed to bind to {host}:{port}: {reason}",
            error_type="ServerBindError",
            details={"host": host, "port": port, "reason": reason},
        )


__all__ = ["ChatException", "ProtocolError", "ServerBindError"]
