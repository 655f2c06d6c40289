"""Registry of connected users keyed by connection id."""
from __future__ import annotations

import threading
from typing import Dict, List

from domain.chat.entity import User


class PresenceRegistry:
    """Maps opaque connection ids to users.

    Display names are not unique; two connections may share one.
    """

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    def register(self, connection_id: str, name: str) -> User:
        user = User(id=connection_id, name=name)
        with self._lock:
            self._users[connection_id] = user
        return user

    def unregister(self, connection_id: str) -> None:
        with self._lock:
            self._users.pop(connection_id, None)

    def snapshot(self) -> List[User]:
        with self._lock:
            return list(self._users.values())

    def __contains__(self, connection_id: object) -> bool:
        with self._lock:
            return connection_id in self._users

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)
