"""Bounded, append-only chat history shared by every connection."""
from __future__ import annotations

import threading
from collections import deque
from typing import Deque, List

from domain.chat.entity import ChatMessage


MAX_MESSAGES = 1000


class MessageStore:
    """FIFO history capped at ``capacity``; the oldest lines are evicted first.

    Appending never reorders existing entries and reading never mutates.
    The lock is only taken inside synchronous methods.
    """

    def __init__(self, capacity: int = MAX_MESSAGES) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._messages: Deque[ChatMessage] = deque()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, message: ChatMessage) -> None:
        with self._lock:
            self._messages.append(message)
            while len(self._messages) > self._capacity:
                self._messages.popleft()

    def list(self) -> List[ChatMessage]:
        """Snapshot copy of the history, oldest first."""
        with self._lock:
            return list(self._messages)

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
