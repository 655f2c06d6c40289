"""Terminal presence dashboard for the server's dashboard mode."""
from __future__ import annotations

import asyncio
import sys
from datetime import datetime, timezone
from typing import Iterable, List, Optional, TextIO

from domain.chat.entity import User
from infrastructure.realtime.presence import PresenceRegistry


CLEAR_SCREEN = "\x1b[2J\x1b[H"
_WIDTH = 41
_NAME_LIMIT = 30


def _row(text: str) -> str:
    return "│ " + text.ljust(_WIDTH - 2)[: _WIDTH - 2] + "│"


def render_dashboard(users: Iterable[User], now: Optional[datetime] = None, max_rows: int = 10) -> str:
    now = now or datetime.now(timezone.utc)
    users = sorted(users, key=lambda u: u.connected_at)
    rule = "─" * _WIDTH
    lines: List[str] = [
        "┌" + rule + "┐",
        _row("Chat Server Dashboard"),
        "├" + rule + "┤",
        _row(f"Connected Users: {len(users)}"),
        "├" + rule + "┤",
    ]
    if not users:
        lines.append(_row("No users connected"))
    else:
        for user in users[:max_rows]:
            lines.append(_row(f"{user.name[:_NAME_LIMIT]} ({int(user.connected_for(now))}s ago)"))
        if len(users) > max_rows:
            lines.append(_row(f"... and {len(users) - max_rows} more users"))
    lines += [
        "├" + rule + "┤",
        _row("Press Ctrl+C to quit"),
        "└" + rule + "┘",
    ]
    return "\n".join(lines)


async def run_dashboard(
    presence: PresenceRegistry,
    *,
    refresh_interval_s: float = 1.0,
    max_rows: int = 10,
    out: TextIO = sys.stdout,
) -> None:
    """Redraw the presence snapshot until cancelled."""
    while True:
        out.write(CLEAR_SCREEN + render_dashboard(presence.snapshot(), max_rows=max_rows) + "\n")
        out.flush()
        await asyncio.sleep(refresh_interval_s)
