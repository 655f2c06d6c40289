import asyncio
import io
from datetime import timedelta

import pytest

from application.services.dashboard import CLEAR_SCREEN, render_dashboard, run_dashboard
from domain.chat.entity import User
from infrastructure.realtime.presence import PresenceRegistry


def test_render_without_users():
    frame = render_dashboard([])
    assert "Connected Users: 0" in frame
    assert "No users connected" in frame


def test_render_lists_users_with_connection_age():
    user = User(id="c1", name="Alice")
    frame = render_dashboard([user], now=user.connected_at + timedelta(seconds=7))
    assert "Connected Users: 1" in frame
    assert "Alice (7s ago)" in frame


def test_render_truncates_long_lists_and_names():
    base = User(id="x", name="x").connected_at
    users = [User(id=str(i), name=f"user{i}", connected_at=base + timedelta(seconds=i)) for i in range(12)]
    users.append(User(id="long", name="N" * 40, connected_at=base + timedelta(seconds=99)))

    frame = render_dashboard(users, now=base + timedelta(seconds=100), max_rows=10)

    assert "Connected Users: 13" in frame
    assert "user9 " in frame
    assert "user10" not in frame
    assert "... and 3 more users" in frame
    assert "N" * 31 not in frame


@pytest.mark.asyncio
async def test_run_dashboard_redraws_until_cancelled():
    presence = PresenceRegistry()
    presence.register("c1", "Alice")
    out = io.StringIO()

    task = asyncio.create_task(run_dashboard(presence, refresh_interval_s=0.01, out=out))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    text = out.getvalue()
    assert text.count(CLEAR_SCREEN) >= 2
    assert "Alice" in text
