import pytest

from application.ports.realtime import ServerChat, UserJoined, UserList
from domain.chat.entity import ChatMessage
from infrastructure.realtime.connection_manager import ChannelClosed, ClientRegistry, OutboundChannel


def _drain(channel: OutboundChannel) -> list:
    return channel.drain()


@pytest.mark.asyncio
async def test_broadcast_delivers_same_payload_to_every_channel():
    registry = ClientRegistry()
    channels = [OutboundChannel() for _ in range(5)]
    for channel in channels:
        registry.add(channel)

    registry.broadcast(ChatMessage(text="Broadcast test"))

    for channel in channels:
        assert (await channel.receive()).text == "Broadcast test"


@pytest.mark.asyncio
async def test_dropped_receiver_does_not_block_the_others_and_is_pruned():
    registry = ClientRegistry()
    alive = [OutboundChannel() for _ in range(3)]
    dead = OutboundChannel()
    registry.add(alive[0])
    registry.add(dead)
    registry.add(alive[1])
    registry.add(alive[2])
    dead.close()

    registry.broadcast(ChatMessage(text="still delivered"))

    assert [_drain(c) for c in alive] == [[ChatMessage(text="still delivered")]] * 3
    assert dead not in registry
    assert len(registry) == 3

    # A pruned channel is never retried
    registry.broadcast(ChatMessage(text="second"))
    assert _drain(dead) == []


@pytest.mark.asyncio
async def test_each_recipient_sees_broadcasts_in_call_order():
    registry = ClientRegistry()
    first, second = OutboundChannel(), OutboundChannel()
    registry.add(first)
    for i in range(3):
        registry.broadcast(ChatMessage(text=f"n{i}"))
    registry.add(second)
    registry.broadcast(ChatMessage(text="n3"))

    assert [m.text for m in _drain(first)] == ["n0", "n1", "n2", "n3"]
    assert [m.text for m in _drain(second)] == ["n3"]


def test_closed_channel_rejects_sends():
    channel = OutboundChannel()
    channel.send(ChatMessage(text="queued"))
    channel.close()

    assert channel.closed
    assert channel.qsize() == 0
    with pytest.raises(ChannelClosed):
        channel.send(ChatMessage(text="late"))


def test_remove_is_idempotent():
    registry = ClientRegistry()
    channel = OutboundChannel()
    registry.add(channel)
    registry.remove(channel)
    registry.remove(channel)
    assert len(registry) == 0


def test_hub_posts_store_and_broadcast_together(hub):
    peer = OutboundChannel()
    hub.join("peer", "Bob", peer)

    hub.post_chat("Alice", "hi")
    hub.post_raw("plain")

    assert [m.text for m in hub.backlog()] == ["Alice: hi", "plain"]
    assert [m.text for m in _drain(peer)] == [ServerChat(text="Alice: hi").encode(), "plain"]


def test_hub_announces_presence_snapshot_then_join(hub):
    peer = OutboundChannel()
    user = hub.join("peer", "Bob", peer)
    hub.announce_joined(user)

    frames = [m.text for m in _drain(peer)]
    assert frames == [
        UserList.from_users([user]).encode(),
        UserJoined(name="Bob").encode(),
    ]


def test_hub_post_respects_capacity():
    from application.services.chat_service import ChatHub

    small = ChatHub.create(max_messages=2)
    for i in range(5):
        small.post_raw(f"m{i}")
    assert [m.text for m in small.backlog()] == ["m3", "m4"]


def test_drain_returns_pending_frames_in_order_and_empties_the_channel():
    channel = OutboundChannel()
    channel.send(ChatMessage(text="one"))
    channel.send(ChatMessage(text="two"))

    assert [m.text for m in channel.drain()] == ["one", "two"]
    assert channel.qsize() == 0
    assert channel.drain() == []
