from __future__ import annotations

import pytest

from colloquy.bus import MessageBus


@pytest.mark.asyncio
async def test_bus_keeps_inbound_and_outbound_separate() -> None:
    bus = MessageBus()
    await bus.publish_inbound({"text": "in"})
    await bus.publish_outbound({"text": "out"})

    assert await bus.next_outbound(timeout_seconds=0.1) == {"text": "out"}
    assert await bus.next_inbound(timeout_seconds=0.1) == {"text": "in"}


@pytest.mark.asyncio
async def test_bus_preserves_arrival_order() -> None:
    bus = MessageBus()
    for text in ("one", "two", "three"):
        await bus.publish_inbound({"text": text})

    received = [await bus.next_inbound() for _ in range(3)]

    assert [item["text"] for item in received] == ["one", "two", "three"]


@pytest.mark.asyncio
async def test_bus_times_out_when_empty() -> None:
    bus = MessageBus()

    assert await bus.next_inbound(timeout_seconds=0.01) is None
    assert await bus.next_outbound(timeout_seconds=0.01) is None
