"""Minimal async activity bus used by the framework."""

from __future__ import annotations

import asyncio
from typing import Protocol

from colloquy.types import Activity


class BusProtocol(Protocol):
    """Minimal async contract for bus providers."""

    async def publish_inbound(self, message: Activity) -> None: ...

    async def publish_outbound(self, message: Activity) -> None: ...

    async def next_inbound(self, timeout_seconds: float | None = None) -> Activity | None: ...

    async def next_outbound(self, timeout_seconds: float | None = None) -> Activity | None: ...


class MessageBus:
    """In-memory async bus for inbound/outbound activities."""

    def __init__(self) -> None:
        self._inbound: asyncio.Queue[Activity] = asyncio.Queue()
        self._outbound: asyncio.Queue[Activity] = asyncio.Queue()

    async def publish_inbound(self, message: Activity) -> None:
        await self._inbound.put(message)

    async def publish_outbound(self, message: Activity) -> None:
        await self._outbound.put(message)

    async def next_inbound(self, timeout_seconds: float | None = None) -> Activity | None:
        return await self._next(self._inbound, timeout_seconds)

    async def next_outbound(self, timeout_seconds: float | None = None) -> Activity | None:
        return await self._next(self._outbound, timeout_seconds)

    @staticmethod
    async def _next(queue: asyncio.Queue[Activity], timeout_seconds: float | None) -> Activity | None:
        if timeout_seconds is None:
            return await queue.get()
        try:
            return await asyncio.wait_for(queue.get(), timeout=timeout_seconds)
        except TimeoutError:
            return None
