"""Event sink implementations and the failure-tolerant push helper."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable

from loguru import logger

from toolrelay.ports import EventSink
from toolrelay.types import SinkEvent


async def emit(sink: EventSink | None, event: SinkEvent) -> None:
    """Push one event; a failing sink is logged and never aborts the turn."""

    if sink is None:
        return
    try:
        await sink.push(event)
    except Exception:
        logger.opt(exception=True).warning("sink.push_failed event={}", type(event).__name__)


class QueueEventSink:
    """In-memory async queue of turn events."""

    def __init__(self) -> None:
        self._events: asyncio.Queue[SinkEvent] = asyncio.Queue()

    async def push(self, event: SinkEvent) -> None:
        await self._events.put(event)

    async def next_event(self, timeout_seconds: float | None = None) -> SinkEvent | None:
        if timeout_seconds is None:
            return await self._events.get()
        try:
            return await asyncio.wait_for(self._events.get(), timeout=timeout_seconds)
        except TimeoutError:
            return None

    def drain(self) -> list[SinkEvent]:
        events: list[SinkEvent] = []
        while not self._events.empty():
            events.append(self._events.get_nowait())
        return events


class CallbackEventSink:
    """Forwards each event to a sync or async callback."""

    def __init__(self, callback: Callable[[SinkEvent], Awaitable[None] | None]) -> None:
        self._callback = callback

    async def push(self, event: SinkEvent) -> None:
        result = self._callback(event)
        if inspect.isawaitable(result):
            await result
