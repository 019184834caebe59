"""Collaborator contracts consumed by the turn orchestrator."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol

from toolrelay.types import HistoryEntry, Message, SamplingParams, SinkEvent, StreamChunk, ToolSpec


class CompletionStreamProvider(Protocol):
    """Opens one streamed completion for an ordered message list."""

    def stream(
        self,
        model_id: str,
        messages: Sequence[Message],
        params: SamplingParams,
    ) -> AsyncIterator[StreamChunk]: ...


class ToolCatalogProvider(Protocol):
    """Lists the tools the model may call."""

    def catalog(self) -> list[ToolSpec]: ...


class ToolInvoker(Protocol):
    """Runs one tool by qualified name; raises on failure."""

    async def invoke(self, qualified_name: str, arguments: dict[str, Any]) -> str: ...


class HistoryProvider(Protocol):
    """Returns prior session messages, oldest first."""

    async def history(self, session_id: str) -> list[HistoryEntry]: ...


class EventSink(Protocol):
    """Push-only channel for incremental turn events."""

    async def push(self, event: SinkEvent) -> None: ...
