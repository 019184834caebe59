"""Explicit turn context and the async-guarded active resources."""

from __future__ import annotations

import asyncio
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from loguru import logger

from toolrelay.config import DEFAULT_SYSTEM_PROMPT, Settings
from toolrelay.errors import UnknownToolError
from toolrelay.ports import CompletionStreamProvider, EventSink, HistoryProvider, ToolCatalogProvider, ToolInvoker

_session_context: ContextVar[str] = ContextVar("session")


def current_session() -> str:
    """Get the session id of the turn running in this context."""
    return _session_context.get("-")


class _NoToolsInvoker:
    async def invoke(self, qualified_name: str, arguments: dict[str, Any]) -> str:
        raise UnknownToolError(f"No tool catalog is active; cannot call '{qualified_name}'")


NO_TOOLS = _NoToolsInvoker()


@dataclass(frozen=True)
class ResourceSnapshot:
    """Model and tools read once at turn start."""

    model_id: str | None
    catalog: ToolCatalogProvider | None
    invoker: ToolInvoker


class ActiveResources:
    """Holder of the active model and tool catalog.

    Writers and turn-start readers serialize through an `asyncio.Lock`, so a swap
    never interleaves with a snapshot. A turn already running keeps its snapshot.
    """

    def __init__(
        self,
        model_id: str | None = None,
        *,
        catalog: ToolCatalogProvider | None = None,
        invoker: ToolInvoker | None = None,
    ) -> None:
        self._lock = asyncio.Lock()
        self._model_id = model_id
        self._catalog = catalog
        self._invoker = invoker

    async def load_model(self, model_id: str) -> None:
        async with self._lock:
            logger.info("resources.model.load model={} previous={}", model_id, self._model_id)
            self._model_id = model_id

    async def unload_model(self) -> None:
        async with self._lock:
            logger.info("resources.model.unload model={}", self._model_id)
            self._model_id = None

    async def set_tools(self, catalog: ToolCatalogProvider | None, invoker: ToolInvoker | None) -> None:
        async with self._lock:
            self._catalog = catalog
            self._invoker = invoker

    async def snapshot(self) -> ResourceSnapshot:
        async with self._lock:
            return ResourceSnapshot(
                model_id=self._model_id,
                catalog=self._catalog,
                invoker=self._invoker or NO_TOOLS,
            )


@dataclass
class TurnContext:
    """Collaborators and options for `run_turn`."""

    stream_provider: CompletionStreamProvider
    resources: ActiveResources
    sink: EventSink | None = None
    history: HistoryProvider | None = None
    session_id: str | None = None
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    include_history: bool = False
    max_history_messages: int = 20
    tool_timeout_seconds: float | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        stream_provider: CompletionStreamProvider,
        resources: ActiveResources,
        sink: EventSink | None = None,
        history: HistoryProvider | None = None,
        session_id: str | None = None,
    ) -> TurnContext:
        return cls(
            stream_provider=stream_provider,
            resources=resources,
            sink=sink,
            history=history,
            session_id=session_id,
            system_prompt=settings.system_prompt,
            include_history=settings.include_history,
            max_history_messages=settings.max_history_messages,
            tool_timeout_seconds=settings.tool_timeout_seconds,
        )
