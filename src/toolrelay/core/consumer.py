"""Primary completion stream consumption."""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from toolrelay.core.dispatcher import ToolDispatcher
from toolrelay.core.scanner import has_incomplete_call
from toolrelay.core.state import TurnState
from toolrelay.errors import TransportError
from toolrelay.ports import CompletionStreamProvider, EventSink
from toolrelay.sinks import emit
from toolrelay.types import Message, SamplingParams, TokenEvent


class StreamingConsumer:
    """Drives one backend stream, resolving tool calls as their blocks complete."""

    def __init__(
        self,
        provider: CompletionStreamProvider,
        dispatcher: ToolDispatcher,
        *,
        sink: EventSink | None = None,
    ) -> None:
        self._provider = provider
        self._dispatcher = dispatcher
        self._sink = sink

    async def consume(
        self,
        state: TurnState,
        *,
        model_id: str,
        messages: Sequence[Message],
        params: SamplingParams,
    ) -> None:
        """Stream into `state.buffer`.

        Raises `TransportError` only when the stream fails before producing any
        text; a later failure ends the segment and is recorded on the state.
        """

        received = False
        stream = None
        try:
            stream = self._provider.stream(model_id, messages, params)
            async for chunk in stream:
                if chunk.delta_text:
                    received = True
                    state.append(chunk.delta_text)
                    await emit(self._sink, TokenEvent(token=chunk.delta_text))
                    await self._resolve_calls(state)
                if chunk.finished:
                    break
        except Exception as exc:
            error = exc if isinstance(exc, TransportError) else TransportError(str(exc) or type(exc).__name__)
            if not received:
                logger.warning("stream.open_failed model={} error={}", model_id, error)
                if error is exc:
                    raise
                raise error from exc
            logger.opt(exception=True).warning("stream.transport_error model={} error={}", model_id, error)
            state.errors.append(f"transport_error: {error}")
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        # A call abandoned by a splice still counts until a closing tag follows it.
        start = state.scanner.offset if state.abandoned_offset is None else state.abandoned_offset
        if has_incomplete_call(state.buffer[start:]):
            state.incomplete_call = True
            logger.warning("stream.incomplete_tool_call offset={}", start)

    async def _resolve_calls(self, state: TurnState) -> None:
        calls = state.scanner.scan(state.buffer)
        if not calls:
            return
        if state.scanner.pending:
            state.abandoned_offset = state.scanner.offset
            logger.warning("tool.call.abandoned offset={}", state.scanner.offset)
        await self._dispatcher.dispatch(state, calls)
