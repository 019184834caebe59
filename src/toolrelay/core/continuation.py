"""Single follow-up completion after tool results are known."""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from toolrelay.core.state import TurnState
from toolrelay.errors import ContinuationError
from toolrelay.ports import CompletionStreamProvider, EventSink
from toolrelay.sinks import emit
from toolrelay.types import Message, SamplingParams, TokenEvent


class ContinuationController:
    """Asks the model once to turn tool-augmented output into a final answer.

    Continuation text is forwarded as-is. Tool-call markup inside it is not
    scanned or dispatched.
    """

    def __init__(self, provider: CompletionStreamProvider, *, sink: EventSink | None = None) -> None:
        self._provider = provider
        self._sink = sink

    @staticmethod
    def should_continue(state: TurnState) -> bool:
        return state.continuation_needed

    @staticmethod
    def build_messages(messages: Sequence[Message], buffer: str) -> list[Message]:
        return [*messages, Message(role="assistant", text=buffer)]

    async def run(
        self,
        state: TurnState,
        *,
        model_id: str,
        messages: Sequence[Message],
        params: SamplingParams,
    ) -> str:
        parts: list[str] = []
        stream = None
        logger.info("continuation.start model={} outcomes={}", model_id, len(state.outcomes))
        try:
            stream = self._provider.stream(model_id, self.build_messages(messages, state.buffer), params)
            async for chunk in stream:
                if chunk.delta_text:
                    parts.append(chunk.delta_text)
                    await emit(self._sink, TokenEvent(token=chunk.delta_text))
                if chunk.finished:
                    break
        except Exception as exc:
            error = ContinuationError(str(exc) or type(exc).__name__)
            logger.opt(exception=True).warning("continuation.error model={} error={}", model_id, error)
            state.errors.append(f"continuation_error: {error}")
            annotation = f"\n[continuation error: {error}]"
            parts.append(annotation)
            await emit(self._sink, TokenEvent(token=annotation))
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        logger.info("continuation.end model={} chars={}", model_id, sum(len(part) for part in parts))
        return "".join(parts)
