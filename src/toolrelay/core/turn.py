"""Tool-augmented streaming turn."""

from __future__ import annotations

import time

from loguru import logger

from toolrelay.core.assembler import RequestAssembler
from toolrelay.core.consumer import StreamingConsumer
from toolrelay.core.context import TurnContext, _session_context
from toolrelay.core.continuation import ContinuationController
from toolrelay.core.dispatcher import ToolDispatcher
from toolrelay.core.state import TurnPhase, TurnState
from toolrelay.errors import NoModelLoadedError
from toolrelay.sinks import emit
from toolrelay.types import SamplingParams, TokenEvent, TurnResult


async def run_turn(
    user_message: str,
    context: TurnContext,
    params: SamplingParams | None = None,
) -> TurnResult:
    """Run one user turn through streaming, tool dispatch and at most one continuation.

    Raises `NoModelLoadedError` when no model is active and `TransportError` when
    the primary stream produces no output at all. Every other failure is folded
    into the returned text.
    """

    token = _session_context.set(context.session_id or "-")
    try:
        return await _run_turn(user_message, context, params or SamplingParams())
    finally:
        _session_context.reset(token)


async def _run_turn(user_message: str, context: TurnContext, params: SamplingParams) -> TurnResult:
    snapshot = await context.resources.snapshot()
    if snapshot.model_id is None:
        raise NoModelLoadedError("No model is currently loaded. Please load a model first.")
    model_id = snapshot.model_id

    start = time.monotonic()
    state = TurnState()
    logger.info("turn.start model={} chars={}", model_id, len(user_message))

    assembler = RequestAssembler(
        system_prompt=context.system_prompt,
        catalog=snapshot.catalog,
        history=context.history,
        include_history=context.include_history,
        max_history_messages=context.max_history_messages,
    )
    messages = await assembler.assemble(user_message, session_id=context.session_id)

    dispatcher = ToolDispatcher(snapshot.invoker, sink=context.sink, timeout_seconds=context.tool_timeout_seconds)
    consumer = StreamingConsumer(context.stream_provider, dispatcher, sink=context.sink)
    state.advance(TurnPhase.STREAMING)
    await consumer.consume(state, model_id=model_id, messages=messages, params=params)
    state.advance(TurnPhase.STREAM_DONE)

    text = state.buffer
    continued = False
    controller = ContinuationController(context.stream_provider, sink=context.sink)
    if controller.should_continue(state):
        state.advance(TurnPhase.CONTINUING)
        text += await controller.run(state, model_id=model_id, messages=messages, params=params)
        continued = True
        state.advance(TurnPhase.CONTINUATION_DONE)

    state.advance(TurnPhase.DONE)
    await emit(context.sink, TokenEvent(token="", finished=True))
    logger.info(
        "turn.done model={} tools={} continued={} errors={} duration={:.3f}ms",
        model_id,
        len(state.outcomes),
        continued,
        len(state.errors),
        (time.monotonic() - start) * 1000,
    )
    return TurnResult(
        text=text,
        outcomes=list(state.outcomes),
        continued=continued,
        incomplete_call=state.incomplete_call,
        errors=list(state.errors),
    )
