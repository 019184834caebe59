"""Deduplicated tool dispatch and response splicing."""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any

from loguru import logger

from toolrelay.core.scanner import ExtractedCall
from toolrelay.core.state import TurnState
from toolrelay.errors import ToolArgumentParseError
from toolrelay.ports import EventSink, ToolInvoker
from toolrelay.sinks import emit
from toolrelay.types import TokenEvent, ToolEvent, ToolInvocation, ToolOutcome


def parse_arguments(arguments_text: str) -> dict[str, Any]:
    """Decode a tool-call arguments payload into a mapping."""

    try:
        data = json.loads(arguments_text)
    except json.JSONDecodeError as exc:
        raise ToolArgumentParseError(f"invalid arguments JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ToolArgumentParseError(f"arguments must be a JSON object, got {type(data).__name__}")
    return data


def strip_nulls(arguments: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in arguments.items() if value is not None}


class ToolDispatcher:
    """Runs newly detected tool calls once each and splices their responses into the turn."""

    def __init__(
        self,
        invoker: ToolInvoker,
        *,
        sink: EventSink | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._invoker = invoker
        self._sink = sink
        self._timeout_seconds = timeout_seconds

    async def dispatch(self, state: TurnState, calls: list[ExtractedCall]) -> list[ToolOutcome]:
        outcomes: list[ToolOutcome] = []
        for name, arguments_text in calls:
            try:
                arguments = parse_arguments(arguments_text)
            except ToolArgumentParseError as exc:
                logger.warning("tool.arguments.invalid name={} error={}", name, exc)
                arguments = {}

            invocation = ToolInvocation(name=name, arguments=arguments)
            signature = invocation.signature
            if signature in state.executed_signatures:
                logger.info("tool.dispatch.duplicate name={}", name)
                continue
            state.executed_signatures.add(signature)

            outcome = await self._invoke(invocation)
            block = outcome.block()
            state.append(block)
            state.scanner.skip_to(len(state.buffer))
            state.outcomes.append(outcome)
            state.continuation_needed = True
            outcomes.append(outcome)

            await emit(self._sink, TokenEvent(token=block))
            await emit(
                self._sink,
                ToolEvent(
                    tool_name=name,
                    arguments=strip_nulls(arguments),
                    result=outcome.text,
                    ok=outcome.ok,
                ),
            )
        return outcomes

    async def _invoke(self, invocation: ToolInvocation) -> ToolOutcome:
        arguments = strip_nulls(invocation.arguments)
        logger.info("tool.dispatch.start name={} arguments={}", invocation.name, arguments)
        start = time.monotonic()
        deadline = asyncio.timeout(self._timeout_seconds)
        try:
            async with deadline:
                result = await self._invoker.invoke(invocation.name, arguments)
        except TimeoutError as exc:
            if deadline.expired():
                text = f"tool_timeout: no result within {self._timeout_seconds}s"
            else:
                text = str(exc) or "timeout"
            logger.warning("tool.dispatch.timeout name={} error={}", invocation.name, text)
            return ToolOutcome(invocation=invocation, ok=False, text=text)
        except Exception as exc:
            logger.opt(exception=True).warning("tool.dispatch.error name={}", invocation.name)
            return ToolOutcome(invocation=invocation, ok=False, text=str(exc) or type(exc).__name__)
        finally:
            duration = time.monotonic() - start
            logger.info("tool.dispatch.end name={} duration={:.3f}ms", invocation.name, duration * 1000)
        return ToolOutcome(invocation=invocation, ok=True, text=str(result))
