"""Core turn orchestration."""

from toolrelay.core.assembler import RequestAssembler
from toolrelay.core.consumer import StreamingConsumer
from toolrelay.core.context import ActiveResources, ResourceSnapshot, TurnContext
from toolrelay.core.continuation import ContinuationController
from toolrelay.core.dispatcher import ToolDispatcher
from toolrelay.core.scanner import ToolCallScanner, extract_calls, has_incomplete_call, split_tool_markup
from toolrelay.core.state import TurnPhase, TurnState
from toolrelay.core.turn import run_turn

__all__ = [
    "ActiveResources",
    "ContinuationController",
    "RequestAssembler",
    "ResourceSnapshot",
    "StreamingConsumer",
    "ToolCallScanner",
    "ToolDispatcher",
    "TurnContext",
    "TurnPhase",
    "TurnState",
    "extract_calls",
    "has_incomplete_call",
    "run_turn",
    "split_tool_markup",
]
