"""Per-turn state owned by the task running the turn."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from loguru import logger

from toolrelay.core.scanner import ToolCallScanner
from toolrelay.types import ToolOutcome


class TurnPhase(StrEnum):
    ASSEMBLING = "assembling"
    STREAMING = "streaming"
    STREAM_DONE = "stream_done"
    CONTINUING = "continuing"
    CONTINUATION_DONE = "continuation_done"
    DONE = "done"


@dataclass
class TurnState:
    """Append-only buffer plus dispatch bookkeeping for one turn."""

    buffer: str = ""
    executed_signatures: set[str] = field(default_factory=set)
    continuation_needed: bool = False
    incomplete_call: bool = False
    abandoned_offset: int | None = None
    outcomes: list[ToolOutcome] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    scanner: ToolCallScanner = field(default_factory=ToolCallScanner)
    phase: TurnPhase = TurnPhase.ASSEMBLING

    def append(self, text: str) -> None:
        self.buffer += text

    def advance(self, phase: TurnPhase) -> None:
        logger.debug("turn.phase from={} to={}", self.phase.value, phase.value)
        self.phase = phase
