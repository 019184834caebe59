"""Shared data types for one orchestrated turn."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

type Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class Message:
    """One chat message sent to the completion backend."""

    role: Role
    text: str

    def to_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.text}


@dataclass(frozen=True)
class HistoryEntry:
    """One prior message as stored by the history provider."""

    role: str
    text: str


@dataclass(frozen=True)
class StreamChunk:
    """One delta delivered by a completion stream."""

    delta_text: str | None = None
    finished: bool = False


@dataclass(frozen=True)
class SamplingParams:
    """Optional sampling parameters forwarded to the backend."""

    temperature: float | None = None
    top_p: float | None = None
    seed: int | None = None
    max_tokens: int | None = None
    max_completion_tokens: int | None = None

    def as_kwargs(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call requested by the model."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    @property
    def signature(self) -> str:
        """Canonical (name, arguments) string used for per-turn deduplication."""
        return json.dumps([self.name, self.arguments], sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class ToolOutcome:
    """Result of one dispatched tool call."""

    invocation: ToolInvocation
    ok: bool
    text: str

    def block(self) -> str:
        body = self.text if self.ok else f"Error: {self.text}"
        return f"\n<tool_response>\n{body}\n</tool_response>"


@dataclass(frozen=True)
class ToolSpec:
    """Catalog entry describing one invocable tool."""

    qualified_name: str
    json_schema: dict[str, Any]
    description: str


@dataclass(frozen=True)
class TokenEvent:
    """Incremental text pushed to the sink."""

    token: str
    finished: bool = False


@dataclass(frozen=True)
class ToolEvent:
    """Tool execution report pushed to the sink."""

    tool_name: str
    arguments: dict[str, Any]
    result: str
    ok: bool = True


type SinkEvent = TokenEvent | ToolEvent


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one complete turn."""

    text: str
    outcomes: list[ToolOutcome] = field(default_factory=list)
    continued: bool = False
    incomplete_call: bool = False
    errors: list[str] = field(default_factory=list)
