"""Tool-call markup scanning over streamed assistant text."""

from __future__ import annotations

import json
import re
from typing import Any

from toolrelay.types import ToolInvocation

TOOL_CALL_OPEN = "<tool_call>"
TOOL_CALL_CLOSE = "</tool_call>"
TOOL_CALL_RE = re.compile(r"<tool_call>(.*?)</tool_call>", re.DOTALL)
TOOL_RESPONSE_RE = re.compile(r"<tool_response>(.*?)</tool_response>", re.DOTALL)

type ExtractedCall = tuple[str, str]


def parse_call_body(body: str) -> ExtractedCall | None:
    """Parse the inner text of one tool-call block into (name, arguments JSON)."""

    try:
        data = json.loads(body.strip())
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    name = data.get("name")
    arguments = data.get("arguments")
    if not isinstance(name, str) or not isinstance(arguments, dict):
        return None
    return name, json.dumps(arguments, ensure_ascii=False)


def extract_calls(buffer: str) -> list[ExtractedCall]:
    """Return every well-formed tool call in document order."""

    calls: list[ExtractedCall] = []
    for match in TOOL_CALL_RE.finditer(buffer):
        call = parse_call_body(match.group(1))
        if call is not None:
            calls.append(call)
    return calls


def has_incomplete_call(buffer: str) -> bool:
    """True when the last opening tag has no closing tag after it."""

    last_open = buffer.rfind(TOOL_CALL_OPEN)
    if last_open == -1:
        return False
    return buffer.find(TOOL_CALL_CLOSE, last_open + len(TOOL_CALL_OPEN)) == -1


class ToolCallScanner:
    """Incremental scanner that resumes from the last fully processed offset.

    Text before the offset is never examined again. When the buffer ends inside a
    block, or with a partial opening tag, the offset stays at the start of that
    unterminated suffix so the next scan completes it.
    """

    def __init__(self) -> None:
        self._offset = 0
        self._pending = False

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def pending(self) -> bool:
        """An opening tag has been seen without its closing tag."""
        return self._pending

    def scan(self, buffer: str) -> list[ExtractedCall]:
        calls: list[ExtractedCall] = []
        while True:
            start = buffer.find(TOOL_CALL_OPEN, self._offset)
            if start == -1:
                self._pending = False
                # a chunk boundary may split the opening tag
                self._offset = max(self._offset, len(buffer) - len(TOOL_CALL_OPEN) + 1)
                return calls

            body_start = start + len(TOOL_CALL_OPEN)
            end = buffer.find(TOOL_CALL_CLOSE, body_start)
            if end == -1:
                self._pending = True
                self._offset = start
                return calls

            call = parse_call_body(buffer[body_start:end])
            if call is not None:
                calls.append(call)
            self._offset = end + len(TOOL_CALL_CLOSE)

    def skip_to(self, offset: int) -> None:
        """Move past text that must not be interpreted as model output."""

        if offset <= self._offset:
            return
        self._offset = offset
        self._pending = False


def split_tool_markup(text: str) -> tuple[str, list[ToolInvocation], list[str]]:
    """Split text into visible content, tool calls and tool responses.

    Unlike `extract_calls`, missing fields fall back to an `unknown` name and empty
    arguments so every parsable block is shown to the user.
    """

    calls: list[ToolInvocation] = []
    for match in TOOL_CALL_RE.finditer(text):
        try:
            data: Any = json.loads(match.group(1).strip())
        except json.JSONDecodeError:
            continue
        if not isinstance(data, dict):
            continue
        name = data.get("name") or "unknown"
        arguments = data.get("arguments") or {}
        calls.append(ToolInvocation(name=str(name), arguments=arguments if isinstance(arguments, dict) else {}))

    responses = [match.group(1).strip() for match in TOOL_RESPONSE_RE.finditer(text)]
    visible = TOOL_RESPONSE_RE.sub("", TOOL_CALL_RE.sub("", text)).strip()
    return visible, calls, responses
