"""Request assembly: system directive, tool documentation, history and current turn."""

from __future__ import annotations

import json

from loguru import logger

from toolrelay.config import DEFAULT_SYSTEM_PROMPT
from toolrelay.ports import HistoryProvider, ToolCatalogProvider
from toolrelay.types import HistoryEntry, Message, ToolSpec

HISTORY_ROLES = frozenset({"user", "assistant"})
TOOL_CALL_SCHEMA = (
    '{"title": "FunctionCall", "type": "object", "properties": {"name": {"title": "Name", "type": "string"}, '
    '"arguments": {"title": "Arguments", "type": "object"}}, "required": ["name", "arguments"]}'
)


def render_tool_block(specs: list[ToolSpec]) -> str:
    """Render the tool documentation appended to the system message."""

    if not specs:
        return ""
    tools_json = "\n".join(
        json.dumps(
            {"name": spec.qualified_name, "description": spec.description, "parameters": spec.json_schema},
            ensure_ascii=False,
        )
        for spec in specs
    )
    return (
        "You are provided with function signatures within <tools></tools> XML tags. "
        "You may call one or more functions to assist with the user query. If none of them is relevant, "
        "answer in natural language. Don't make assumptions about what values to plug into functions.\n"
        f"<tools>\n{tools_json}\n</tools>\n"
        f"For each function call return a JSON object matching this schema:\n{TOOL_CALL_SCHEMA}\n"
        "enclosed within <tool_call></tool_call> XML tags, for example:\n"
        '<tool_call>\n{"name": "<function-name>", "arguments": {"arg1": "value1"}}\n</tool_call>\n'
        "Function results will be provided within <tool_response></tool_response> XML tags."
    )


class RequestAssembler:
    """Builds the ordered message list for one turn."""

    def __init__(
        self,
        *,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        catalog: ToolCatalogProvider | None = None,
        history: HistoryProvider | None = None,
        include_history: bool = False,
        max_history_messages: int = 20,
    ) -> None:
        self._system_prompt = system_prompt.strip() or DEFAULT_SYSTEM_PROMPT
        self._catalog = catalog
        self._history = history
        self._include_history = include_history
        self._max_history_messages = max_history_messages

    def system_message(self) -> Message:
        blocks = [self._system_prompt]
        if self._catalog is not None:
            blocks.append(render_tool_block(self._catalog.catalog()))
        return Message(role="system", text="\n\n".join(block for block in blocks if block))

    async def assemble(self, user_message: str, *, session_id: str | None = None) -> list[Message]:
        messages = [self.system_message()]
        if self._include_history and session_id is not None and self._history is not None:
            messages.extend(await self._history_messages(self._history, session_id, user_message))
        messages.append(Message(role="user", text=user_message))
        return messages

    async def _history_messages(self, history: HistoryProvider, session_id: str, user_message: str) -> list[Message]:
        try:
            entries = await history.history(session_id)
        except Exception:
            logger.opt(exception=True).warning("history.load_failed session={}", session_id)
            return []
        kept = trim_history(entries, user_message, self._max_history_messages)
        return [Message(role=entry.role, text=entry.text) for entry in kept]  # type: ignore[arg-type]


def trim_history(entries: list[HistoryEntry], user_message: str, limit: int) -> list[HistoryEntry]:
    """Keep user/assistant entries, drop a duplicated trailing user turn, keep the newest `limit`."""

    kept: list[HistoryEntry] = []
    for entry in entries:
        if entry.role not in HISTORY_ROLES:
            logger.debug("history.skip_role role={}", entry.role)
            continue
        kept.append(entry)

    if kept and kept[-1].role == "user" and kept[-1].text == user_message:
        kept.pop()

    if limit <= 0:
        return []
    return kept[-limit:]
