import json
from dataclasses import dataclass, field

import pytest

from toolrelay.config import DEFAULT_SYSTEM_PROMPT
from toolrelay.core.assembler import RequestAssembler, render_tool_block, trim_history
from toolrelay.history import InMemoryHistory
from toolrelay.types import HistoryEntry, ToolSpec


@dataclass
class FakeCatalog:
    specs: list[ToolSpec] = field(default_factory=list)

    def catalog(self) -> list[ToolSpec]:
        return list(self.specs)


class BrokenHistory:
    async def history(self, session_id: str) -> list[HistoryEntry]:
        raise OSError("sessions file unreadable")


TIME_SPEC = ToolSpec(
    qualified_name="time_get_current_time",
    json_schema={"type": "object", "properties": {"timezone": {"type": "string"}}},
    description="Get the current time",
)


def test_render_tool_block_lists_each_tool_as_json() -> None:
    block = render_tool_block([TIME_SPEC])

    tools_section = block.split("<tools>\n", 1)[1].split("\n</tools>", 1)[0]
    assert json.loads(tools_section) == {
        "name": "time_get_current_time",
        "description": "Get the current time",
        "parameters": {"type": "object", "properties": {"timezone": {"type": "string"}}},
    }
    assert "<tool_call>" in block
    assert "<tool_response></tool_response>" in block


def test_render_tool_block_is_empty_without_tools() -> None:
    assert render_tool_block([]) == ""


def test_system_message_uses_default_directive_and_catalog() -> None:
    assembler = RequestAssembler(system_prompt="  ", catalog=FakeCatalog([TIME_SPEC]))

    message = assembler.system_message()

    assert message.role == "system"
    assert message.text.startswith(DEFAULT_SYSTEM_PROMPT + "\n\n")
    assert "time_get_current_time" in message.text


def test_system_message_without_catalog_is_directive_only() -> None:
    assembler = RequestAssembler(system_prompt="Be brief.", catalog=FakeCatalog())

    assert assembler.system_message().text == "Be brief."


@pytest.mark.asyncio
async def test_assemble_without_session_sends_only_system_and_user() -> None:
    history = InMemoryHistory()
    history.append("s1", "user", "old")

    messages = await RequestAssembler(history=history).assemble("now")

    assert [(message.role, message.text) for message in messages] == [("system", DEFAULT_SYSTEM_PROMPT), ("user", "now")]


@pytest.mark.asyncio
async def test_history_is_opt_in() -> None:
    history = InMemoryHistory()
    history.append("s1", "user", "old")

    default = await RequestAssembler(history=history).assemble("now", session_id="s1")
    enabled = await RequestAssembler(history=history, include_history=True).assemble("now", session_id="s1")

    assert [message.text for message in default[1:]] == ["now"]
    assert [message.text for message in enabled[1:]] == ["old", "now"]


@pytest.mark.asyncio
async def test_history_failure_falls_back_to_current_turn_only() -> None:
    messages = await RequestAssembler(history=BrokenHistory(), include_history=True).assemble("now", session_id="s1")

    assert [message.role for message in messages] == ["system", "user"]


def test_trim_history_filters_roles_and_duplicate_trailing_user() -> None:
    entries = [
        HistoryEntry("system", "ignored"),
        HistoryEntry("user", "q1"),
        HistoryEntry("assistant", "a1"),
        HistoryEntry("tool", "ignored too"),
        HistoryEntry("user", "q2"),
    ]

    kept = trim_history(entries, "q2", limit=10)

    assert kept == [HistoryEntry("user", "q1"), HistoryEntry("assistant", "a1")]


def test_trim_history_keeps_non_identical_trailing_user() -> None:
    entries = [HistoryEntry("user", "q1")]

    assert trim_history(entries, "q1 ", limit=10) == entries


def test_trim_history_keeps_most_recent_entries() -> None:
    entries = [HistoryEntry("user" if index % 2 == 0 else "assistant", str(index)) for index in range(6)]

    assert [entry.text for entry in trim_history(entries, "new", limit=3)] == ["3", "4", "5"]
    assert trim_history(entries, "new", limit=0) == []
