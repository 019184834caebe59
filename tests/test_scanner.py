import json

from toolrelay.core.scanner import (
    ToolCallScanner,
    extract_calls,
    has_incomplete_call,
    split_tool_markup,
)


def _block(name: str, arguments: dict) -> str:
    return f"<tool_call>{json.dumps({'name': name, 'arguments': arguments})}</tool_call>"


def test_extract_calls_returns_each_block_in_document_order() -> None:
    buffer = "first " + _block("a_one", {"x": 1}) + " then " + _block("b_two", {}) + "\n" + _block("c_three", {"y": "z"})

    calls = extract_calls(buffer)

    assert [name for name, _ in calls] == ["a_one", "b_two", "c_three"]
    assert json.loads(calls[0][1]) == {"x": 1}
    assert json.loads(calls[2][1]) == {"y": "z"}


def test_extract_calls_accepts_whitespace_around_json() -> None:
    buffer = '<tool_call>\n{"name": "time_get_current_time", "arguments": {}}\n</tool_call>'

    assert extract_calls(buffer) == [("time_get_current_time", "{}")]


def test_malformed_block_is_dropped_without_affecting_later_blocks() -> None:
    buffer = '<tool_call>{"name": "x", "arguments": {"a": 1}</tool_call>' + _block("ok_tool", {"a": 2})

    calls = extract_calls(buffer)

    assert calls == [("ok_tool", '{"a": 2}')]


def test_malformed_json_yields_no_extraction() -> None:
    assert extract_calls('<tool_call>{"name": "x", "arguments": {}</tool_call>') == []


def test_blocks_missing_name_or_arguments_are_dropped() -> None:
    buffer = (
        '<tool_call>{"arguments": {}}</tool_call>'
        '<tool_call>{"name": "x"}</tool_call>'
        '<tool_call>{"name": 3, "arguments": {}}</tool_call>'
        '<tool_call>{"name": "x", "arguments": "nope"}</tool_call>'
        "<tool_call>[1, 2]</tool_call>"
    )

    assert extract_calls(buffer) == []


def test_has_incomplete_call() -> None:
    assert has_incomplete_call('answer <tool_call>{"name":"x"}') is True
    assert has_incomplete_call('answer <tool_call>{"name":"x","arguments":{}}</tool_call>') is False
    assert has_incomplete_call("no markup at all") is False
    assert has_incomplete_call(_block("a_b", {}) + " <tool_call>") is True


def test_incremental_scanner_completes_block_split_across_chunks() -> None:
    scanner = ToolCallScanner()
    buffer = "Checking <tool_c"

    assert scanner.scan(buffer) == []
    assert scanner.pending is False

    buffer += 'all>{"name": "time_get_current_time", '
    assert scanner.scan(buffer) == []
    assert scanner.pending is True
    assert scanner.offset == buffer.index("<tool_call>")

    buffer += '"arguments": {}}</tool_call> done'
    assert scanner.scan(buffer) == [("time_get_current_time", "{}")]
    assert scanner.pending is False


def test_incremental_scanner_never_reports_a_block_twice() -> None:
    scanner = ToolCallScanner()
    buffer = _block("a_b", {"n": 1})

    assert len(scanner.scan(buffer)) == 1
    assert scanner.scan(buffer) == []

    buffer += " more " + _block("a_b", {"n": 2})
    assert scanner.scan(buffer) == [("a_b", '{"n": 2}')]


def test_incremental_scanner_skip_to_ignores_spliced_text() -> None:
    scanner = ToolCallScanner()
    buffer = _block("a_b", {})
    scanner.scan(buffer)

    buffer += "\n<tool_response>\n" + _block("echo_back", {}) + "\n</tool_response>"
    scanner.skip_to(len(buffer))

    assert scanner.scan(buffer) == []
    assert scanner.offset == len(buffer)


def test_split_tool_markup_separates_visible_text() -> None:
    text = (
        "Let me check. "
        + _block("time_get_current_time", {"timezone": "UTC"})
        + "\n<tool_response>\n2024-01-01T00:00:00Z\n</tool_response>"
        + '<tool_call>{"arguments": {}}</tool_call>'
    )

    visible, calls, responses = split_tool_markup(text)

    assert visible == "Let me check."
    assert [call.name for call in calls] == ["time_get_current_time", "unknown"]
    assert calls[0].arguments == {"timezone": "UTC"}
    assert responses == ["2024-01-01T00:00:00Z"]
