"""Server-qualified tool registry used as catalog and invoker."""

from __future__ import annotations

import builtins
import inspect
import json
import time
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import BaseModel
from republic import Tool

from toolrelay.errors import ToolExecutionError, UnknownToolError
from toolrelay.types import ToolSpec

QUALIFIER = "_"
NO_CONTENT = "No content returned from tool"
EMPTY_CONTENT = "Empty content returned from tool"


def _shorten_text(text: str, width: int = 30, placeholder: str = "...") -> str:
    """Shorten text to width characters, cutting in the middle of words if needed."""
    if len(text) <= width:
        return text

    available = width - len(placeholder)
    if available <= 0:
        return placeholder

    return text[:available] + placeholder


def render_result(result: Any) -> str:
    """Render a tool return value as response text."""

    if result is None:
        return NO_CONTENT
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    if isinstance(result, str):
        return result or EMPTY_CONTENT
    if isinstance(result, (dict, list, tuple)):
        if not result:
            return EMPTY_CONTENT
        return json.dumps(result, ensure_ascii=False, default=str)
    return str(result)


@dataclass(frozen=True)
class ToolDescriptor:
    """Tool registered under one server."""

    server: str
    tool: Tool

    @property
    def qualified_name(self) -> str:
        return f"{self.server}{QUALIFIER}{self.tool.name}"

    @property
    def description(self) -> str:
        return self.tool.description or f"Tool '{self.tool.name}' from server '{self.server}'"


class ToolRegistry:
    """Tools grouped by server; model-facing names are `{server}_{tool}`."""

    def __init__(self) -> None:
        self._servers: dict[str, dict[str, ToolDescriptor]] = {}

    def register(self, server: str, tool: Tool) -> ToolDescriptor:
        if not server or QUALIFIER in server:
            raise ValueError(f"Invalid server name: {server!r}")
        tools = self._servers.setdefault(server, {})
        if tool.name in tools:
            raise ValueError(f"Duplicate tool name on server '{server}': {tool.name}")
        descriptor = ToolDescriptor(server=server, tool=tool)
        tools[tool.name] = descriptor
        return descriptor

    def remove_server(self, server: str) -> bool:
        return self._servers.pop(server, None) is not None

    def servers(self) -> builtins.list[str]:
        return sorted(self._servers)

    def get(self, qualified_name: str) -> ToolDescriptor | None:
        server, separator, tool_name = qualified_name.partition(QUALIFIER)
        if not separator:
            return None
        return self._servers.get(server, {}).get(tool_name)

    def has(self, qualified_name: str) -> bool:
        return self.get(qualified_name) is not None

    def descriptors(self) -> builtins.list[ToolDescriptor]:
        items = [descriptor for tools in self._servers.values() for descriptor in tools.values()]
        return sorted(items, key=lambda item: item.qualified_name)

    def catalog(self) -> builtins.list[ToolSpec]:
        return [
            ToolSpec(
                qualified_name=descriptor.qualified_name,
                json_schema=dict(descriptor.tool.parameters or {}),
                description=descriptor.description,
            )
            for descriptor in self.descriptors()
        ]

    async def invoke(self, qualified_name: str, arguments: dict[str, Any]) -> str:
        server, separator, tool_name = qualified_name.partition(QUALIFIER)
        if not separator:
            raise UnknownToolError("Invalid tool name format. Expected: server_toolname")
        tools = self._servers.get(server)
        if tools is None:
            raise UnknownToolError(f"Server '{server}' not connected")
        descriptor = tools.get(tool_name)
        if descriptor is None:
            raise UnknownToolError(f"Tool '{tool_name}' not found on server '{server}'")

        self._log_tool_call(descriptor, arguments)
        start = time.monotonic()
        try:
            result = descriptor.tool.run(**arguments)
            if inspect.isawaitable(result):
                result = await result
        except ToolExecutionError:
            raise
        except Exception as exc:
            logger.exception("tool.call.error name={}", qualified_name)
            raise ToolExecutionError(str(exc) or type(exc).__name__) from exc
        finally:
            duration = time.monotonic() - start
            logger.info("tool.call.end name={} duration={:.3f}ms", qualified_name, duration * 1000)
        return render_result(result)

    def _log_tool_call(self, descriptor: ToolDescriptor, arguments: dict[str, Any]) -> None:
        params: list[str] = []
        for key, value in arguments.items():
            try:
                rendered = json.dumps(value, ensure_ascii=False)
            except TypeError:
                rendered = repr(value)
            params.append(f"{key}={_shorten_text(rendered)}")
        logger.info(
            "tool.call.start server={} name={} {{ {} }}",
            descriptor.server,
            descriptor.tool.name,
            ", ".join(params),
        )
