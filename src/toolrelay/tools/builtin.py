"""Built-in tool servers."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field
from republic import Tool, tool_from_model

from toolrelay.errors import ToolExecutionError
from toolrelay.tools.registry import ToolRegistry

TIME_SERVER = "time"


class CurrentTimeInput(BaseModel):
    timezone: str | None = Field(default=None, description="IANA timezone name such as 'Europe/Berlin'; UTC when omitted")


def create_current_time_tool(now: Callable[[], datetime] | None = None) -> Tool:
    """Create the current-time tool; `now` returns an aware UTC datetime."""

    clock = now or (lambda: datetime.now(UTC))

    def _handler(params: CurrentTimeInput) -> str:
        current = clock()
        if params.timezone is None:
            return current.astimezone(UTC).isoformat().replace("+00:00", "Z")
        try:
            zone = ZoneInfo(params.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ToolExecutionError(f"unknown timezone: {params.timezone}") from exc
        return current.astimezone(zone).isoformat()

    return tool_from_model(
        CurrentTimeInput,
        _handler,
        name="get_current_time",
        description="Get the current date and time as an ISO 8601 timestamp",
    )


def register_builtin_tools(registry: ToolRegistry, *, now: Callable[[], datetime] | None = None) -> None:
    """Register the built-in tool servers."""

    registry.register(TIME_SERVER, create_current_time_tool(now))
