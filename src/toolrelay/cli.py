"""toolrelay CLI."""

from __future__ import annotations

import asyncio
import json

import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from toolrelay.config import Settings, load_settings
from toolrelay.core import ActiveResources, TurnContext, run_turn, split_tool_markup
from toolrelay.errors import ToolRelayError
from toolrelay.integrations.republic_client import RepublicStreamProvider, build_llm
from toolrelay.logging_utils import configure_logging
from toolrelay.ports import CompletionStreamProvider
from toolrelay.sinks import CallbackEventSink
from toolrelay.tools import ToolRegistry, register_builtin_tools
from toolrelay.types import SinkEvent, TokenEvent, ToolEvent, TurnResult

app = typer.Typer(name="toolrelay", help="Tool-augmented streaming chat", add_completion=False)
console = Console()


def build_stream_provider(settings: Settings) -> CompletionStreamProvider:
    return RepublicStreamProvider(build_llm(settings))


def _render_event(event: SinkEvent) -> None:
    if isinstance(event, TokenEvent):
        if event.finished:
            console.print()
        elif event.token:
            console.print(event.token, end="", markup=False, highlight=False, soft_wrap=True)
    elif isinstance(event, ToolEvent):
        status = "ok" if event.ok else "error"
        console.print(f"\n[dim]tool {event.tool_name} {status}[/dim]")


def _render_progress(event: SinkEvent) -> None:
    if isinstance(event, ToolEvent):
        status = "ok" if event.ok else "error"
        console.print(f"[dim]tool {event.tool_name} {status}[/dim]")


def _render_answer(text: str) -> None:
    visible, calls, responses = split_tool_markup(text)
    for call in calls:
        arguments = json.dumps(call.arguments, ensure_ascii=False)
        console.print(Text.assemble(("tool call ", "cyan"), f"{call.name} {arguments}"))
    for response in responses:
        console.print(Panel(Text(response), title="tool response", border_style="dim"))
    if visible:
        console.print(visible, markup=False, highlight=False)


async def _run_chat(message: str, settings: Settings, *, use_tools: bool, raw: bool) -> TurnResult:
    registry: ToolRegistry | None = None
    if use_tools:
        registry = ToolRegistry()
        register_builtin_tools(registry)
    resources = ActiveResources(settings.model, catalog=registry, invoker=registry)
    context = TurnContext.from_settings(
        settings,
        stream_provider=build_stream_provider(settings),
        resources=resources,
        sink=CallbackEventSink(_render_event if raw else _render_progress),
    )
    return await run_turn(message, context, settings.sampling())


@app.command("chat")
def chat(
    message: str = typer.Argument(..., help="User message for this turn"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model in provider:model format"),
    system_prompt: str | None = typer.Option(None, "--system-prompt", help="Override the system directive"),
    temperature: float | None = typer.Option(None, "--temperature"),
    max_tokens: int | None = typer.Option(None, "--max-tokens"),
    tools: bool = typer.Option(True, "--tools/--no-tools", help="Expose built-in tools to the model"),
    raw: bool = typer.Option(False, "--raw", help="Stream tokens with tool markup instead of the rendered answer"),
) -> None:
    """Run one turn and print the answer."""

    settings = load_settings(
        model=model,
        system_prompt=system_prompt,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    configure_logging(profile="chat", settings=settings)
    try:
        result = asyncio.run(_run_chat(message, settings, use_tools=tools, raw=raw))
    except ToolRelayError as exc:
        console.print(f"[red]error:[/red] {exc}")
        raise typer.Exit(1) from exc
    if not raw:
        _render_answer(result.text)


@app.command("tools")
def list_tools() -> None:
    """List built-in tools with their qualified names."""

    registry = ToolRegistry()
    register_builtin_tools(registry)
    for spec in registry.catalog():
        typer.echo(f"{spec.qualified_name}: {spec.description}")
