import asyncio

import pytest

from toolrelay.config import DEFAULT_SYSTEM_PROMPT, Settings, load_settings
from toolrelay.core import ActiveResources, TurnContext
from toolrelay.core.context import NO_TOOLS, current_session
from toolrelay.errors import UnknownToolError
from toolrelay.tools import ToolRegistry
from toolrelay.types import SamplingParams


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOOLRELAY_MODEL", "openai:gpt-test")
    monkeypatch.setenv("TOOLRELAY_TOOL_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("TOOLRELAY_TEMPERATURE", "0.3")

    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    assert settings.model == "openai:gpt-test"
    assert settings.tool_timeout_seconds == 2.5
    assert settings.system_prompt == DEFAULT_SYSTEM_PROMPT
    assert settings.include_history is False
    assert settings.sampling() == SamplingParams(temperature=0.3)


def test_load_settings_ignores_unset_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOOLRELAY_MODEL", "openai:from-env")

    assert load_settings(model=None).model == "openai:from-env"
    assert load_settings(model="openai:explicit").model == "openai:explicit"


def test_sampling_params_drop_unset_values() -> None:
    params = SamplingParams(temperature=0.0, seed=1, max_completion_tokens=10)

    assert params.as_kwargs() == {"temperature": 0.0, "seed": 1, "max_completion_tokens": 10}


def test_turn_context_from_settings_copies_turn_options() -> None:
    settings = Settings(  # type: ignore[call-arg]
        _env_file=None,
        system_prompt="Be brief.",
        include_history=True,
        max_history_messages=4,
        tool_timeout_seconds=1.0,
    )

    context = TurnContext.from_settings(settings, stream_provider=object(), resources=ActiveResources())  # type: ignore[arg-type]

    assert context.system_prompt == "Be brief."
    assert context.include_history is True
    assert context.max_history_messages == 4
    assert context.tool_timeout_seconds == 1.0


@pytest.mark.asyncio
async def test_active_resources_snapshot_reflects_latest_writes() -> None:
    registry = ToolRegistry()
    resources = ActiveResources()

    empty = await resources.snapshot()
    assert empty.model_id is None
    assert empty.invoker is NO_TOOLS

    await resources.load_model("local:model-a")
    await resources.set_tools(registry, registry)
    loaded = await resources.snapshot()
    assert loaded.model_id == "local:model-a"
    assert loaded.catalog is registry
    assert loaded.invoker is registry

    await resources.unload_model()
    assert (await resources.snapshot()).model_id is None
    assert loaded.model_id == "local:model-a"


@pytest.mark.asyncio
async def test_concurrent_swaps_and_snapshots_are_serialized() -> None:
    resources = ActiveResources("local:m0")

    async def _swap(index: int) -> None:
        await resources.load_model(f"local:m{index}")

    await asyncio.gather(*(_swap(index) for index in range(1, 6)), resources.snapshot())

    assert (await resources.snapshot()).model_id == "local:m5"


@pytest.mark.asyncio
async def test_no_tools_invoker_raises_unknown_tool() -> None:
    with pytest.raises(UnknownToolError):
        await NO_TOOLS.invoke("time_get_current_time", {})


def test_current_session_defaults_to_placeholder() -> None:
    assert current_session() == "-"
