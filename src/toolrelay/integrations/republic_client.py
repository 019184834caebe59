"""Republic integration helpers."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence

from loguru import logger
from republic import LLM

from toolrelay.config import Settings
from toolrelay.errors import ModelNotConfiguredError, TransportError
from toolrelay.types import Message, SamplingParams, StreamChunk


def build_llm(settings: Settings) -> LLM:
    """Build Republic LLM client configured for toolrelay."""

    if not settings.model:
        raise ModelNotConfiguredError("TOOLRELAY_MODEL is not set")
    return LLM(
        settings.model,
        api_key=settings.api_key,
        api_base=settings.api_base,
    )


class RepublicStreamProvider:
    """Completion stream provider backed by `republic.LLM.stream_async`."""

    def __init__(self, llm: LLM) -> None:
        self._llm = llm

    async def stream(
        self,
        model_id: str,
        messages: Sequence[Message],
        params: SamplingParams,
    ) -> AsyncIterator[StreamChunk]:
        kwargs = params.as_kwargs()
        logger.debug("stream.open model={} messages={} params={}", model_id, len(messages), kwargs)
        try:
            stream = await self._llm.stream_async(
                messages=[message.to_payload() for message in messages],
                model=model_id,
                **kwargs,
            )
        except Exception as exc:
            raise TransportError(f"Failed to create chat stream: {exc!s}") from exc

        async for text in stream:
            if text:
                yield StreamChunk(delta_text=text)

        if (error := getattr(stream, "error", None)) is not None:
            raise TransportError(_format_stream_error(error))
        yield StreamChunk(finished=True)


def _format_stream_error(error: object) -> str:
    kind = getattr(error, "kind", None)
    message = getattr(error, "message", None)
    kind_value = getattr(kind, "value", kind)
    if isinstance(kind_value, str) and isinstance(message, str):
        return f"{kind_value}: {message}"
    if isinstance(message, str):
        return message
    return str(error)
