"""Runtime logging helpers."""

from __future__ import annotations

import sys
from logging import Handler
from typing import Literal

import loguru
from loguru import logger
from rich import get_console
from rich.logging import RichHandler

from toolrelay.config import Settings, load_settings
from toolrelay.core.context import current_session

LogProfile = Literal["default", "chat"]

_PROFILE_FORMATS: dict[LogProfile, str] = {
    # Rich renders its own level column.
    "chat": "[{extra[session]}] {message}",
    "default": "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | session={extra[session]} | {name}:{line} | {message}",
}
_CONFIGURED_PROFILE: LogProfile | None = None


def _inject_session(record: loguru.Record) -> None:
    record["extra"]["session"] = current_session()


def _sink_for(profile: LogProfile) -> Handler | object:
    if profile == "chat":
        return RichHandler(
            console=get_console(),
            show_time=False,
            show_path=False,
            markup=False,
            rich_tracebacks=False,
        )
    return sys.stderr


def configure_logging(*, profile: LogProfile = "default", settings: Settings | None = None) -> None:
    """Route loguru output for `profile`, once per process.

    The level comes from `settings.log_level` (`TOOLRELAY_LOG_LEVEL`). Every record
    carries the id of the session whose turn emitted it.
    """

    global _CONFIGURED_PROFILE
    if profile == _CONFIGURED_PROFILE:
        return

    level = (settings or load_settings()).log_level.upper()
    logger.remove()
    logger.add(
        _sink_for(profile),
        level=level,
        format=_PROFILE_FORMATS[profile],
        backtrace=False,
        diagnose=False,
    )
    logger.configure(patcher=_inject_session)
    _CONFIGURED_PROFILE = profile
