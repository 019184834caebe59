"""In-memory session history provider."""

from __future__ import annotations

from collections import defaultdict

from toolrelay.types import HistoryEntry


class InMemoryHistory:
    """Session-keyed message history kept for the life of the process."""

    def __init__(self) -> None:
        self._sessions: dict[str, list[HistoryEntry]] = defaultdict(list)

    def append(self, session_id: str, role: str, text: str) -> None:
        self._sessions[session_id].append(HistoryEntry(role=role, text=text))

    async def history(self, session_id: str) -> list[HistoryEntry]:
        return list(self._sessions.get(session_id, []))

    def clear(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
