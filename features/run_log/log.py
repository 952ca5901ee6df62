"""
Run Log — the append-only trace of a pipeline run.

Entries are never mutated or removed once appended. Readers get tuples,
never the underlying list. Subscribers are called synchronously after
each append; a subscriber that raises is logged and skipped so it cannot
break the run.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from features.agents.models import AgentProfile, AgentRole
from features.run_log.models import SYSTEM_NAME, LogEntry, LogType

log = logging.getLogger(__name__)

Subscriber = Callable[[LogEntry], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunLog:
    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._entries: list[LogEntry] = []
        self._subscribers: list[Subscriber] = []
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        """Register *fn*; returns a callable that unsubscribes it."""
        self._subscribers.append(fn)

        def unsubscribe() -> None:
            if fn in self._subscribers:
                self._subscribers.remove(fn)

        return unsubscribe

    def append(
        self,
        message: str,
        type: LogType = LogType.INFO,
        details: str | None = None,
        agent: AgentProfile | None = None,
        agent_name: str | None = None,
        role: AgentRole | None = None,
    ) -> LogEntry:
        if agent is not None:
            agent_name, role = agent.name, agent.role
        entry = LogEntry(
            id=f"log-{len(self._entries) + 1:04d}",
            timestamp=self._clock().isoformat(),
            agent_name=agent_name or SYSTEM_NAME,
            role=role,
            message=message,
            type=type,
            details=details,
        )
        self._entries.append(entry)
        for fn in list(self._subscribers):
            try:
                fn(entry)
            except Exception as e:
                log.warning("Log subscriber %r failed: %s", fn, e)
        return entry

    def entries(self) -> tuple[LogEntry, ...]:
        return tuple(self._entries)

    def since(self, index: int) -> tuple[LogEntry, ...]:
        """Entries appended after the first *index* ones (for polling readers)."""
        return tuple(self._entries[max(index, 0):])

    def to_list(self) -> list[dict]:
        return [e.to_dict() for e in self._entries]
