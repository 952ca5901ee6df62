"""
Data models for the run log feature.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from features.agents.models import AgentRole

SYSTEM_NAME = "SYSTEM"


class LogType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    THINKING = "thinking"


@dataclass(frozen=True)
class LogEntry:
    """One append-only record of pipeline progress. role is None for SYSTEM."""
    id: str
    timestamp: str
    agent_name: str
    role: AgentRole | None
    message: str
    type: LogType = LogType.INFO
    details: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "agent_name": self.agent_name,
            "role": self.role.value if self.role else None,
            "message": self.message,
            "type": self.type.value,
            "details": self.details,
        }
