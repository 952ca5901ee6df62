"""
Data models for the tasks feature.

PlannedTask is what the coordinator hands back; Task is the scheduled,
trackable unit of work the execution loop mutates in place.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


@dataclass(frozen=True)
class PlannedTask:
    title: str
    assigned_agent_id: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Task:
    """A single scheduled unit of work in a run."""
    id: str
    title: str
    assigned_agent_id: str
    duration: int
    start_offset: int
    status: TaskStatus = TaskStatus.PENDING
    output: str | None = None
    started_at: str | None = None
    completed_at: str | None = None

    @property
    def end_offset(self) -> int:
        return self.start_offset + self.duration

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Task:
        return cls(
            id=data["id"],
            title=data["title"],
            assigned_agent_id=data["assigned_agent_id"],
            duration=int(data["duration"]),
            start_offset=int(data["start_offset"]),
            status=TaskStatus(data.get("status", TaskStatus.PENDING.value)),
            output=data.get("output"),
            started_at=data.get("started_at"),
            completed_at=data.get("completed_at"),
        )
