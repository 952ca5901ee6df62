"""
Task Tracker — owns the status transitions of a run's tasks.

Status only moves forward: pending → in-progress → completed | failed.
At most one task may be in progress at a time. Tasks that complete are
also appended to `completed`, which preserves completion order for the
context window.

When persistence is on, every state change is upserted to Postgres via
features.tasks.db so the audit trail survives crashes. If the DB is
unavailable, the tracker logs a warning and carries on in memory.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable

import config
from features.tasks import db as task_db
from features.tasks.models import Task, TaskStatus
from features.tasks.scheduler import total_duration
from models.errors import TaskStateError

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskTracker:
    """Tracks the tasks of a single pipeline run."""

    def __init__(
        self,
        run_id: str,
        tasks: Iterable[Task] = (),
        clock: Callable[[], datetime] = _utcnow,
        persist: bool = False,
    ):
        self.run_id = run_id
        self.tasks: list[Task] = list(tasks)
        self.completed: list[Task] = []
        self._clock = clock
        self._persist_enabled = persist and bool(config.DATABASE_URL)
        for task in self.tasks:
            self._persist(task)

    def _persist(self, task: Task) -> None:
        """Persist the current task state to Postgres."""
        if not self._persist_enabled:
            return
        try:
            task_db.upsert_task(self.run_id, task.to_dict())
        except Exception as e:
            log.warning("[TASK] Failed to persist task %s to DB: %s", task.id, e)

    @property
    def in_progress(self) -> Task | None:
        return next((t for t in self.tasks if t.status == TaskStatus.IN_PROGRESS), None)

    def start(self, task: Task) -> None:
        """Mark a task as in progress."""
        if task.status != TaskStatus.PENDING:
            raise TaskStateError(f"Cannot start task {task.id}: status is {task.status.value}")
        active = self.in_progress
        if active is not None:
            raise TaskStateError(f"Cannot start task {task.id}: {active.id} is still in progress")
        task.status = TaskStatus.IN_PROGRESS
        task.started_at = self._clock().isoformat()
        log.info("[TASK] Started: %s — %s (%s)", task.id, task.title, task.assigned_agent_id)
        self._persist(task)

    def complete(self, task: Task, output: str) -> None:
        """Mark a task as completed and store its output."""
        self._finish(task, TaskStatus.COMPLETED, output)
        self.completed.append(task)
        log.info("[TASK] Completed: %s — %s (%d chars)", task.id, task.title, len(output))

    def fail(self, task: Task, error: str) -> None:
        """Mark a task as failed; the error message becomes its output."""
        self._finish(task, TaskStatus.FAILED, f"Error: {error}")
        log.error("[TASK] Failed: %s — %s: %s", task.id, task.title, error)

    def _finish(self, task: Task, status: TaskStatus, output: str) -> None:
        if task.status != TaskStatus.IN_PROGRESS:
            raise TaskStateError(
                f"Cannot mark task {task.id} {status.value}: status is {task.status.value}"
            )
        task.status = status
        task.output = output
        task.completed_at = self._clock().isoformat()
        self._persist(task)

    def to_list(self) -> list[dict]:
        """Export all tasks as a list of dicts."""
        return [t.to_dict() for t in self.tasks]

    def summary(self) -> dict:
        """Return a summary of the run's tasks."""
        statuses: dict[str, int] = {}
        for t in self.tasks:
            statuses[t.status.value] = statuses.get(t.status.value, 0) + 1
        return {
            "run_id": self.run_id,
            "total_tasks": len(self.tasks),
            "statuses": statuses,
            "total_duration": total_duration(self.tasks),
        }
