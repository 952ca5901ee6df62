"""
Context Window Builder — a bounded summary of prior completed work.

Each completed task contributes a labelled excerpt of at most
`excerpt_chars` characters of its output, so the prompt for the next
task grows with the number of tasks, not with the size of their output.
"""

from __future__ import annotations

from typing import Iterable

from features.tasks.models import Task, TaskStatus

NO_PRIOR_WORK = "No previous work. You are starting fresh."
TRUNCATION_MARKER = "... [truncated]"
DEFAULT_EXCERPT_CHARS = 1500


def format_excerpt(task: Task, excerpt_chars: int = DEFAULT_EXCERPT_CHARS) -> str:
    output = task.output or ""
    body = output[:excerpt_chars]
    lines = [f"--- OUTPUT FROM {task.assigned_agent_id} ({task.title}) ---", body]
    if len(output) > excerpt_chars:
        lines.append(TRUNCATION_MARKER)
    return "\n".join(lines)


def build_context_window(
    completed_tasks: Iterable[Task],
    excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
) -> str:
    """Excerpts of every completed task with output, in the order given."""
    excerpts = [
        format_excerpt(t, excerpt_chars)
        for t in completed_tasks
        if t.status == TaskStatus.COMPLETED and t.output
    ]
    if not excerpts:
        return NO_PRIOR_WORK
    return "\n\n".join(excerpts)
