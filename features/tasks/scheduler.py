"""
Task Scheduler — turns a plan into a waterfall schedule.

Every task gets a small random duration, and starts exactly when the
previous task in plan order ends. Offsets are assigned once and never
revised.
"""

from __future__ import annotations

import logging
import random
from typing import Sequence

import config
from features.tasks.models import PlannedTask, Task

log = logging.getLogger(__name__)

DEFAULT_DURATION_RANGE = (config.TASK_DURATION_MIN, config.TASK_DURATION_MAX)


def schedule(
    planned: Sequence[PlannedTask],
    rng: random.Random | None = None,
    duration_range: tuple[int, int] = DEFAULT_DURATION_RANGE,
    id_prefix: str = "task",
) -> list[Task]:
    """Assign durations and start offsets to *planned*, in plan order."""
    low, high = duration_range
    if low < 1 or high < low:
        raise ValueError(f"Invalid duration range: {duration_range}")
    rng = rng or random.Random()

    tasks: list[Task] = []
    offset = 0
    for index, item in enumerate(planned):
        duration = rng.randint(low, high)
        tasks.append(Task(
            id=f"{id_prefix}-{index:02d}",
            title=item.title,
            assigned_agent_id=item.assigned_agent_id,
            duration=duration,
            start_offset=offset,
        ))
        offset += duration

    log.info("Scheduled %d tasks over %d units", len(tasks), offset)
    return tasks


def execution_order(tasks: Sequence[Task]) -> list[Task]:
    """Tasks sorted by start offset; ties keep their plan order."""
    return sorted(tasks, key=lambda t: t.start_offset)


def total_duration(tasks: Sequence[Task]) -> int:
    return max((t.end_offset for t in tasks), default=0)
