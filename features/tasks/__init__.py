"""
Tasks feature — scheduled units of work and their status tracking.

Public API:
    from features.tasks import Task, TaskStatus, PlannedTask, TaskTracker
    from features.tasks import schedule, execution_order
    from features.tasks import db as task_db
"""

from features.tasks.models import PlannedTask, Task, TaskStatus
from features.tasks.scheduler import execution_order, schedule, total_duration
from features.tasks.tracker import TaskTracker

__all__ = [
    "PlannedTask",
    "Task",
    "TaskStatus",
    "TaskTracker",
    "execution_order",
    "schedule",
    "total_duration",
]
