import pytest

import config
from features.tasks import Task, TaskStatus, TaskTracker
from features.tasks import db as task_db
from models.errors import TaskStateError

from conftest import StepClock


def _tasks():
    return [
        Task("t-00", "Architecture", "architect", duration=2, start_offset=0),
        Task("t-01", "API", "specialist-A", duration=3, start_offset=2),
    ]


def test_full_lifecycle_records_timestamps_and_completion_order():
    tasks = _tasks()
    tracker = TaskTracker("run-1", tasks, clock=StepClock())

    tracker.start(tasks[0])
    assert tracker.in_progress is tasks[0]
    assert tasks[0].started_at is not None

    tracker.complete(tasks[0], "arch")
    assert tasks[0].status == TaskStatus.COMPLETED
    assert tasks[0].output == "arch"
    assert tasks[0].completed_at > tasks[0].started_at
    assert tracker.in_progress is None
    assert tracker.completed == [tasks[0]]


def test_only_one_task_in_progress():
    tasks = _tasks()
    tracker = TaskTracker("run-1", tasks)
    tracker.start(tasks[0])

    with pytest.raises(TaskStateError):
        tracker.start(tasks[1])


def test_status_never_moves_backwards():
    tasks = _tasks()
    tracker = TaskTracker("run-1", tasks)
    tracker.start(tasks[0])
    tracker.complete(tasks[0], "done")

    with pytest.raises(TaskStateError):
        tracker.start(tasks[0])
    with pytest.raises(TaskStateError):
        tracker.fail(tasks[0], "late")


def test_cannot_finish_a_pending_task():
    tasks = _tasks()
    tracker = TaskTracker("run-1", tasks)
    with pytest.raises(TaskStateError):
        tracker.complete(tasks[0], "skipped ahead")


def test_failure_message_becomes_output_and_is_not_in_completed():
    tasks = _tasks()
    tracker = TaskTracker("run-1", tasks)
    tracker.start(tasks[1])
    tracker.fail(tasks[1], "Execution failed after 3 attempts: boom")

    assert tasks[1].status == TaskStatus.FAILED
    assert tasks[1].output == "Error: Execution failed after 3 attempts: boom"
    assert tracker.completed == []


def test_summary_counts_statuses():
    tasks = _tasks()
    tracker = TaskTracker("run-1", tasks)
    tracker.start(tasks[0])
    tracker.complete(tasks[0], "ok")

    summary = tracker.summary()

    assert summary == {
        "run_id": "run-1",
        "total_tasks": 2,
        "statuses": {"completed": 1, "pending": 1},
        "total_duration": 5,
    }


def test_persists_each_transition_when_database_configured(monkeypatch):
    monkeypatch.setattr(config, "DATABASE_URL", "postgresql://localhost/test")
    upserts = []
    monkeypatch.setattr(task_db, "upsert_task", lambda run_id, t: upserts.append((run_id, t["status"])))
    tasks = _tasks()[:1]

    tracker = TaskTracker("run-1", tasks, persist=True)
    tracker.start(tasks[0])
    tracker.complete(tasks[0], "ok")

    assert upserts == [("run-1", "pending"), ("run-1", "in-progress"), ("run-1", "completed")]


def test_database_errors_do_not_break_tracking(monkeypatch):
    monkeypatch.setattr(config, "DATABASE_URL", "postgresql://localhost/test")

    def broken(run_id, task):
        raise RuntimeError("connection refused")

    monkeypatch.setattr(task_db, "upsert_task", broken)
    tasks = _tasks()[:1]
    tracker = TaskTracker("run-1", tasks, persist=True)
    tracker.start(tasks[0])
    tracker.complete(tasks[0], "ok")

    assert tasks[0].status == TaskStatus.COMPLETED


def test_task_dict_round_trip_keeps_status():
    task = Task("t-00", "API", "specialist-A", duration=3, start_offset=2,
                status=TaskStatus.FAILED, output="Error: x")
    restored = Task.from_dict(task.to_dict())
    assert restored == task
