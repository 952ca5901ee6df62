import random

import pytest

from features.tasks import PlannedTask, Task, TaskStatus, execution_order, schedule, total_duration

from conftest import SequenceRng


def _plan(n: int) -> list[PlannedTask]:
    return [PlannedTask(f"Task {i}", f"agent-{i}") for i in range(n)]


def test_waterfall_offsets_for_scripted_durations():
    plan = [
        PlannedTask("Architecture", "architect"),
        PlannedTask("API", "specialist-A"),
        PlannedTask("UI", "specialist-B"),
    ]
    tasks = schedule(plan, rng=SequenceRng([2, 3, 2]))

    assert [t.duration for t in tasks] == [2, 3, 2]
    assert [t.start_offset for t in tasks] == [0, 2, 5]
    assert total_duration(tasks) == 7


@pytest.mark.parametrize("seed", range(20))
def test_schedule_is_gapless_and_in_range(seed):
    tasks = schedule(_plan(9), rng=random.Random(seed))

    assert tasks[0].start_offset == 0
    for prev, cur in zip(tasks, tasks[1:]):
        assert cur.start_offset == prev.start_offset + prev.duration
    assert all(2 <= t.duration <= 4 for t in tasks)


def test_schedule_keeps_plan_fields_and_starts_pending():
    tasks = schedule(_plan(2), rng=random.Random(1), id_prefix="run-1-task")

    assert [t.id for t in tasks] == ["run-1-task-00", "run-1-task-01"]
    assert [t.assigned_agent_id for t in tasks] == ["agent-0", "agent-1"]
    assert all(t.status == TaskStatus.PENDING and t.output is None for t in tasks)


def test_schedule_empty_plan():
    assert schedule([], rng=random.Random(0)) == []
    assert total_duration([]) == 0


def test_schedule_rejects_bad_duration_range():
    with pytest.raises(ValueError):
        schedule(_plan(1), duration_range=(0, 3))
    with pytest.raises(ValueError):
        schedule(_plan(1), duration_range=(4, 2))


def test_execution_order_sorts_by_start_offset_not_input_order():
    tasks = [
        Task("c", "C", "x", duration=2, start_offset=5),
        Task("a", "A", "x", duration=2, start_offset=0),
        Task("b", "B", "x", duration=3, start_offset=2),
    ]
    assert [t.id for t in execution_order(tasks)] == ["a", "b", "c"]


def test_execution_order_matches_plan_order_for_waterfall():
    tasks = schedule(_plan(6), rng=random.Random(7))
    assert execution_order(tasks) == tasks
