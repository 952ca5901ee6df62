from features.tasks import Task, TaskStatus
from workflows.context import NO_PRIOR_WORK, TRUNCATION_MARKER, build_context_window, format_excerpt


def _done(task_id, title, agent_id, output):
    return Task(task_id, title, agent_id, duration=2, start_offset=0,
                status=TaskStatus.COMPLETED, output=output)


def test_empty_history_yields_fresh_start_marker():
    assert build_context_window([]) == NO_PRIOR_WORK


def test_long_output_is_cut_to_excerpt_length():
    task = _done("t-00", "Architecture", "architect", "A" * 5000)

    excerpt = format_excerpt(task, 1500)

    header, body, marker = excerpt.split("\n")
    assert header == "--- OUTPUT FROM architect (Architecture) ---"
    assert body == "A" * 1500
    assert marker == TRUNCATION_MARKER


def test_short_output_is_kept_whole_without_marker():
    task = _done("t-00", "Schema", "db-arch", "CREATE TABLE users;")

    excerpt = format_excerpt(task)

    assert excerpt.endswith("CREATE TABLE users;")
    assert TRUNCATION_MARKER not in excerpt


def test_output_of_exactly_excerpt_length_is_not_marked():
    task = _done("t-00", "Schema", "db-arch", "B" * 1500)
    assert TRUNCATION_MARKER not in format_excerpt(task, 1500)


def test_excerpts_follow_completion_order_given():
    first = _done("t-01", "API", "specialist-A", "api out")
    second = _done("t-00", "Architecture", "architect", "arch out")

    window = build_context_window([first, second])

    assert window.index("OUTPUT FROM specialist-A") < window.index("OUTPUT FROM architect")
    assert window.count("--- OUTPUT FROM") == 2


def test_window_size_is_bounded_per_task():
    tasks = [_done(f"t-{i:02d}", f"Task {i}", "agent", "x" * 10_000) for i in range(4)]

    window = build_context_window(tasks, 1500)

    assert window.count("x") == 4 * 1500


def test_failed_or_empty_tasks_are_ignored():
    failed = Task("t-00", "Broken", "agent", duration=2, start_offset=0,
                  status=TaskStatus.FAILED, output="Error: boom")
    empty = _done("t-01", "Empty", "agent", "")

    assert build_context_window([failed, empty]) == NO_PRIOR_WORK
