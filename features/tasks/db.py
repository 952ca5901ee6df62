"""
Postgres backing store for pipeline runs and their tasks.

Tables:
  pipeline_runs  — one row per run
  tasks          — one row per scheduled task, FK to pipeline_runs

Task state changes are upserted as they happen; the run row is written
when a run starts and again when it ends.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any

import psycopg2
import psycopg2.extras

import config

log = logging.getLogger(__name__)

# ── Connection ────────────────────────────────────────────────────────

_pool: list[Any] = []


def _get_conn():
    """Get a Postgres connection (simple single-connection reuse)."""
    if _pool:
        conn = _pool[0]
        if not conn.closed:
            return conn
        _pool.clear()

    conn = psycopg2.connect(config.DATABASE_URL)
    conn.autocommit = True
    _pool.append(conn)
    return conn


@contextmanager
def get_cursor():
    """Yield a dict cursor."""
    conn = _get_conn()
    cur = conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
    try:
        yield cur
    finally:
        cur.close()


# ── Schema ────────────────────────────────────────────────────────────

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS pipeline_runs (
    run_id          TEXT PRIMARY KEY,
    phase           TEXT NOT NULL DEFAULT 'idle',
    project_name    TEXT,
    started_at      TIMESTAMPTZ,
    finished_at     TIMESTAMPTZ,
    error           TEXT,
    concept         JSONB DEFAULT '{}'::jsonb,
    decision        JSONB DEFAULT '{}'::jsonb,
    usage           JSONB DEFAULT '{}'::jsonb,
    log_file        TEXT,
    created_at      TIMESTAMPTZ DEFAULT now()
);

CREATE TABLE IF NOT EXISTS tasks (
    id                  TEXT NOT NULL,
    run_id              TEXT NOT NULL REFERENCES pipeline_runs(run_id) ON DELETE CASCADE,
    title               TEXT NOT NULL,
    assigned_agent_id   TEXT NOT NULL,
    status              TEXT NOT NULL DEFAULT 'pending',
    duration            INTEGER NOT NULL,
    start_offset        INTEGER NOT NULL,
    output              TEXT,
    started_at          TIMESTAMPTZ,
    completed_at        TIMESTAMPTZ,
    updated_at          TIMESTAMPTZ DEFAULT now(),
    PRIMARY KEY (run_id, id)
);

CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);
CREATE INDEX IF NOT EXISTS idx_pipeline_runs_phase ON pipeline_runs(phase);
"""


def init_db():
    """Create tables if they don't exist."""
    try:
        with get_cursor() as cur:
            cur.execute(SCHEMA_SQL)
        log.info("Database schema initialized")
    except Exception as e:
        log.error("Failed to initialize database: %s", e)
        raise


# ── Pipeline Run CRUD ─────────────────────────────────────────────────

def upsert_pipeline_run(run: dict) -> None:
    """Insert or update a pipeline run record."""
    concept = run.get("concept") or {}
    with get_cursor() as cur:
        cur.execute("""
            INSERT INTO pipeline_runs (
                run_id, phase, project_name, started_at, finished_at,
                error, concept, decision, usage, log_file
            ) VALUES (
                %(run_id)s, %(phase)s, %(project_name)s, %(started_at)s, %(finished_at)s,
                %(error)s, %(concept)s, %(decision)s, %(usage)s, %(log_file)s
            )
            ON CONFLICT (run_id) DO UPDATE SET
                phase = EXCLUDED.phase,
                project_name = EXCLUDED.project_name,
                finished_at = EXCLUDED.finished_at,
                error = EXCLUDED.error,
                concept = EXCLUDED.concept,
                decision = EXCLUDED.decision,
                usage = EXCLUDED.usage,
                log_file = EXCLUDED.log_file
        """, {
            "run_id": run.get("run_id"),
            "phase": run.get("phase", "idle"),
            "project_name": concept.get("project_name"),
            "started_at": run.get("started_at"),
            "finished_at": run.get("finished_at"),
            "error": run.get("error"),
            "concept": json.dumps(concept),
            "decision": json.dumps(run.get("decision") or {}),
            "usage": json.dumps(run.get("usage") or {}),
            "log_file": run.get("log_file", ""),
        })


def get_pipeline_run(run_id: str) -> dict | None:
    """Fetch a pipeline run by ID."""
    with get_cursor() as cur:
        cur.execute("SELECT * FROM pipeline_runs WHERE run_id = %s", (run_id,))
        row = cur.fetchone()
        return dict(row) if row else None


def list_pipeline_runs(limit: int = 50, phase: str | None = None) -> list[dict]:
    """List pipeline runs, newest first."""
    with get_cursor() as cur:
        if phase:
            cur.execute(
                "SELECT * FROM pipeline_runs WHERE phase = %s ORDER BY created_at DESC LIMIT %s",
                (phase, limit),
            )
        else:
            cur.execute(
                "SELECT * FROM pipeline_runs ORDER BY created_at DESC LIMIT %s",
                (limit,),
            )
        return [dict(row) for row in cur.fetchall()]


# ── Task CRUD ─────────────────────────────────────────────────────────

def upsert_task(run_id: str, task: dict) -> None:
    """Insert or update a task. Called on every state change."""
    with get_cursor() as cur:
        cur.execute("""
            INSERT INTO tasks (
                id, run_id, title, assigned_agent_id, status,
                duration, start_offset, output, started_at, completed_at
            ) VALUES (
                %(id)s, %(run_id)s, %(title)s, %(assigned_agent_id)s, %(status)s,
                %(duration)s, %(start_offset)s, %(output)s, %(started_at)s, %(completed_at)s
            )
            ON CONFLICT (run_id, id) DO UPDATE SET
                status = EXCLUDED.status,
                output = EXCLUDED.output,
                started_at = EXCLUDED.started_at,
                completed_at = EXCLUDED.completed_at,
                updated_at = now()
        """, {
            "id": task.get("id"),
            "run_id": run_id,
            "title": task.get("title", ""),
            "assigned_agent_id": task.get("assigned_agent_id", ""),
            "status": task.get("status", "pending"),
            "duration": task.get("duration", 0),
            "start_offset": task.get("start_offset", 0),
            "output": task.get("output"),
            "started_at": task.get("started_at"),
            "completed_at": task.get("completed_at"),
        })


def get_tasks_for_run(run_id: str) -> list[dict]:
    """Fetch all tasks for a run in schedule order."""
    with get_cursor() as cur:
        cur.execute(
            "SELECT * FROM tasks WHERE run_id = %s ORDER BY start_offset ASC",
            (run_id,),
        )
        return [dict(row) for row in cur.fetchall()]


def get_task_summary(run_id: str) -> dict:
    """Get an aggregate summary of tasks for a run."""
    with get_cursor() as cur:
        cur.execute("""
            SELECT
                count(*) as total_tasks,
                count(*) FILTER (WHERE status = 'completed') as completed,
                count(*) FILTER (WHERE status = 'failed') as failed,
                count(*) FILTER (WHERE status = 'in-progress') as in_progress,
                count(*) FILTER (WHERE status = 'pending') as pending,
                coalesce(max(start_offset + duration), 0) as total_duration
            FROM tasks WHERE run_id = %s
        """, (run_id,))
        row = cur.fetchone()
        return dict(row) if row else {}
