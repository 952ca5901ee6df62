"""
Temporal Workflow: Build Pipeline

Runs the same PipelineStateMachine as the in-process API, with every
generation call executed as a Temporal activity:
  1. Discover a project concept
  2. Strategic decision (vision + KPIs)
  3. Expand the decision into a scheduled plan
  4. Execute each task in schedule order
  5. Save the run record

Temporal-side retries are disabled: the task executor owns retry, and
the concept, decision and plan calls are never retried.
"""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Sequence

from temporalio import activity, workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from activities.concept import generate_concept
    from activities.decision import generate_decision
    from activities.plan import generate_plan
    from activities.task_output import generate_task_output
    from features.tasks import db as task_db
    from models.schemas import Concept, Decision, PipelineSettings, PlannedTask
    from workflows.generation import planned_from_dicts
    from workflows.state_machine import PipelineStateMachine
    import config

log = logging.getLogger(__name__)

NO_RETRY = RetryPolicy(maximum_attempts=1)
PHASE_TIMEOUT = timedelta(minutes=5)
TASK_TIMEOUT = timedelta(minutes=10)


class ActivityGenerationService:
    """GenerationService whose calls are Temporal activities."""

    async def generate_concept(self) -> Concept:
        data = await workflow.execute_activity(
            generate_concept,
            start_to_close_timeout=PHASE_TIMEOUT, retry_policy=NO_RETRY,
        )
        return Concept.from_dict(data)

    async def generate_decision(self, concept: Concept) -> Decision:
        data = await workflow.execute_activity(
            generate_decision, concept.to_dict(),
            start_to_close_timeout=PHASE_TIMEOUT, retry_policy=NO_RETRY,
        )
        return Decision.from_dict(data)

    async def generate_plan(self, decision: Decision) -> Sequence[PlannedTask]:
        items = await workflow.execute_activity(
            generate_plan, decision.to_dict(),
            start_to_close_timeout=PHASE_TIMEOUT, retry_policy=NO_RETRY,
        )
        return planned_from_dicts(items)

    async def generate_task_output(self, prompt: str) -> str:
        return await workflow.execute_activity(
            generate_task_output, prompt,
            start_to_close_timeout=TASK_TIMEOUT, retry_policy=NO_RETRY,
        )


@workflow.defn
class BuildPipelineWorkflow:
    """Durable build run; the returned dict is the full run record."""

    @workflow.run
    async def run(self, run_id: str) -> dict:
        machine = PipelineStateMachine(
            ActivityGenerationService(),
            settings=PipelineSettings.from_config(),
            rng=workflow.random(),
            clock=workflow.now,
        )
        ctx = await machine.start_run(run_id)
        record = ctx.to_record()

        record["log_file"] = await workflow.execute_activity(
            save_run_record, record,
            start_to_close_timeout=timedelta(minutes=1),
        )
        return record


# ── Helper activities (registered separately) ─────────────────────────

@activity.defn
def save_run_record(record: dict) -> str:
    """Write the run record to pipeline_runs/ and, if configured, Postgres."""
    log_path = write_run_record(record)
    if config.DATABASE_URL:
        try:
            task_db.upsert_pipeline_run({**record, "log_file": log_path})
            for task in record.get("tasks", []):
                task_db.upsert_task(record["run_id"], task)
        except Exception as e:
            log.warning("Could not persist run %s to Postgres: %s", record.get("run_id"), e)
    return log_path


def write_run_record(record: dict) -> str:
    runs_dir = config.PIPELINE_RUNS_DIR
    runs_dir.mkdir(parents=True, exist_ok=True)
    file_path = runs_dir / f"{record['run_id']}.json"
    with open(file_path, "w") as f:
        json.dump(record, f, indent=2, default=str, ensure_ascii=False)
    log.info("Run record saved: %s", file_path)
    return str(file_path)
