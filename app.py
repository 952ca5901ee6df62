"""
FastAPI application — REST API for Build Crew.

Endpoints:
  GET  /health                   — Health check
  GET  /agents                   — Agent roster
  POST /runs                     — Start a build run (Temporal if connected, else in-process)
  GET  /runs                     — List runs
  GET  /runs/current             — Snapshot of the in-process run
  GET  /runs/current/log         — Log entries of the in-process run (?since=N)
  POST /runs/current/cancel      — Cancel the in-process run
  POST /runs/reset               — Return a failed in-process machine to idle
  GET  /runs/{run_id}            — Run record
  GET  /runs/{run_id}/artifacts  — Files extracted from a run's task outputs
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException
from pydantic import BaseModel
from temporalio.client import Client

import config
from features.agents import DEFAULT_ROSTER
from features.artifacts import collect_artifacts
from features.tasks import Task
from features.tasks import db as task_db
from models.errors import RunStateError
from workflows.generation import OpenAIGenerationService
from workflows.pipeline import BuildPipelineWorkflow, write_run_record
from workflows.state_machine import PipelineStateMachine

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

temporal_client: Client | None = None
_machine: PipelineStateMachine | None = None


def get_machine() -> PipelineStateMachine:
    """The single in-process state machine; one run at a time."""
    global _machine
    if _machine is None:
        _machine = PipelineStateMachine(OpenAIGenerationService(), persist=True)
    return _machine


@asynccontextmanager
async def lifespan(app: FastAPI):
    global temporal_client
    if config.DATABASE_URL:
        try:
            task_db.init_db()
            log.info("Postgres database initialized")
        except Exception as e:
            log.warning("Could not connect to Postgres: %s (runs will be saved to JSON only)", e)
    try:
        temporal_client = await Client.connect(config.TEMPORAL_HOST, namespace=config.TEMPORAL_NAMESPACE)
        log.info("Connected to Temporal at %s", config.TEMPORAL_HOST)
    except Exception as e:
        log.warning("Could not connect to Temporal: %s (pipeline will run in-process)", e)
        temporal_client = None
    yield


app = FastAPI(
    title="Build Crew",
    description="Autonomous multi-agent build pipeline with Temporal orchestration",
    version="1.0.0",
    lifespan=lifespan,
)


class RunStartRequest(BaseModel):
    use_temporal: bool = True


class RunStartResponse(BaseModel):
    run_id: str
    status: str
    message: str


# ── Health ────────────────────────────────────────────────────────────

@app.get("/health")
def health():
    return {
        "status": "ok",
        "service": "build-crew",
        "temporal_connected": temporal_client is not None,
    }


@app.get("/agents")
def list_agents():
    return {"agents": [a.to_dict() for a in DEFAULT_ROSTER]}


# ── Runs ──────────────────────────────────────────────────────────────

@app.post("/runs", response_model=RunStartResponse)
async def start_run(
    background_tasks: BackgroundTasks,
    req: RunStartRequest | None = None,
    machine: PipelineStateMachine = Depends(get_machine),
):
    """Start a build run."""
    run_id = machine.new_run_id()

    use_temporal = req.use_temporal if req else True

    if temporal_client and use_temporal:
        await temporal_client.start_workflow(
            BuildPipelineWorkflow.run,
            run_id,
            id=run_id,
            task_queue=config.TEMPORAL_TASK_QUEUE,
        )
        return RunStartResponse(
            run_id=run_id,
            status="started",
            message=f"Run started via Temporal. Workflow ID: {run_id}",
        )

    # Claimed before responding; the run itself starts after the response
    try:
        machine.reserve()
    except RunStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    background_tasks.add_task(_run_in_process, machine, run_id)
    return RunStartResponse(
        run_id=run_id,
        status="started",
        message=f"Run started in-process. Poll /runs/current for progress. Run ID: {run_id}",
    )


@app.get("/runs")
async def list_runs(phase: str | None = None, limit: int = 50):
    """List recorded runs."""
    if config.DATABASE_URL:
        try:
            runs = task_db.list_pipeline_runs(limit=limit, phase=phase)
            return {"runs": [_serialize(r) for r in runs]}
        except Exception as e:
            log.warning("Could not list runs from Postgres: %s", e)

    # Fallback: JSON files
    runs = []
    if config.PIPELINE_RUNS_DIR.is_dir():
        for record_file in sorted(config.PIPELINE_RUNS_DIR.glob("*.json"), reverse=True):
            try:
                with open(record_file) as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                log.warning("Skipping unreadable run record %s: %s", record_file, e)
                continue
            if phase and data.get("phase") != phase:
                continue
            runs.append({
                "run_id": data.get("run_id"),
                "phase": data.get("phase"),
                "started_at": data.get("started_at"),
                "finished_at": data.get("finished_at"),
                "tasks": len(data.get("tasks", [])),
            })
            if len(runs) >= limit:
                break
    return {"runs": runs}


@app.get("/runs/current")
async def current_run(machine: PipelineStateMachine = Depends(get_machine)):
    return machine.snapshot()


@app.get("/runs/current/log")
async def current_run_log(since: int = 0, machine: PipelineStateMachine = Depends(get_machine)):
    run_log = machine.context.log
    return {
        "run_id": machine.context.run_id,
        "phase": machine.phase.value,
        "entries": [e.to_dict() for e in run_log.since(since)],
        "next": len(run_log),
    }


@app.post("/runs/current/cancel")
async def cancel_current_run(machine: PipelineStateMachine = Depends(get_machine)):
    try:
        machine.cancel()
    except RunStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"run_id": machine.context.run_id, "status": "cancelling"}


@app.post("/runs/reset")
async def reset_machine(machine: PipelineStateMachine = Depends(get_machine)):
    try:
        machine.reset()
    except RunStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"phase": machine.phase.value}


@app.get("/runs/{run_id}")
async def get_run(run_id: str, machine: PipelineStateMachine = Depends(get_machine)):
    """Get the record of a run."""
    record = await _find_run_record(run_id, machine)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    return record


@app.get("/runs/{run_id}/artifacts")
async def get_run_artifacts(run_id: str, machine: PipelineStateMachine = Depends(get_machine)):
    """Files extracted from the completed tasks of a run."""
    record = await _find_run_record(run_id, machine)
    if record is None or "tasks" not in record:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    tasks = [Task.from_dict(t) for t in record["tasks"]]
    artifacts = collect_artifacts(tasks)
    return {
        "run_id": run_id,
        "artifacts": [a.to_dict() for a in artifacts],
        "count": len(artifacts),
    }


# ── Helpers ───────────────────────────────────────────────────────────

async def _find_run_record(run_id: str, machine: PipelineStateMachine) -> dict | None:
    """Look a run up in memory, Postgres, the JSON records, then Temporal."""
    if machine.context.run_id == run_id:
        return machine.snapshot()

    if config.DATABASE_URL:
        try:
            row = task_db.get_pipeline_run(run_id)
            if row:
                row["tasks"] = task_db.get_tasks_for_run(run_id)
                row["task_summary"] = task_db.get_task_summary(run_id)
                return _serialize(row)
        except Exception as e:
            log.warning("Could not read run %s from Postgres: %s", run_id, e)

    record_file = config.PIPELINE_RUNS_DIR / f"{run_id}.json"
    if record_file.exists():
        with open(record_file) as f:
            return json.load(f)

    if temporal_client:
        try:
            handle = temporal_client.get_workflow_handle(run_id)
            desc = await handle.describe()
        except Exception as e:
            log.info("Run %s not found in Temporal: %s", run_id, e)
            return None
        if desc.status and desc.status.name == "COMPLETED":
            return await handle.result()
        return {"run_id": run_id, "temporal_status": desc.status.name if desc.status else None}

    return None


def _serialize(obj: Any) -> Any:
    """Make a DB row JSON-serializable (datetimes become ISO strings)."""
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_serialize(v) for v in obj]
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    return obj


async def _run_in_process(machine: PipelineStateMachine, run_id: str) -> None:
    """Run the pipeline on the API's event loop and save its record."""
    try:
        ctx = await machine.start_run(run_id, reserved=True)
    except RunStateError as e:
        machine.release()
        log.warning("Run %s not started: %s", run_id, e)
        return

    record = ctx.to_record()
    try:
        record["log_file"] = write_run_record(record)
    except OSError as e:
        log.error("Could not save run record for %s: %s", run_id, e)
        return
    if config.DATABASE_URL:
        try:
            task_db.upsert_pipeline_run(record)
        except Exception as e:
            log.warning("Could not persist final run to Postgres: %s", e)
