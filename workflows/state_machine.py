"""
Pipeline State Machine — drives one build run end to end.

  idle → discovering_concept → deciding_strategy → planning → executing → finished
                                                                         ↘ failed

A run owns a single RunContext: concept, decision, task tracker, log and
usage totals. Nothing outside the machine mutates it; observers read
`snapshot()` or subscribe with `add_listener()`.

Only the concept phase recovers from a generation failure (it falls back
to a default concept). A failed decision or plan aborts the run; a failed
task is recorded and the run moves on to the next one.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable

import config
from features.agents import DEFAULT_ROSTER, AgentProfile, AgentRole, AgentRoster, artifact_purpose
from features.run_log import LogEntry, LogType, RunLog
from features.tasks import Task, TaskStatus, TaskTracker, execution_order, schedule, total_duration
from features.tasks import db as task_db
from features.usage import UsageMeter, UsageStats
from models.errors import (
    DecisionError,
    ExecutionError,
    PipelineError,
    PlanError,
    RunCancelledError,
    RunStateError,
    UnknownAgentError,
)
from models.schemas import (
    DEFAULT_CONCEPT,
    Concept,
    Decision,
    PipelinePhase,
    PipelineSettings,
    UnknownAgentPolicy,
)
from workflows.executor import AgentTaskExecutor
from workflows.generation import GenerationService

log = logging.getLogger(__name__)

PREVIEW_CHARS = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PipelineEvent:
    """Emitted after every phase change, task transition, log append and usage update."""
    kind: str  # "phase" | "task" | "log" | "usage"
    run_id: str
    phase: PipelinePhase
    task_id: str | None = None
    status: TaskStatus | None = None
    entry: LogEntry | None = None
    usage: UsageStats | None = None


Listener = Callable[[PipelineEvent], None]


@dataclass
class RunContext:
    """All state belonging to one run."""
    run_id: str
    log: RunLog
    tracker: TaskTracker
    phase: PipelinePhase = PipelinePhase.IDLE
    concept: Concept | None = None
    decision: Decision | None = None
    usage: UsageStats = field(default_factory=UsageStats)
    error: str | None = None
    started_at: str | None = None
    finished_at: str | None = None

    @property
    def tasks(self) -> list[Task]:
        """Tasks in plan order."""
        return self.tracker.tasks

    @property
    def completed(self) -> list[Task]:
        """Completed tasks in completion order."""
        return self.tracker.completed

    def to_record(self) -> dict:
        return {
            "run_id": self.run_id,
            "phase": self.phase.value,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "error": self.error,
            "concept": self.concept.to_dict() if self.concept else None,
            "decision": self.decision.to_dict() if self.decision else None,
            "tasks": self.tracker.to_list(),
            "task_summary": self.tracker.summary(),
            "usage": self.usage.to_dict(),
            "log": self.log.to_list(),
        }


class PipelineStateMachine:
    def __init__(
        self,
        service: GenerationService,
        roster: AgentRoster = DEFAULT_ROSTER,
        settings: PipelineSettings | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        persist: bool = False,
    ):
        self.service = service
        self.roster = roster
        self.settings = settings or PipelineSettings.from_config()
        self.executor = AgentTaskExecutor(
            service,
            max_retries=self.settings.max_retries,
            retry_delay=self.settings.retry_delay,
            excerpt_chars=self.settings.excerpt_chars,
            sleep=sleep,
        )
        self.meter = UsageMeter(self.settings.unit_price)
        self._rng = rng or random.Random()
        self._clock = clock
        self._sleep = sleep
        self._persist = persist and bool(config.DATABASE_URL)
        self._listeners: list[Listener] = []
        self._cancel_requested = False
        self._reserved = False
        self._ctx = self._new_context("")

    # ── Observation ───────────────────────────────────────────────────

    @property
    def phase(self) -> PipelinePhase:
        return self._ctx.phase

    @property
    def context(self) -> RunContext:
        return self._ctx

    def snapshot(self) -> dict:
        """A detached, JSON-ready copy of the current run state."""
        return self._ctx.to_record()

    def add_listener(self, fn: Listener) -> Callable[[], None]:
        self._listeners.append(fn)

        def remove() -> None:
            if fn in self._listeners:
                self._listeners.remove(fn)

        return remove

    def _emit(self, event: PipelineEvent) -> None:
        for fn in list(self._listeners):
            try:
                fn(event)
            except Exception as e:
                log.warning("Pipeline listener %r failed: %s", fn, e)

    # ── Control ───────────────────────────────────────────────────────

    def cancel(self) -> None:
        """Ask the active run to stop before its next phase or task."""
        if not self.phase.is_active:
            raise RunStateError(f"No run in progress (phase: {self.phase.value})")
        self._cancel_requested = True
        log.info("Cancellation requested for %s", self._ctx.run_id)

    def reset(self) -> None:
        """Return a finished or failed machine to idle."""
        if self.phase.is_active or self._reserved:
            raise RunStateError(f"Cannot reset while {self.phase.value}")
        self._ctx = self._new_context("")

    def reserve(self) -> None:
        """Claim the machine for a start_run(reserved=True) that will follow.

        Callers that start the run later (e.g. from a background task) reserve
        first, so a second request is rejected before the first run begins.
        """
        if self._reserved or not self.phase.accepts_new_run:
            raise RunStateError(f"Cannot start a run while {self._busy_state()}")
        self._reserved = True

    def release(self) -> None:
        self._reserved = False

    async def start_run(self, run_id: str | None = None, reserved: bool = False) -> RunContext:
        """Run every phase in order; returns once the run is finished or failed."""
        if reserved != self._reserved or not self.phase.accepts_new_run:
            raise RunStateError(f"Cannot start a run while {self._busy_state()}")
        self._reserved = False

        run_id = run_id or self.new_run_id()
        self._ctx = ctx = self._new_context(run_id)
        ctx.started_at = self._clock().isoformat()
        self._cancel_requested = False
        self.meter.reset()
        ctx.usage = self.meter.stats
        log.info("Pipeline %s starting", run_id)
        self._save_run()
        self._log(f"Starting build pipeline run {run_id}")

        try:
            concept = await self._discover_concept()
            decision = await self._decide_strategy(concept)
            tasks = await self._plan(decision)
            await self._execute(tasks, decision.vision)
        except PipelineError as e:
            self._abort(str(e))
        except asyncio.CancelledError:
            self._abort("Run cancelled")
            raise
        except Exception as e:
            log.error("Pipeline %s failed: %s", run_id, e, exc_info=True)
            self._abort(f"Unexpected error: {e}")
        else:
            summary = ctx.tracker.summary()["statuses"]
            self._log(
                f"Mission complete: {summary.get('completed', 0)} completed, "
                f"{summary.get('failed', 0)} failed",
                LogType.SUCCESS,
            )
            ctx.finished_at = self._clock().isoformat()
            self._set_phase(PipelinePhase.FINISHED)
        finally:
            self._save_run()

        log.info("Pipeline %s ended: %s", run_id, ctx.phase.value)
        return ctx

    # ── Phases ────────────────────────────────────────────────────────

    async def _discover_concept(self) -> Concept:
        self._enter(PipelinePhase.DISCOVERING_CONCEPT)
        self._log("Scanning for a project opportunity...", LogType.THINKING)
        try:
            concept = await self.service.generate_concept()
        except Exception as e:
            log.warning("Concept generation failed, using default concept: %s", e)
            concept = DEFAULT_CONCEPT

        self._meter(json.dumps(concept.to_dict(), ensure_ascii=False))
        self._ctx.concept = concept
        details = concept.opportunity
        if concept.is_fallback:
            details += "\n(default concept: the generation service did not return one)"
        self._log(f"Opportunity detected: {concept.trend}", LogType.SUCCESS, details)
        return concept

    async def _decide_strategy(self, concept: Concept) -> Decision:
        self._enter(PipelinePhase.DECIDING_STRATEGY)
        strategist = self.roster.first_with_role(AgentRole.STRATEGIST)
        self._log("Weighing strategic value...", LogType.THINKING, agent=strategist)
        try:
            decision = await self.service.generate_decision(concept)
        except Exception as e:
            raise DecisionError(f"Strategic decision failed: {e}") from e

        self._meter(json.dumps(decision.to_dict(), ensure_ascii=False))
        self._ctx.decision = decision
        kpis = "\n".join(f"- {k}" for k in decision.kpis)
        self._log(
            "Strategic directive issued", LogType.SUCCESS,
            f"{decision.vision}\n{kpis}".rstrip(), agent=strategist,
        )
        return decision

    async def _plan(self, decision: Decision) -> list[Task]:
        self._enter(PipelinePhase.PLANNING)
        coordinator = self.roster.first_with_role(AgentRole.COORDINATOR)
        self._log("Breaking the strategy into work items...", LogType.THINKING, agent=coordinator)
        try:
            planned = list(await self.service.generate_plan(decision))
        except Exception as e:
            raise PlanError(f"Planning failed: {e}") from e

        self._meter(json.dumps([p.to_dict() for p in planned], ensure_ascii=False))
        if not planned:
            raise PlanError("Planning produced no tasks")
        if self.settings.unknown_agent_policy == UnknownAgentPolicy.FAIL:
            for item in planned:
                if item.assigned_agent_id not in self.roster:
                    raise UnknownAgentError(item.assigned_agent_id, item.title)

        ctx = self._ctx
        tasks = schedule(
            planned,
            rng=self._rng,
            duration_range=self.settings.duration_range,
            id_prefix=f"{ctx.run_id}-task",
        )
        ctx.tracker = TaskTracker(ctx.run_id, tasks, clock=self._clock, persist=self._persist)
        for task in tasks:
            self._emit_task(task)
        timeline = "\n".join(
            f"[{t.start_offset:>3}+{t.duration}] {t.assigned_agent_id}: {t.title}" for t in tasks
        )
        self._log(f"Created {len(tasks)} work items", LogType.SUCCESS, timeline, agent=coordinator)
        return tasks

    async def _execute(self, tasks: list[Task], vision: str) -> None:
        self._enter(PipelinePhase.EXECUTING)
        order = execution_order(tasks)
        self._log(f"Executing {len(order)} tasks over {total_duration(order)} time units")
        for task in order:
            self._check_cancelled()
            agent = self.roster.get(task.assigned_agent_id)
            if agent is None:
                log.info("Skipping %s: agent %s is not on the roster", task.id, task.assigned_agent_id)
                continue
            await self._run_task(agent, task, vision)
            if self.settings.pacing_delay > 0:
                await self._sleep(self.settings.pacing_delay)

    async def _run_task(self, agent: AgentProfile, task: Task, vision: str) -> None:
        tracker = self._ctx.tracker
        tracker.start(task)
        self._emit_task(task)
        self._log(f"Starting task: {task.title}", agent=agent)

        try:
            output = await self.executor.execute(agent, task, vision, list(tracker.completed))
        except ExecutionError as e:
            tracker.fail(task, str(e))
            self._emit_task(task)
            self._log(f"Task failed: {task.title}", LogType.ERROR, str(e), agent=agent)
            return

        self._meter(output)
        tracker.complete(task, output)
        self._emit_task(task)
        preview = output[:PREVIEW_CHARS] + ("..." if len(output) > PREVIEW_CHARS else "")
        self._log("Task complete", LogType.SUCCESS, preview, agent=agent)
        purpose = artifact_purpose(agent)
        if purpose:
            self._log("Checking artifact purpose...", LogType.INFO, purpose)

    # ── Helpers ───────────────────────────────────────────────────────

    def _new_context(self, run_id: str) -> RunContext:
        run_log = RunLog(clock=self._clock)
        run_log.subscribe(self._on_log_entry)
        return RunContext(
            run_id=run_id,
            log=run_log,
            tracker=TaskTracker(run_id, clock=self._clock),
        )

    def _busy_state(self) -> str:
        return "another run is starting" if self._reserved else self.phase.value

    def new_run_id(self) -> str:
        return f"run-{self._clock():%Y%m%d-%H%M%S}-{self._rng.getrandbits(24):06x}"

    def _enter(self, phase: PipelinePhase) -> None:
        self._check_cancelled()
        self._set_phase(phase)

    def _set_phase(self, phase: PipelinePhase) -> None:
        self._ctx.phase = phase
        log.info("Pipeline %s → %s", self._ctx.run_id, phase.value)
        self._emit(PipelineEvent("phase", self._ctx.run_id, phase))

    def _check_cancelled(self) -> None:
        if self._cancel_requested:
            raise RunCancelledError()

    def _abort(self, reason: str) -> None:
        ctx = self._ctx
        ctx.error = reason
        self._log(f"Run aborted: {reason}", LogType.ERROR)
        ctx.finished_at = self._clock().isoformat()
        self._set_phase(PipelinePhase.FAILED)

    def _log(
        self,
        message: str,
        type: LogType = LogType.INFO,
        details: str | None = None,
        agent: AgentProfile | None = None,
    ) -> LogEntry:
        return self._ctx.log.append(message, type, details, agent=agent)

    def _on_log_entry(self, entry: LogEntry) -> None:
        self._emit(PipelineEvent("log", self._ctx.run_id, self._ctx.phase, entry=entry))

    def _emit_task(self, task: Task) -> None:
        self._emit(PipelineEvent(
            "task", self._ctx.run_id, self._ctx.phase, task_id=task.id, status=task.status,
        ))

    def _meter(self, text: str) -> None:
        self._ctx.usage = self.meter.meter(text)
        self._emit(PipelineEvent("usage", self._ctx.run_id, self._ctx.phase, usage=self._ctx.usage))

    def _save_run(self) -> None:
        """Upsert the run row to Postgres when persistence is on."""
        if not self._persist:
            return
        try:
            task_db.upsert_pipeline_run(self._ctx.to_record())
        except Exception as e:
            log.warning("Could not persist run %s to Postgres: %s", self._ctx.run_id, e)
