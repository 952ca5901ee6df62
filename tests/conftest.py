from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

import config
from features.agents import AgentProfile, AgentRole, AgentRoster, Deliverable
from models.schemas import Concept, Decision, PipelineSettings, PlannedTask, UnknownAgentPolicy

TITLE_RE = re.compile(r"^Current Task: (.*)$", re.MULTILINE)


class FakeGenerationService:
    """Scripted GenerationService.

    task_results maps a task title to the successive results of its calls;
    each result is either output text or an exception to raise. The last
    result repeats once the list runs out.
    """

    def __init__(
        self,
        concept: Concept | Exception | None = None,
        decision: Decision | Exception | None = None,
        plan: list[PlannedTask] | Exception | None = None,
        task_results: dict[str, list] | None = None,
    ):
        self.concept = concept or Concept(
            trend="Clip generator for short-form video",
            sector="Creator tools",
            opportunity="Creators need volume",
            project_name="clip-forge",
        )
        self.decision = decision or Decision(
            vision="Ship the fastest clip tool", kpis=("100 users", "10 paying", "$1k MRR"),
        )
        self.plan = plan if plan is not None else [
            PlannedTask("Design the architecture", "architect"),
            PlannedTask("Build the API", "specialist-A"),
            PlannedTask("Build the UI", "specialist-B"),
        ]
        self.task_results = task_results or {}
        self.calls: list[str] = []
        self.prompts: list[str] = []

    async def generate_concept(self) -> Concept:
        self.calls.append("concept")
        if isinstance(self.concept, Exception):
            raise self.concept
        return self.concept

    async def generate_decision(self, concept: Concept) -> Decision:
        self.calls.append("decision")
        self.decision_input = concept
        if isinstance(self.decision, Exception):
            raise self.decision
        return self.decision

    async def generate_plan(self, decision: Decision) -> list[PlannedTask]:
        self.calls.append("plan")
        if isinstance(self.plan, Exception):
            raise self.plan
        return list(self.plan)

    async def generate_task_output(self, prompt: str) -> str:
        title = TITLE_RE.search(prompt).group(1)
        self.calls.append(f"task:{title}")
        self.prompts.append(prompt)
        results = self.task_results.get(title)
        if not results:
            slug = title.lower().replace(" ", "-")
            return f"### {slug}.md\n```markdown\nDone: {title}\n```"
        result = results.pop(0) if len(results) > 1 else results[0]
        if isinstance(result, Exception):
            raise result
        return result

    def task_calls(self, title: str) -> int:
        return self.calls.count(f"task:{title}")


class RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


class SequenceRng:
    """Stands in for random.Random in the scheduler: randint returns scripted values."""

    def __init__(self, values):
        self.values = list(values)

    def randint(self, low: int, high: int) -> int:
        return self.values.pop(0)

    def getrandbits(self, k: int) -> int:
        return 0xABCDEF


class StepClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture(autouse=True)
def no_database(monkeypatch):
    monkeypatch.setattr(config, "DATABASE_URL", "")


@pytest.fixture
def roster() -> AgentRoster:
    return AgentRoster([
        AgentProfile("ceo", "Strategist", AgentRole.STRATEGIST, "Strategy"),
        AgentProfile("pm", "Coordinator", AgentRole.COORDINATOR, "Planning"),
        AgentProfile("architect", "Architect", AgentRole.ARCHITECT, "System Design",
                     deliverable=Deliverable.ARCHITECTURE),
        AgentProfile("specialist-A", "Backend Builder", AgentRole.WORKER, "APIs",
                     deliverable=Deliverable.BACKEND),
        AgentProfile("specialist-B", "Frontend Builder", AgentRole.WORKER, "UI",
                     deliverable=Deliverable.FRONTEND),
        AgentProfile("ops", "Operator", AgentRole.WORKER, "Deployment"),
    ])


@pytest.fixture
def settings() -> PipelineSettings:
    return PipelineSettings(
        max_retries=2,
        retry_delay=2.0,
        pacing_delay=0.8,
        excerpt_chars=1500,
        unit_price=Decimal("0.10"),
        duration_range=(2, 4),
        unknown_agent_policy=UnknownAgentPolicy.FAIL,
    )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()
