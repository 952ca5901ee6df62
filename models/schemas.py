"""
Pipeline-level models: concept, decision, phases and per-run settings.

Feature models live with their features and are re-exported here so
callers have one place to import the run's vocabulary from.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

import config
from features.agents.models import AgentProfile, AgentRole, Deliverable  # noqa: F401
from features.run_log.models import LogEntry, LogType  # noqa: F401
from features.tasks.models import PlannedTask, Task, TaskStatus  # noqa: F401
from features.usage.meter import UsageStats  # noqa: F401


class PipelinePhase(str, Enum):
    IDLE = "idle"
    DISCOVERING_CONCEPT = "discovering_concept"
    DECIDING_STRATEGY = "deciding_strategy"
    PLANNING = "planning"
    EXECUTING = "executing"
    FINISHED = "finished"
    FAILED = "failed"

    @property
    def accepts_new_run(self) -> bool:
        return self in (PipelinePhase.IDLE, PipelinePhase.FINISHED)

    @property
    def is_active(self) -> bool:
        return self not in (PipelinePhase.IDLE, PipelinePhase.FINISHED, PipelinePhase.FAILED)


class UnknownAgentPolicy(str, Enum):
    FAIL = "fail"
    SKIP = "skip"


@dataclass(frozen=True)
class Concept:
    """A generated project idea."""
    trend: str
    sector: str
    opportunity: str
    project_name: str
    is_fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "trend": self.trend,
            "sector": self.sector,
            "opportunity": self.opportunity,
            "project_name": self.project_name,
            "is_fallback": self.is_fallback,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Concept:
        return cls(
            trend=data["trend"],
            sector=data["sector"],
            opportunity=data["opportunity"],
            project_name=data["project_name"],
            is_fallback=bool(data.get("is_fallback", False)),
        )


DEFAULT_CONCEPT = Concept(
    trend="Music visualizer generator built with p5.js",
    sector="Creative Tools",
    opportunity="Helps artists turn tracks into YouTube/TikTok content much faster.",
    project_name="audio-viz-generator",
    is_fallback=True,
)


@dataclass(frozen=True)
class Decision:
    """Strategic output: a vision and ordered KPIs."""
    vision: str
    kpis: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"vision": self.vision, "kpis": list(self.kpis)}

    @classmethod
    def from_dict(cls, data: dict) -> Decision:
        return cls(vision=data["vision"], kpis=tuple(data.get("kpis") or ()))


@dataclass(frozen=True)
class PipelineSettings:
    """Tunables for one run. Zero delays make a headless run go flat out."""
    max_retries: int = 2
    retry_delay: float = 2.0
    pacing_delay: float = 0.8
    excerpt_chars: int = 1500
    unit_price: Decimal = Decimal("0.10")
    duration_range: tuple[int, int] = (2, 4)
    unknown_agent_policy: UnknownAgentPolicy = UnknownAgentPolicy.FAIL

    @classmethod
    def from_config(cls) -> PipelineSettings:
        return cls(
            max_retries=config.TASK_MAX_RETRIES,
            retry_delay=config.TASK_RETRY_DELAY_SEC,
            pacing_delay=config.TASK_PACING_DELAY_SEC,
            excerpt_chars=config.CONTEXT_EXCERPT_CHARS,
            unit_price=Decimal(config.UNIT_PRICE_PER_MILLION),
            duration_range=(config.TASK_DURATION_MIN, config.TASK_DURATION_MAX),
            unknown_agent_policy=UnknownAgentPolicy(config.UNKNOWN_AGENT_POLICY),
        )
