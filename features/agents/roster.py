"""
Agent roster — the fixed set of leads and workers available to a run.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from features.agents.models import AgentProfile, AgentRole, Deliverable

LEADS: tuple[AgentProfile, ...] = (
    AgentProfile(
        id="ceo-01", name="OVERLORD (CEO)", role=AgentRole.STRATEGIST,
        specialty="Strategy & Goal",
        description="Defines the high-level goal and business value.", icon="👑",
    ),
    AgentProfile(
        id="arch-01", name="ARCHITECT (CTO)", role=AgentRole.ARCHITECT,
        specialty="System Design",
        description="Converts goals into system architecture and file structures.", icon="📐",
        deliverable=Deliverable.ARCHITECTURE,
    ),
    AgentProfile(
        id="pm-01", name="TASKMASTER (PM)", role=AgentRole.COORDINATOR,
        specialty="Orchestration",
        description="Breaks down architecture into build tasks.", icon="📋",
    ),
)

WORKERS: tuple[AgentProfile, ...] = (
    # Planning & specs
    AgentProfile("product-owner", "Product Owner", AgentRole.WORKER, "PRD & Sitemap",
                 "Creates Product Requirements Document and Sitemaps.", "📑", Deliverable.REQUIREMENTS),
    AgentProfile("ctx-eng", "Context Eng.", AgentRole.WORKER, "Prompt Engineering",
                 "Designs System Prompts and Agent Contexts.", "🧠", Deliverable.CONTEXT),
    AgentProfile("db-arch", "DB Architect", AgentRole.WORKER, "SQL & Schema",
                 "Designs Database Schemas and SQL relations.", "🗄️", Deliverable.SCHEMA),
    # Builders
    AgentProfile("builder-fe", "Builder (Frontend)", AgentRole.WORKER, "Next.js/React/HTML",
                 "Writes the actual frontend code from the architecture.", "⚛️", Deliverable.FRONTEND),
    AgentProfile("builder-be", "Builder (Backend)", AgentRole.WORKER, "Python/FastAPI/Node",
                 "Writes the actual backend code from the architecture.", "🐍", Deliverable.BACKEND),
    AgentProfile("designer-ui", "UI Designer", AgentRole.WORKER, "CSS/Bootstrap/Tailwind",
                 "Handles styling, aesthetics, and responsive layout.", "🎨", Deliverable.STYLING),
    AgentProfile("creative-coder", "Creative Coder", AgentRole.WORKER, "p5.js & Canvas",
                 "Creates interactive visuals and generative art.", "✨", Deliverable.CREATIVE),
    # Quality & maintenance
    AgentProfile("janitor-01", "Janitor (Refactor)", AgentRole.WORKER, "Code Cleanup & Optimization",
                 "Refactors code, removes complexity, ensures clean code.", "🧹", Deliverable.REVIEW),
    AgentProfile("doc-01", "Documenter", AgentRole.WORKER, "Technical Writing",
                 "Writes README.md and technical documentation.", "📝", Deliverable.DOCUMENTATION),
    # Support
    AgentProfile("dev-ops", "Pipeline (DevOps)", AgentRole.WORKER, "Docker/Vercel",
                 "Deployment configuration.", "🚀"),
    AgentProfile("mkt-growth", "Hacker (Growth)", AgentRole.WORKER, "Growth Hacking",
                 "Growth strategy.", "📈"),
)


class AgentRoster:
    """Immutable id → AgentProfile lookup."""

    def __init__(self, agents: Iterable[AgentProfile]):
        self._agents: dict[str, AgentProfile] = {}
        for agent in agents:
            if agent.id in self._agents:
                raise ValueError(f"Duplicate agent id: {agent.id}")
            self._agents[agent.id] = agent

    def get(self, agent_id: str) -> AgentProfile | None:
        return self._agents.get(agent_id)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def __iter__(self) -> Iterator[AgentProfile]:
        return iter(self._agents.values())

    def __len__(self) -> int:
        return len(self._agents)

    def ids(self) -> list[str]:
        return list(self._agents)

    def first_with_role(self, role: AgentRole) -> AgentProfile | None:
        return next((a for a in self._agents.values() if a.role == role), None)


DEFAULT_ROSTER = AgentRoster(LEADS + WORKERS)
