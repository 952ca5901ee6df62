"""
Activity: Expand Plan — the coordinator breaks the vision into work items
assigned to specialised agents.
"""

from __future__ import annotations

import json
import logging

from temporalio import activity

from features.agents import DEFAULT_ROSTER
from models.errors import PlanError
from utils.llm import GenerationError, chat_json

log = logging.getLogger(__name__)

PLAN_PROTOCOL = (
    "Generate a comprehensive waterfall plan of 7-9 tasks involving specialised agents, "
    "in this order:\n"
    "1. product-owner: PRD & sitemap.\n"
    "2. arch-01: system architecture.\n"
    "3. db-arch: SQL schema design (if needed).\n"
    "4. ctx-eng: system context / prompts.\n"
    "5. builder-be: core logic / API.\n"
    "6. builder-fe: frontend structure.\n"
    "7. designer-ui: styling.\n"
    "8. creative-coder: visuals (only if needed).\n"
    "9. doc-01: documentation."
)


@activity.defn
def generate_plan(decision: dict) -> list[dict]:
    """
    Returns:
        [{"title": "...", "assigned_agent_id": "product-owner"}, ...] in plan order
    """
    agents = ", ".join(f"{a.id} ({a.specialty})" for a in DEFAULT_ROSTER)
    log.info("Expanding plan across %d available agents", len(DEFAULT_ROSTER))
    try:
        result = chat_json(
            system=(
                "Role: Taskmaster (project manager).\n"
                f"Available agents: {agents}\n\n"
                f"{PLAN_PROTOCOL}\n\n"
                'Respond with JSON: {"tasks": [{"title": "...", "assignedAgentId": "agent id"}]}'
            ),
            user=(
                f"Goal: build \"{decision.get('vision')}\"\n"
                f"KPIs: {json.dumps(decision.get('kpis', []))}"
            ),
            max_tokens=2048,
        )
    except GenerationError as e:
        raise PlanError(str(e)) from e

    raw_tasks = result.get("tasks")
    if not isinstance(raw_tasks, list):
        raise PlanError("Plan response has no task list")

    plan = []
    for i, raw in enumerate(raw_tasks):
        if not isinstance(raw, dict):
            raise PlanError(f"Task {i} is not an object")
        title = str(raw.get("title", "")).strip()
        agent_id = str(raw.get("assignedAgentId") or raw.get("assigned_agent_id") or "").strip()
        if not title or not agent_id:
            raise PlanError(f"Task {i} needs a title and an assigned agent")
        plan.append({"title": title, "assigned_agent_id": agent_id})

    log.info("Plan: %d tasks", len(plan))
    return plan
