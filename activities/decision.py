"""
Activity: Strategic Decision — the strategist turns a concept into a vision and KPIs.
"""

from __future__ import annotations

import logging

from temporalio import activity

from models.errors import DecisionError
from utils.llm import GenerationError, chat_json

log = logging.getLogger(__name__)


@activity.defn
def generate_decision(concept: dict) -> dict:
    """
    Returns:
        {"vision": "...", "kpis": ["MVP success", "user acquisition", "revenue"]}
    """
    log.info("Deciding strategy for %s", concept.get("project_name"))
    try:
        result = chat_json(
            system=(
                "Role: CEO / strategist of an autonomous software studio.\n"
                "1. Define a bold, strategic vision for the product.\n"
                "2. Define exactly 3 KPIs: MVP success, user acquisition, revenue.\n\n"
                'Respond with JSON: {"vision": "...", "kpis": ["...", "...", "..."]}'
            ),
            user=(
                f"We are building a Micro-SaaS: \"{concept.get('trend')}\"\n"
                f"Sector: {concept.get('sector')}\n"
                f"Opportunity: {concept.get('opportunity')}"
            ),
            max_tokens=1024,
        )
    except GenerationError as e:
        raise DecisionError(str(e)) from e

    vision = str(result.get("vision", "")).strip()
    if not vision:
        raise DecisionError("Decision has no vision")
    kpis = result.get("kpis") or []
    if not isinstance(kpis, list):
        raise DecisionError(f"KPIs must be a list, got {type(kpis).__name__}")

    log.info("Decision: %d KPIs", len(kpis))
    return {"vision": vision, "kpis": [str(k) for k in kpis]}
