"""
Activity: Discover Concept — asks the model for a small, buildable product idea.
"""

from __future__ import annotations

import logging

from temporalio import activity

from models.errors import ConceptGenerationError
from models.schemas import Concept
from utils.llm import GenerationError, chat_json

log = logging.getLogger(__name__)

REQUIRED_FIELDS = ("trend", "sector", "opportunity", "project_name")


@activity.defn
def generate_concept() -> dict:
    """
    Generate a Micro-SaaS / automation tool concept.

    Returns:
        {"trend": "...", "sector": "...", "opportunity": "...", "project_name": "kebab-case"}
    """
    log.info("Generating project concept")
    try:
        result = chat_json(
            system=(
                "You are a product scout looking for high-potential Micro-SaaS or automation "
                "tool ideas in social media monetization, e-commerce or generative art.\n\n"
                "Constraints:\n"
                "1. Product type: B2B tool, creator tool, or automation bot.\n"
                "2. Tech stack may involve Python, Next.js, p5.js, SQL or Bootstrap.\n"
                "3. The tool must help users make money, save time, or create engagement.\n\n"
                "Respond with JSON:\n"
                '{"trend": "the core concept", "sector": "specific niche", '
                '"opportunity": "why this makes money now", '
                '"project_name": "developer-friendly kebab-case repository name"}'
            ),
            user="Find one concrete opportunity worth building this week.",
            max_tokens=1024,
        )
    except GenerationError as e:
        raise ConceptGenerationError(str(e)) from e

    missing = [f for f in REQUIRED_FIELDS if not str(result.get(f, "")).strip()]
    if missing:
        raise ConceptGenerationError(f"Concept is missing fields: {', '.join(missing)}")

    concept = Concept(**{f: str(result[f]).strip() for f in REQUIRED_FIELDS})
    log.info("Concept: %s (%s)", concept.project_name, concept.sector)
    return concept.to_dict()
