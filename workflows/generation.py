"""
Generation service — the pipeline's only contract with the text model.

The state machine and task executor depend on the GenerationService
protocol alone. OpenAIGenerationService runs the blocking activity
functions in the default executor so the event loop stays free; the
Temporal workflow supplies its own activity-backed implementation.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Callable, Protocol, Sequence

from activities.concept import generate_concept
from activities.decision import generate_decision
from activities.plan import generate_plan
from activities.task_output import generate_task_output
from models.schemas import Concept, Decision, PlannedTask

log = logging.getLogger(__name__)


class GenerationService(Protocol):
    async def generate_concept(self) -> Concept: ...

    async def generate_decision(self, concept: Concept) -> Decision: ...

    async def generate_plan(self, decision: Decision) -> Sequence[PlannedTask]: ...

    async def generate_task_output(self, prompt: str) -> str: ...


def planned_from_dicts(items: Sequence[dict]) -> list[PlannedTask]:
    return [PlannedTask(title=i["title"], assigned_agent_id=i["assigned_agent_id"]) for i in items]


class OpenAIGenerationService:
    """In-process generation backed by the OpenAI activities."""

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))

    async def generate_concept(self) -> Concept:
        return Concept.from_dict(await self._run(generate_concept))

    async def generate_decision(self, concept: Concept) -> Decision:
        return Decision.from_dict(await self._run(generate_decision, concept.to_dict()))

    async def generate_plan(self, decision: Decision) -> list[PlannedTask]:
        return planned_from_dicts(await self._run(generate_plan, decision.to_dict()))

    async def generate_task_output(self, prompt: str) -> str:
        return await self._run(generate_task_output, prompt)
