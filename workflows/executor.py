"""
Agent Task Executor — runs one task on an agent's behalf, with bounded retry.

The executor never touches the task record; the caller applies the
returned output. A permanently failing service costs exactly
max_retries + 1 calls and max_retries waits.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from features.agents import AgentProfile, build_instruction
from features.tasks.models import Task
from models.errors import ExecutionError
from workflows.context import DEFAULT_EXCERPT_CHARS, build_context_window
from workflows.generation import GenerationService

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class EmptyOutputError(Exception):
    """The service answered with nothing usable."""


def build_prompt(instruction: str, vision: str, task_title: str, context: str) -> str:
    return (
        f"{instruction}\n\n"
        f"Project Vision: {vision}\n"
        f"Current Task: {task_title}\n\n"
        f"CONTEXT (PREVIOUS WORK):\n{context}\n\n"
        "**EXECUTE NOW. RETURN OUTPUT IN MARKDOWN.**"
    )


class AgentTaskExecutor:
    def __init__(
        self,
        service: GenerationService,
        max_retries: int = 2,
        retry_delay: float = 2.0,
        excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.service = service
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.excerpt_chars = excerpt_chars
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def prompt_for(
        self, agent: AgentProfile, task: Task, vision: str, completed_tasks: Sequence[Task],
    ) -> str:
        return build_prompt(
            build_instruction(agent, task.title),
            vision,
            task.title,
            build_context_window(completed_tasks, self.excerpt_chars),
        )

    async def execute(
        self,
        agent: AgentProfile,
        task: Task,
        vision: str,
        completed_tasks: Sequence[Task] = (),
    ) -> str:
        """Return the generated output, or raise ExecutionError after the last attempt."""
        prompt = self.prompt_for(agent, task, vision, completed_tasks)
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                output = await self.service.generate_task_output(prompt)
                if not output or not output.strip():
                    raise EmptyOutputError("Empty response from generation service")
                return output
            except Exception as e:
                last_error = e
                log.warning(
                    "[EXEC] Attempt %d/%d failed for %s on %s: %s",
                    attempt, self.max_attempts, agent.id, task.id, e,
                )
            if attempt < self.max_attempts:
                await self._sleep(self.retry_delay)

        raise ExecutionError(self.max_attempts, last_error) from last_error
