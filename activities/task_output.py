"""
Activity: Task Output — one free-text generation for a single work item.

The prompt is fully assembled by the task executor; retries happen there too.
"""

from __future__ import annotations

import logging

from temporalio import activity

from utils.llm import chat

log = logging.getLogger(__name__)


@activity.defn
def generate_task_output(prompt: str) -> str:
    log.info("Generating task output (%d chars of prompt)", len(prompt))
    return chat(
        system="You are a member of an autonomous software team. Return your work in Markdown.",
        user=prompt,
        max_tokens=8192,
    )
