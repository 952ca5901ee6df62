"""
Artifact extraction — pulls named files out of task output text.

A file is a `### <filename>` heading line followed by a fenced block with
an optional language tag:

    ### schema.sql
    ```sql
    CREATE TABLE users (...);
    ```
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from features.tasks.models import Task, TaskStatus

FILE_BLOCK_RE = re.compile(
    r"###\s+([A-Za-z0-9_./-]+)[ \t]*(?:\r?\n)+```([A-Za-z0-9+#-]*)[ \t]*\r?\n(.*?)\r?\n```",
    re.DOTALL,
)


@dataclass(frozen=True)
class Artifact:
    name: str
    language: str
    content: str
    agent_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "language": self.language,
            "content": self.content,
            "agent_id": self.agent_id,
        }


def extract_artifacts(text: str, agent_id: str | None = None) -> list[Artifact]:
    """Return every file block in *text*, in order of appearance."""
    return [
        Artifact(
            name=m.group(1).strip(),
            language=m.group(2).strip() or "text",
            content=m.group(3),
            agent_id=agent_id,
        )
        for m in FILE_BLOCK_RE.finditer(text or "")
    ]


def collect_artifacts(tasks: Iterable[Task]) -> list[Artifact]:
    """Artifacts from all completed tasks, tagged with the producing agent."""
    artifacts: list[Artifact] = []
    for task in tasks:
        if task.status != TaskStatus.COMPLETED or not task.output:
            continue
        artifacts.extend(extract_artifacts(task.output, agent_id=task.assigned_agent_id))
    return artifacts
