"""
Agents feature — the worker roster and what each role must deliver.

Public API:
    from features.agents import AgentProfile, AgentRole, AgentRoster, DEFAULT_ROSTER
    from features.agents import build_instruction, artifact_purpose
"""

from features.agents.instructions import artifact_purpose, build_instruction
from features.agents.models import AgentProfile, AgentRole, Deliverable
from features.agents.roster import DEFAULT_ROSTER, LEADS, WORKERS, AgentRoster

__all__ = [
    "AgentProfile",
    "AgentRole",
    "AgentRoster",
    "DEFAULT_ROSTER",
    "Deliverable",
    "LEADS",
    "WORKERS",
    "artifact_purpose",
    "build_instruction",
]
