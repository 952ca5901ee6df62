"""
Data models for the agents feature.

An AgentProfile is the identity of a worker. It never executes anything
itself; the task executor acts on its behalf.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AgentRole(str, Enum):
    STRATEGIST = "top-strategist"
    ARCHITECT = "architect"
    COORDINATOR = "coordinator"
    WORKER = "specialist-worker"


class Deliverable(str, Enum):
    """What an agent is expected to hand back; selects its instruction template."""
    REQUIREMENTS = "requirements"
    CONTEXT = "context"
    SCHEMA = "schema"
    STYLING = "styling"
    CREATIVE = "creative"
    ARCHITECTURE = "architecture"
    FRONTEND = "frontend"
    BACKEND = "backend"
    REVIEW = "review"
    DOCUMENTATION = "documentation"
    GENERIC = "generic"


@dataclass(frozen=True)
class AgentProfile:
    id: str
    name: str
    role: AgentRole
    specialty: str
    description: str = ""
    icon: str = ""
    deliverable: Deliverable = Deliverable.GENERIC

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "specialty": self.specialty,
            "description": self.description,
            "icon": self.icon,
            "deliverable": self.deliverable.value,
        }
