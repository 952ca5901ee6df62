"""
Pipeline error taxonomy.

Recovered locally:  ConceptGenerationError (fallback concept),
                    ExecutionError (task marked failed, run continues).
Fatal to a run:     DecisionError, PlanError, UnknownAgentError, RunCancelledError.
Caller errors:      RunStateError, TaskStateError.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every error raised by the build pipeline."""


class ConceptGenerationError(PipelineError):
    pass


class DecisionError(PipelineError):
    pass


class PlanError(PipelineError):
    pass


class UnknownAgentError(PlanError):
    """A planned task names an agent that is not on the roster."""

    def __init__(self, agent_id: str, title: str = ""):
        self.agent_id = agent_id
        self.title = title
        super().__init__(f"Unknown agent '{agent_id}' assigned to task '{title}'")


class ExecutionError(PipelineError):
    """A task could not be executed within the retry budget."""

    def __init__(self, attempts: int, cause: BaseException | None):
        self.attempts = attempts
        self.cause = cause
        reason = str(cause) if cause is not None else "unknown error"
        super().__init__(f"Execution failed after {attempts} attempts: {reason}")


TaskExecutionError = ExecutionError


class RunStateError(PipelineError):
    """The state machine cannot accept the request in its current phase."""


class RunCancelledError(PipelineError):
    def __init__(self) -> None:
        super().__init__("Run cancelled")


class TaskStateError(PipelineError):
    """An illegal task status transition was requested."""
