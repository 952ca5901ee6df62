"""
Artifacts feature — parses generated files out of task output.

Public API:
    from features.artifacts import Artifact, extract_artifacts, collect_artifacts
"""

from features.artifacts.extract import Artifact, collect_artifacts, extract_artifacts

__all__ = ["Artifact", "collect_artifacts", "extract_artifacts"]
