"""
Run log feature — the observable, append-only trace of a pipeline run.

Public API:
    from features.run_log import RunLog, LogEntry, LogType
"""

from features.run_log.log import RunLog
from features.run_log.models import SYSTEM_NAME, LogEntry, LogType

__all__ = ["LogEntry", "LogType", "RunLog", "SYSTEM_NAME"]
