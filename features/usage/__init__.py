"""
Usage feature — approximate consumption accounting for generation calls.

Public API:
    from features.usage import UsageMeter, UsageStats, record, accumulate
"""

from features.usage.meter import UsageMeter, UsageStats, accumulate, record

__all__ = ["UsageMeter", "UsageStats", "accumulate", "record"]
