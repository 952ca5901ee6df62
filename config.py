"""
Configuration — loads settings from environment / .env file.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(__file__).parent
PIPELINE_RUNS_DIR = Path(os.getenv("PIPELINE_RUNS_DIR", str(PROJECT_ROOT / "pipeline_runs")))

# OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1")
OPENAI_TIMEOUT_SEC = float(os.getenv("OPENAI_TIMEOUT_SEC", "120"))

# Temporal
TEMPORAL_HOST = os.getenv("TEMPORAL_HOST", "localhost:7233")
TEMPORAL_TASK_QUEUE = "build-crew-queue"
TEMPORAL_NAMESPACE = "default"

# Postgres (optional audit trail, empty disables persistence)
DATABASE_URL = os.getenv("DATABASE_URL", "")

# Task execution
TASK_MAX_RETRIES = int(os.getenv("TASK_MAX_RETRIES", "2"))
TASK_RETRY_DELAY_SEC = float(os.getenv("TASK_RETRY_DELAY_SEC", "2.0"))
TASK_PACING_DELAY_SEC = float(os.getenv("TASK_PACING_DELAY_SEC", "0.8"))

# Scheduling (simulated effort units, inclusive range)
TASK_DURATION_MIN = 2
TASK_DURATION_MAX = 4

# Characters of each prior task output forwarded to the next task
CONTEXT_EXCERPT_CHARS = int(os.getenv("CONTEXT_EXCERPT_CHARS", "1500"))

# Usage accounting (~4 chars per unit, USD per 1M units)
CHARS_PER_UNIT = 4
UNIT_PRICE_PER_MILLION = os.getenv("UNIT_PRICE_PER_MILLION", "0.10")

# What to do with a planned task whose agent is not on the roster: "fail" | "skip"
UNKNOWN_AGENT_POLICY = os.getenv("UNKNOWN_AGENT_POLICY", "fail")
