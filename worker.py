"""
Temporal Worker — registers the build workflow and its activities, then polls for tasks.

Usage:
    python worker.py
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

from temporalio.client import Client
from temporalio.worker import Worker

import config
from activities.concept import generate_concept
from activities.decision import generate_decision
from activities.plan import generate_plan
from activities.task_output import generate_task_output
from workflows.pipeline import BuildPipelineWorkflow, save_run_record

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

ALL_ACTIVITIES = [
    generate_concept,
    generate_decision,
    generate_plan,
    generate_task_output,
    save_run_record,
]


async def main():
    log.info("Connecting to Temporal at %s", config.TEMPORAL_HOST)
    client = await Client.connect(config.TEMPORAL_HOST, namespace=config.TEMPORAL_NAMESPACE)

    log.info("Starting worker on queue: %s", config.TEMPORAL_TASK_QUEUE)
    # Activities are blocking OpenAI calls; run them off the event loop
    with ThreadPoolExecutor(max_workers=8) as activity_executor:
        worker = Worker(
            client,
            task_queue=config.TEMPORAL_TASK_QUEUE,
            workflows=[BuildPipelineWorkflow],
            activities=ALL_ACTIVITIES,
            activity_executor=activity_executor,
        )
        log.info("Worker ready — listening for tasks")
        await worker.run()


if __name__ == "__main__":
    asyncio.run(main())
