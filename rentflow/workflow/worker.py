"""Worker configuration for the RentFlow instruction activities.

Starts a Temporal worker with every instruction activity registered on
the configured task queue. Activities share one RentFlowProgram, so the
worker process owns the program state.

Usage::

    import asyncio
    from rentflow.workflow.worker import run_worker

    asyncio.run(run_worker(program))
"""

from __future__ import annotations

from temporalio.client import Client
from temporalio.worker import Worker

from rentflow.infra.config import WorkerConfig
from rentflow.protocol.program import RentFlowProgram
from rentflow.workflow.activities import RentFlowActivities


def build_worker(
    client: Client,
    activities: RentFlowActivities,
    config: WorkerConfig = WorkerConfig(),
) -> Worker:
    """Worker with every RentFlow activity on config.task_queue."""
    return Worker(
        client,
        task_queue=config.task_queue,
        activities=activities.all(),
    )


async def run_worker(
    program: RentFlowProgram,
    config: WorkerConfig = WorkerConfig(),
) -> None:
    """Connect to Temporal and run the worker until interrupted."""
    client = await Client.connect(config.target_host, namespace=config.namespace)
    worker = build_worker(client, RentFlowActivities(program), config)
    await worker.run()
