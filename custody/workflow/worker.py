"""Worker configuration for the durable custody ledger.

Starts a Temporal worker with the ledger workflow and the payout activity
registered on the configured task queue.

Usage::

    import asyncio
    from custody.workflow.worker import run_worker

    asyncio.run(run_worker(transfer=my_payout_rail))
"""

from __future__ import annotations

from temporalio.client import Client, WorkflowHandle
from temporalio.worker import Worker

from custody.infra.config import DEFAULT_TASK_QUEUE, TemporalWorkerConfig
from custody.infra.protocols import AssetTransfer
from custody.workflow.activities import PayoutActivities
from custody.workflow.ledger_workflow import CustodyLedgerWorkflow
from custody.workflow.types import LedgerSummary, LedgerWorkflowInput


def build_worker(
    client: Client,
    transfer: AssetTransfer,
    *,
    task_queue: str = DEFAULT_TASK_QUEUE,
) -> Worker:
    """Worker serving CustodyLedgerWorkflow and send_payout on task_queue."""
    payouts = PayoutActivities(transfer)
    return Worker(
        client,
        task_queue=task_queue,
        workflows=[CustodyLedgerWorkflow],
        activities=[payouts.send_payout],
    )


async def start_ledger(
    client: Client,
    inp: LedgerWorkflowInput,
    *,
    task_queue: str = DEFAULT_TASK_QUEUE,
) -> WorkflowHandle[CustodyLedgerWorkflow, LedgerSummary]:
    """Start a ledger workflow. The ledger_id is the Workflow ID."""
    return await client.start_workflow(
        CustodyLedgerWorkflow.run,
        inp,
        id=inp.ledger_id,
        task_queue=task_queue,
    )


async def run_worker(
    transfer: AssetTransfer,
    config: TemporalWorkerConfig = TemporalWorkerConfig(),
) -> None:
    """Connect to Temporal and run the worker until interrupted."""
    client = await Client.connect(config.target_host, namespace=config.namespace)
    worker = build_worker(client, transfer, task_queue=config.task_queue)
    await worker.run()
