"""Durable workflow that owns one custody ledger.

Deposits and withdrawals arrive as updates. Temporal runs update handlers
one at a time on the workflow's event loop; they interleave only where a
handler awaits. The only await in a withdrawal sits between its effects
and its settlement (the payout activity), so a concurrent withdrawal by
the same principal is checked against the already-debited balance.

A payout is reverted only when it is known to have failed: the activity
returned an error, or raised a non-retryable ApplicationError. A timeout
or an exhausted retry round leaves the outcome unknown, so the withdrawal
stays pending and the payout is sent again under the same withdrawal_id.

The workflow hands its state to a fresh run through continue-as-new when
the server suggests it, or after operations_per_run updates, once no
handler is in flight.

Determinism contract: this module contains NO I/O, NO randomness,
NO system clock access (uses workflow.now()), NO mutable globals.
Value movement is delegated to the send_payout activity.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError

with workflow.unsafe.imports_passed_through():
    from custody.core.result import Err, Ok, unwrap
    from custody.core.types import Principal, UtcDatetime
    from custody.ledger.engine import CustodyLedger
    from custody.ledger.types import LedgerConfig, LedgerSnapshot
    from custody.workflow.activities import PayoutActivities
    from custody.workflow.types import (
        DepositRequest,
        LedgerFailure,
        LedgerOperationOutput,
        LedgerSummary,
        LedgerWorkflowInput,
        OperationReceipt,
        PayoutInput,
        PayoutOutput,
        WithdrawalRequest,
    )


def _workflow_utc_now() -> UtcDatetime:
    """Replay-safe UTC timestamp from Temporal's logical clock.

    The ONLY way to get current time in workflow code.
    """
    return UtcDatetime(value=workflow.now())


class _ActivityPayoutRail:
    """AssetTransfer placeholder for the workflow-owned ledger.

    The workflow drives withdrawals through begin/complete/revert and runs
    the transfer as an activity, so the synchronous path is never taken.
    """

    def transfer(self, recipient: Principal, amount: int) -> Ok[None] | Err[str]:  # noqa: ARG002
        return Err("payouts run as the send_payout activity")


def _failure(code: str, message: str, **details: int) -> LedgerOperationOutput:
    return LedgerOperationOutput(
        failure=LedgerFailure(code=code, message=message, details=dict(details)),
    )


def _restore_ledger(inp: LedgerWorkflowInput) -> CustodyLedger:
    """Ledger for this run: empty for a new ledger, carried over otherwise."""
    match LedgerConfig.create(inp.withdrawal_limit, inp.bank_cap):
        case Err(error):
            raise ApplicationError(error.message, non_retryable=True)
        case Ok(config):
            pass

    balances: list[tuple[Principal, int]] = []
    for raw, amount in inp.balances.items():
        match Principal.parse(raw):
            case Err(detail):
                raise ApplicationError(detail, non_retryable=True)
            case Ok(principal):
                balances.append((principal, amount))

    snapshot = LedgerSnapshot(
        balances=tuple(sorted(balances)),
        total_deposits=sum(amount for _, amount in balances),
        deposit_count=inp.deposit_count,
        withdrawal_count=inp.withdrawal_count,
    )
    match CustodyLedger.restore(
        config, _ActivityPayoutRail(), snapshot,
        withdrawal_seq=inp.withdrawal_seq,
        event_seq=inp.event_seq,
        clock=_workflow_utc_now,
    ):
        case Err(violation):
            raise ApplicationError(violation.message, non_retryable=True)
        case Ok(ledger):
            return ledger


def _payout_definitely_failed(exc: ActivityError) -> bool:
    """True when the payout activity is known not to have moved value."""
    cause = exc.cause
    return isinstance(cause, ApplicationError) and cause.non_retryable


@workflow.defn(name="CustodyLedger")
class CustodyLedgerWorkflow:
    """Long-running owner of a CustodyLedger.

    Invariants maintained:
    - Every withdrawal is either settled after a successful payout or
      reverted after a failed one; none is left pending when run() returns
      or hands off to a new run
    - A payout whose outcome is unknown is never reverted
    - Ledger invariants I1-I4 hold after every handler completes
    - Workflow is deterministic under Temporal replay
    """

    @workflow.init
    def __init__(self, inp: LedgerWorkflowInput) -> None:
        self._ledger_id = inp.ledger_id
        self._ledger = _restore_ledger(inp)
        self._payout_timeout = timedelta(seconds=inp.payout_timeout_s)
        self._payout_retry_interval = timedelta(seconds=inp.payout_retry_interval_s)
        self._payout_retry = RetryPolicy(
            initial_interval=timedelta(seconds=1),
            backoff_coefficient=2.0,
            maximum_interval=timedelta(seconds=30),
            maximum_attempts=inp.payout_max_attempts,
        )
        self._operations_per_run = inp.operations_per_run
        self._operations = 0
        self._closing = False

    # -- Signal --

    @workflow.signal
    def close(self) -> None:
        """Stop accepting operations and finish once in-flight ones settle."""
        self._closing = True

    # -- Queries --

    @workflow.query
    def balance_of(self, principal: str) -> int:
        match Principal.parse(principal):
            case Err():
                return 0
            case Ok(p):
                return self._ledger.balance_of(p)

    @workflow.query
    def available_capacity(self) -> int:
        return self._ledger.available_capacity()

    @workflow.query
    def summary(self) -> LedgerSummary:
        return LedgerSummary(
            ledger_id=self._ledger_id,
            total_deposits=self._ledger.total_deposits,
            available_capacity=self._ledger.available_capacity(),
            deposit_count=self._ledger.deposit_count,
            withdrawal_count=self._ledger.withdrawal_count,
        )

    # -- Updates --

    @workflow.update
    async def deposit(self, req: DepositRequest) -> LedgerOperationOutput:
        if self._closing:
            return _failure("LEDGER_CLOSED", f"Ledger {self._ledger_id} is closed")
        self._operations += 1
        match Principal.parse(req.principal):
            case Err(detail):
                return _failure("INVALID_REQUEST", detail)
            case Ok(principal):
                pass

        match self._ledger.deposit(principal, req.amount):
            case Err(error):
                workflow.logger.info(
                    "Deposit of %s by %s rejected: %s", req.amount, principal, error.code,
                )
                return LedgerOperationOutput(failure=LedgerFailure.from_error(error))
            case Ok(receipt):
                workflow.logger.info("Deposited %d for %s", receipt.amount, principal)
                return LedgerOperationOutput(receipt=OperationReceipt(
                    balance=receipt.balance,
                    total_deposits=receipt.total_deposits,
                ))

    @workflow.update
    async def withdraw(self, req: WithdrawalRequest) -> LedgerOperationOutput:
        if self._closing:
            return _failure("LEDGER_CLOSED", f"Ledger {self._ledger_id} is closed")
        self._operations += 1
        match Principal.parse(req.principal):
            case Err(detail):
                return _failure("INVALID_REQUEST", detail)
            case Ok(principal):
                pass

        # Checks + effects; the balance is debited before the await below
        match self._ledger.begin_withdrawal(principal, req.amount):
            case Err(error):
                workflow.logger.info(
                    "Withdrawal of %s by %s rejected: %s", req.amount, principal, error.code,
                )
                return LedgerOperationOutput(failure=LedgerFailure.from_error(error))
            case Ok(pending):
                pass

        # Interaction
        reason = await self._send_payout(PayoutInput(
            withdrawal_id=f"{self._ledger_id}/{pending.withdrawal_id}",
            principal=principal.value,
            amount=pending.amount,
        ))

        if reason is not None:
            unwrap(self._ledger.revert_withdrawal(pending))
            workflow.logger.warning(
                "Withdrawal %s reverted: %s", pending.withdrawal_id, reason,
            )
            return _failure(
                "TRANSFER_FAILED",
                f"Transfer of {pending.amount} to {principal} failed: {reason}",
                amount=pending.amount,
            )

        receipt = unwrap(self._ledger.complete_withdrawal(pending))
        workflow.logger.info(
            "Withdrawal %s settled: %d to %s",
            receipt.withdrawal_id, receipt.amount, principal,
        )
        return LedgerOperationOutput(receipt=OperationReceipt(
            balance=receipt.balance,
            total_deposits=receipt.total_deposits,
            withdrawal_id=receipt.withdrawal_id,
        ))

    async def _send_payout(self, payout: PayoutInput) -> str | None:
        """Run send_payout until its outcome is known.

        Returns the failure reason, or None once the value has left custody.
        The withdrawal stays pending for as long as the outcome is unknown.
        """
        while True:
            try:
                out: PayoutOutput = await workflow.execute_activity_method(
                    PayoutActivities.send_payout,
                    payout,
                    start_to_close_timeout=self._payout_timeout,
                    retry_policy=self._payout_retry,
                )
            except ActivityError as exc:
                if _payout_definitely_failed(exc):
                    return str(exc.cause)
                workflow.logger.warning(
                    "Payout %s outcome unknown (%s), sending again in %s",
                    payout.withdrawal_id, exc.cause or exc, self._payout_retry_interval,
                )
                await workflow.sleep(self._payout_retry_interval)
            else:
                return out.error

    # -- Continue-as-new --

    def _should_hand_off(self) -> bool:
        if workflow.info().is_continue_as_new_suggested():
            return True
        return (
            self._operations_per_run is not None
            and self._operations >= self._operations_per_run
        )

    def _carry_over(self, inp: LedgerWorkflowInput) -> LedgerWorkflowInput:
        snapshot = self._ledger.snapshot()
        return replace(
            inp,
            balances={p.value: amount for p, amount in snapshot.balances},
            deposit_count=snapshot.deposit_count,
            withdrawal_count=snapshot.withdrawal_count,
            withdrawal_seq=self._ledger.withdrawal_seq,
            event_seq=self._ledger.event_seq,
        )

    # -- Main workflow --

    @workflow.run
    async def run(self, inp: LedgerWorkflowInput) -> LedgerSummary:
        """Serve updates until closed and every in-flight handler has finished.

        When a hand-off is due the ledger continues as a new run instead,
        carrying balances, counters and id sequences in its input.
        """
        await workflow.wait_condition(lambda: self._closing or self._should_hand_off())
        await workflow.wait_condition(workflow.all_handlers_finished)
        if not self._closing:
            workflow.logger.info(
                "Ledger %s continuing as new after %d operations",
                self._ledger_id, self._operations,
            )
            workflow.continue_as_new(self._carry_over(inp))
        return self.summary()
