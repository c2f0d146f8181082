"""Workflow data types for the durable custody ledger.

Wire types carry plain str/int fields so Temporal's default JSON payload
converter round-trips them. Principals are parsed back into Principal
inside the workflow.

All types: @final @dataclass(frozen=True, slots=True).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import final

from custody.core.errors import CustodyError

# ---------------------------------------------------------------------------
# Workflow input / summary
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class LedgerWorkflowInput:
    """Limits for one ledger instance. ledger_id doubles as the Workflow ID.

    payout_max_attempts bounds one round of activity retries. A round that
    ends without a definite answer is followed by another after
    payout_retry_interval_s, with the same withdrawal_id.

    operations_per_run hands the ledger to a fresh run after that many
    updates; None leaves it to the server's continue-as-new suggestion.
    The remaining fields are carried over by continue-as-new and are empty
    for a new ledger.
    """

    ledger_id: str
    withdrawal_limit: int
    bank_cap: int
    payout_timeout_s: int = 30
    payout_max_attempts: int = 3
    payout_retry_interval_s: int = 30
    operations_per_run: int | None = None
    balances: dict[str, int] = field(default_factory=dict)
    deposit_count: int = 0
    withdrawal_count: int = 0
    withdrawal_seq: int = 0
    event_seq: int = 0


@final
@dataclass(frozen=True, slots=True)
class LedgerSummary:
    ledger_id: str
    total_deposits: int
    available_capacity: int
    deposit_count: int
    withdrawal_count: int


# ---------------------------------------------------------------------------
# Update requests / outputs
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class DepositRequest:
    principal: str
    amount: int


@final
@dataclass(frozen=True, slots=True)
class WithdrawalRequest:
    principal: str
    amount: int


@final
@dataclass(frozen=True, slots=True)
class LedgerFailure:
    """Wire form of a CustodyError: code, message and its numeric fields."""

    code: str
    message: str
    details: dict[str, int]

    @staticmethod
    def from_error(error: CustodyError) -> LedgerFailure:
        details = {
            k: v for k, v in error.to_dict().items()
            if isinstance(v, int) and not isinstance(v, bool)
        }
        return LedgerFailure(code=error.code, message=error.message, details=details)


@final
@dataclass(frozen=True, slots=True)
class OperationReceipt:
    balance: int
    total_deposits: int
    withdrawal_id: str | None = None


@final
@dataclass(frozen=True, slots=True)
class LedgerOperationOutput:
    """Result of a deposit or withdraw update. Exactly one of receipt/failure."""

    receipt: OperationReceipt | None = None
    failure: LedgerFailure | None = None

    def __post_init__(self) -> None:
        if (self.receipt is None) == (self.failure is None):
            raise TypeError(
                "LedgerOperationOutput must have exactly one of receipt or failure"
            )

    @property
    def ok(self) -> bool:
        return self.receipt is not None


# ---------------------------------------------------------------------------
# Activity I/O: payout
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class PayoutInput:
    """withdrawal_id is the idempotency key for the payout."""

    withdrawal_id: str
    principal: str
    amount: int


@final
@dataclass(frozen=True, slots=True)
class PayoutOutput:
    """error is None when the value left custody."""

    error: str | None = None
