"""Activity implementations for the durable custody ledger.

Activities are thin IO wrappers around an AssetTransfer. All accounting
lives in CustodyLedger, which the workflow owns.

Each activity:
- Is decorated with @activity.defn
- Takes a single frozen-dataclass input
- Returns a frozen-dataclass output (with optional error field)
- Is idempotent on its key (same input -> same output), as far as the
  wrapped AssetTransfer is
"""

from __future__ import annotations

from collections import OrderedDict
from typing import final

from temporalio import activity

from custody.core.result import Err, Ok
from custody.core.types import Principal
from custody.infra.protocols import AssetTransfer
from custody.workflow.types import PayoutInput, PayoutOutput


@final
class PayoutActivities:
    """Payout activity bound to one transfer mechanism.

    Outcomes of the last max_outcomes payouts are remembered per
    withdrawal_id, so a retry that reaches this worker process replays the
    recorded outcome instead of paying again. The memory is best-effort and
    local to this process; beyond max_outcomes the oldest entries go first.
    Exactly-once payout across worker restarts needs a rail that
    deduplicates on its own side.

    A transfer that raises is not recorded. The exception fails the
    attempt and Temporal retries it.
    """

    def __init__(self, transfer: AssetTransfer, *, max_outcomes: int = 10_000) -> None:
        self._transfer = transfer
        self._max_outcomes = max_outcomes
        self._outcomes: OrderedDict[str, PayoutOutput] = OrderedDict()

    @activity.defn(name="send_payout")
    async def send_payout(self, inp: PayoutInput) -> PayoutOutput:
        """Move a withdrawn amount out of custody.

        Timeout: 30s | Retries: 3 per round (infrastructure faults only)
        A rejection by the recipient is returned as error, not raised,
        so it is never retried.
        Idempotent: best-effort in this process (dedup by withdrawal_id)
        """
        if inp.withdrawal_id in self._outcomes:
            activity.logger.info(
                "Payout %s already processed, returning recorded outcome",
                inp.withdrawal_id,
            )
            return self._outcomes[inp.withdrawal_id]

        activity.logger.info(
            "Sending payout %s: %d to %s",
            inp.withdrawal_id, inp.amount, inp.principal,
        )

        match Principal.parse(inp.principal):
            case Err(detail):
                outcome = PayoutOutput(error=detail)
            case Ok(principal):
                match self._transfer.transfer(principal, inp.amount):
                    case Err(reason):
                        activity.logger.warning(
                            "Payout %s rejected: %s", inp.withdrawal_id, reason,
                        )
                        outcome = PayoutOutput(error=reason)
                    case Ok():
                        outcome = PayoutOutput()

        self._outcomes[inp.withdrawal_id] = outcome
        while len(self._outcomes) > self._max_outcomes:
            self._outcomes.popitem(last=False)
        return outcome
