"""custody.workflow -- Temporal.io durable custody ledger workflow."""

from custody.workflow.types import (
    DepositRequest as DepositRequest,
)
from custody.workflow.types import (
    LedgerFailure as LedgerFailure,
)
from custody.workflow.types import (
    LedgerOperationOutput as LedgerOperationOutput,
)
from custody.workflow.types import (
    LedgerSummary as LedgerSummary,
)
from custody.workflow.types import (
    LedgerWorkflowInput as LedgerWorkflowInput,
)
from custody.workflow.types import (
    OperationReceipt as OperationReceipt,
)
from custody.workflow.types import (
    PayoutInput as PayoutInput,
)
from custody.workflow.types import (
    PayoutOutput as PayoutOutput,
)
from custody.workflow.types import (
    WithdrawalRequest as WithdrawalRequest,
)
