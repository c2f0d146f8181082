"""custody.core — public API for all core types."""

from custody.core.errors import (
    BankCapExceededError as BankCapExceededError,
)
from custody.core.errors import (
    CustodyError as CustodyError,
)
from custody.core.errors import (
    FieldViolation as FieldViolation,
)
from custody.core.errors import (
    IllegalTransitionError as IllegalTransitionError,
)
from custody.core.errors import (
    InsufficientBalanceError as InsufficientBalanceError,
)
from custody.core.errors import (
    InvariantViolationError as InvariantViolationError,
)
from custody.core.errors import (
    LedgerError as LedgerError,
)
from custody.core.errors import (
    PersistenceError as PersistenceError,
)
from custody.core.errors import (
    TransferFailedError as TransferFailedError,
)
from custody.core.errors import (
    ValidationError as ValidationError,
)
from custody.core.errors import (
    WithdrawalLimitExceededError as WithdrawalLimitExceededError,
)
from custody.core.errors import (
    ZeroAmountError as ZeroAmountError,
)
from custody.core.result import (
    Err as Err,
)
from custody.core.result import (
    Ok as Ok,
)
from custody.core.result import (
    Result as Result,
)
from custody.core.result import (
    unwrap as unwrap,
)
from custody.core.result import (
    unwrap_err as unwrap_err,
)
from custody.core.serialization import (
    canonical_bytes as canonical_bytes,
)
from custody.core.serialization import (
    content_hash as content_hash,
)
from custody.core.types import (
    Principal as Principal,
)
from custody.core.types import (
    UtcDatetime as UtcDatetime,
)
