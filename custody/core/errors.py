"""Error value hierarchy — no ledger operation raises exceptions.

Every error is a frozen dataclass value returned inside Err. Callers
pattern-match on the subclass and read its numeric fields to decide
remediation (e.g. retry a withdrawal with a smaller amount).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import final

from custody.core.types import UtcDatetime


@dataclass(frozen=True, slots=True)
class CustodyError:
    """Base error value. NOT @final: has subclasses."""

    message: str
    code: str
    timestamp: UtcDatetime
    source: str  # "module.function" that produced this error

    def with_context(self, context: str) -> CustodyError:
        """Return a copy with context prepended to message."""
        return replace(self, message=f"{context}: {self.message}")

    def to_dict(self) -> dict[str, object]:
        """Serialize to dict with stable keys."""
        return {
            "message": self.message,
            "code": self.code,
            "timestamp": self.timestamp.value.isoformat(),
            "source": self.source,
        }


# ---------------------------------------------------------------------------
# Ledger rejections
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class ZeroAmountError(CustodyError):
    """Amount parameter was 0."""

    operation: str  # "deposit" | "withdraw"

    def to_dict(self) -> dict[str, object]:
        return {**CustodyError.to_dict(self), "operation": self.operation}


@final
@dataclass(frozen=True, slots=True)
class BankCapExceededError(CustodyError):
    """Deposit would push total custody past the bank cap.

    available is the room left before this deposit was attempted.
    """

    attempted: int
    available: int

    def to_dict(self) -> dict[str, object]:
        return {
            **CustodyError.to_dict(self),
            "attempted": self.attempted,
            "available": self.available,
        }


@final
@dataclass(frozen=True, slots=True)
class WithdrawalLimitExceededError(CustodyError):
    """Withdrawal amount exceeds the per-call ceiling."""

    requested: int
    limit: int

    def to_dict(self) -> dict[str, object]:
        return {
            **CustodyError.to_dict(self),
            "requested": self.requested,
            "limit": self.limit,
        }


@final
@dataclass(frozen=True, slots=True)
class InsufficientBalanceError(CustodyError):
    """Withdrawal amount exceeds the caller's recorded balance."""

    requested: int
    available: int

    def to_dict(self) -> dict[str, object]:
        return {
            **CustodyError.to_dict(self),
            "requested": self.requested,
            "available": self.available,
        }


@final
@dataclass(frozen=True, slots=True)
class TransferFailedError(CustodyError):
    """Outbound value movement did not succeed. The withdrawal was undone."""

    recipient: str
    amount: int
    reason: str

    def to_dict(self) -> dict[str, object]:
        return {
            **CustodyError.to_dict(self),
            "recipient": self.recipient,
            "amount": self.amount,
            "reason": self.reason,
        }


# ---------------------------------------------------------------------------
# Structural errors
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class FieldViolation:
    """Describes a single field validation failure."""

    path: str  # e.g. "deposit.amount"
    constraint: str  # e.g. "must be a non-negative int"
    actual_value: str  # e.g. "-100"


@final
@dataclass(frozen=True, slots=True)
class ValidationError(CustodyError):
    """One or more fields failed validation."""

    fields: tuple[FieldViolation, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            **CustodyError.to_dict(self),
            "fields": [
                {"path": f.path, "constraint": f.constraint, "actual_value": f.actual_value}
                for f in self.fields
            ],
        }


@final
@dataclass(frozen=True, slots=True)
class IllegalTransitionError(CustodyError):
    """State transition is not allowed."""

    from_state: str
    to_state: str

    def to_dict(self) -> dict[str, object]:
        return {
            **CustodyError.to_dict(self),
            "from_state": self.from_state,
            "to_state": self.to_state,
        }


@final
@dataclass(frozen=True, slots=True)
class InvariantViolationError(CustodyError):
    """A ledger invariant does not hold."""

    invariant: str
    expected: str
    actual: str

    def to_dict(self) -> dict[str, object]:
        return {
            **CustodyError.to_dict(self),
            "invariant": self.invariant,
            "expected": self.expected,
            "actual": self.actual,
        }


@final
@dataclass(frozen=True, slots=True)
class PersistenceError(CustodyError):
    """Event bus or storage operation failed."""

    operation: str

    def to_dict(self) -> dict[str, object]:
        return {**CustodyError.to_dict(self), "operation": self.operation}


type LedgerError = (
    ValidationError
    | ZeroAmountError
    | BankCapExceededError
    | WithdrawalLimitExceededError
    | InsufficientBalanceError
    | TransferFailedError
)
