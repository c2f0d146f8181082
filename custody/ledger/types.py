"""Ledger domain types: LedgerConfig, events, receipts, PendingWithdrawal, LedgerSnapshot.

All types: @final @dataclass(frozen=True, slots=True). Amounts are ints in
the asset's smallest indivisible unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import final

from custody.core.errors import FieldViolation, ValidationError
from custody.core.result import Err, Ok
from custody.core.types import Principal, UtcDatetime


def is_amount(raw: object) -> bool:
    """True for a non-negative int. bool is rejected even though it subclasses int."""
    return isinstance(raw, int) and not isinstance(raw, bool) and raw >= 0


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class LedgerConfig:
    """Immutable limits, fixed for the ledger's lifetime.

    Zero is accepted for either limit: it makes every positive deposit
    (bank_cap == 0) or withdrawal (withdrawal_limit == 0) fail.
    """

    withdrawal_limit: int
    bank_cap: int

    def __post_init__(self) -> None:
        if not is_amount(self.withdrawal_limit):
            raise TypeError(
                f"LedgerConfig.withdrawal_limit must be int >= 0, got {self.withdrawal_limit!r}"
            )
        if not is_amount(self.bank_cap):
            raise TypeError(f"LedgerConfig.bank_cap must be int >= 0, got {self.bank_cap!r}")

    @staticmethod
    def create(
        withdrawal_limit: int, bank_cap: int,
    ) -> Ok[LedgerConfig] | Err[ValidationError]:
        violations: list[FieldViolation] = []
        if not is_amount(withdrawal_limit):
            violations.append(FieldViolation(
                path="config.withdrawal_limit",
                constraint="must be a non-negative int",
                actual_value=repr(withdrawal_limit),
            ))
        if not is_amount(bank_cap):
            violations.append(FieldViolation(
                path="config.bank_cap",
                constraint="must be a non-negative int",
                actual_value=repr(bank_cap),
            ))
        if violations:
            return Err(ValidationError(
                message="Invalid ledger configuration",
                code="INVALID_CONFIG",
                timestamp=UtcDatetime.now(),
                source="ledger.types.LedgerConfig.create",
                fields=tuple(violations),
            ))
        return Ok(LedgerConfig(withdrawal_limit=withdrawal_limit, bank_cap=bank_cap))


# ---------------------------------------------------------------------------
# Observations
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class DepositEvent:
    """Emitted after a successful deposit. Informational only."""

    sequence: int
    principal: Principal
    amount: int
    timestamp: UtcDatetime


@final
@dataclass(frozen=True, slots=True)
class WithdrawalEvent:
    """Emitted after a withdrawal whose outbound transfer succeeded."""

    sequence: int
    principal: Principal
    amount: int
    timestamp: UtcDatetime


type LedgerEvent = DepositEvent | WithdrawalEvent


# ---------------------------------------------------------------------------
# Receipts and pending withdrawals
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class DepositReceipt:
    principal: Principal
    amount: int
    balance: int  # principal's balance after the deposit
    total_deposits: int


@final
@dataclass(frozen=True, slots=True)
class WithdrawalReceipt:
    withdrawal_id: str
    principal: Principal
    amount: int
    balance: int  # principal's balance after the withdrawal
    total_deposits: int


class WithdrawalStatus(Enum):
    PENDING = "PENDING"
    SETTLED = "SETTLED"
    REVERTED = "REVERTED"


@final
@dataclass(frozen=True, slots=True)
class PendingWithdrawal:
    """A withdrawal whose effects are applied but whose transfer has not settled.

    Its amount stays reserved against the bank cap until it is completed or
    reverted, so a compensating rollback can always restore the balance.
    """

    withdrawal_id: str
    principal: Principal
    amount: int
    timestamp: UtcDatetime


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    """Point-in-time copy of the ledger's accounting state.

    balances holds only non-zero entries, sorted by principal.
    """

    balances: tuple[tuple[Principal, int], ...]
    total_deposits: int
    deposit_count: int
    withdrawal_count: int

    def balance_of(self, principal: Principal) -> int:
        for p, amount in self.balances:
            if p == principal:
                return amount
        return 0
