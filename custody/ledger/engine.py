"""Custodial ledger engine with cap/limit enforcement.

Invariants, checked by check_invariants() and holding after every public
operation:
    I1: total_deposits == sum(balances)
    I2: total_deposits + reserved <= bank_cap
    I3: every balance >= 0
    I4: deposit_count / withdrawal_count move by exactly 1 per successful
        operation and are untouched by a failed one.

Withdrawals follow checks-effects-interactions: every check runs first, the
balance is then debited, and only afterwards is the outbound transfer
attempted. A transfer that re-enters the ledger therefore sees the debited
balance. A failed transfer is undone by compensating exactly that
withdrawal's deltas, so withdrawals nested inside it are left intact.

CustodyLedger is @final but NOT a dataclass: it holds mutable internal state.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import final

from custody.core.errors import (
    BankCapExceededError,
    FieldViolation,
    IllegalTransitionError,
    InsufficientBalanceError,
    InvariantViolationError,
    LedgerError,
    TransferFailedError,
    ValidationError,
    WithdrawalLimitExceededError,
    ZeroAmountError,
)
from custody.core.result import Err, Ok
from custody.core.types import Principal, UtcDatetime
from custody.infra.protocols import AssetTransfer
from custody.ledger.types import (
    DepositEvent,
    DepositReceipt,
    LedgerConfig,
    LedgerEvent,
    LedgerSnapshot,
    PendingWithdrawal,
    WithdrawalEvent,
    WithdrawalReceipt,
    WithdrawalStatus,
    is_amount,
)

_SOURCE = "ledger.engine.CustodyLedger"


@final
class CustodyLedger:
    """Single-asset custody ledger.

    Balance index: O(1) lookup by principal. Principals with a zero balance
    are not stored, so an absent key and a zero balance are the same state.
    """

    def __init__(
        self,
        config: LedgerConfig,
        transfer: AssetTransfer,
        *,
        clock: Callable[[], UtcDatetime] = UtcDatetime.now,
    ) -> None:
        self._config = config
        self._transfer = transfer
        self._clock = clock
        self._balances: dict[Principal, int] = {}
        self._total_deposits = 0
        self._deposit_count = 0
        self._withdrawal_count = 0
        self._pending: dict[str, PendingWithdrawal] = {}
        self._reserved = 0
        self._withdrawal_seq = 0
        self._event_seq = 0
        self._events: list[LedgerEvent] = []

    @classmethod
    def restore(
        cls,
        config: LedgerConfig,
        transfer: AssetTransfer,
        snapshot: LedgerSnapshot,
        *,
        withdrawal_seq: int = 0,
        event_seq: int = 0,
        clock: Callable[[], UtcDatetime] = UtcDatetime.now,
    ) -> Ok[CustodyLedger] | Err[InvariantViolationError]:
        """Rebuild a ledger from a snapshot taken while nothing was in flight.

        Withdrawal ids and event sequence numbers continue from the given
        counters. The event log itself starts empty. Fails if the snapshot
        does not satisfy I1-I3 under config.
        """
        ledger = cls(config, transfer, clock=clock)
        ledger._balances = {p: amount for p, amount in snapshot.balances if amount}
        ledger._total_deposits = snapshot.total_deposits
        ledger._deposit_count = snapshot.deposit_count
        ledger._withdrawal_count = snapshot.withdrawal_count
        ledger._withdrawal_seq = withdrawal_seq
        ledger._event_seq = event_seq
        match ledger.check_invariants():
            case Err() as e:
                return e
        return Ok(ledger)

    # -- Read surface --

    @property
    def config(self) -> LedgerConfig:
        return self._config

    @property
    def withdrawal_limit(self) -> int:
        return self._config.withdrawal_limit

    @property
    def bank_cap(self) -> int:
        return self._config.bank_cap

    @property
    def total_deposits(self) -> int:
        return self._total_deposits

    @property
    def deposit_count(self) -> int:
        return self._deposit_count

    @property
    def withdrawal_count(self) -> int:
        return self._withdrawal_count

    @property
    def pending_withdrawals(self) -> tuple[PendingWithdrawal, ...]:
        return tuple(self._pending.values())

    @property
    def withdrawal_seq(self) -> int:
        """Number of withdrawal ids issued so far, reverted ones included."""
        return self._withdrawal_seq

    @property
    def event_seq(self) -> int:
        """Sequence number of the latest event emitted."""
        return self._event_seq

    def balance_of(self, principal: Principal) -> int:
        """O(1) balance lookup. Unknown principals hold 0."""
        return self._balances.get(principal, 0)

    def available_capacity(self) -> int:
        """Room left under the bank cap.

        Capacity held by unsettled withdrawals is not available; between
        operations nothing is unsettled and this is bank_cap - total_deposits.

        Inside a transfer callback the figure is lower than
        bank_cap - total_deposits by the amount of every withdrawal still in
        flight, and deposit() checks against this lower figure. A nested
        deposit that fits under bank_cap - total_deposits but not under the
        reserved room is refused with BankCapExceededError.
        """
        return self._config.bank_cap - self._total_deposits - self._reserved

    def events(self) -> tuple[LedgerEvent, ...]:
        """All observations emitted so far, in emission order."""
        return tuple(self._events)

    def events_since(self, sequence: int) -> tuple[LedgerEvent, ...]:
        """Observations with a sequence number strictly greater than sequence."""
        return tuple(e for e in self._events if e.sequence > sequence)

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            balances=tuple(sorted(self._balances.items())),
            total_deposits=self._total_deposits,
            deposit_count=self._deposit_count,
            withdrawal_count=self._withdrawal_count,
        )

    # -- Deposit --

    def deposit(
        self, principal: Principal, amount: int,
    ) -> Ok[DepositReceipt] | Err[LedgerError]:
        """Record an inbound payment of amount for principal.

        1. Validate principal and amount (ZeroAmount for 0)
        2. Reject if the deposit would push custody past bank_cap
        3. Credit balance, total, deposit_count
        4. Emit DepositEvent
        """
        now = self._clock()
        match self._check_request("deposit", principal, amount, now):
            case Err() as e:
                return e

        available = self.available_capacity()
        if amount > available:
            return Err(BankCapExceededError(
                message=f"Deposit of {amount} exceeds available capacity {available}",
                code="BANK_CAP_EXCEEDED",
                timestamp=now,
                source=f"{_SOURCE}.deposit",
                attempted=amount,
                available=available,
            ))

        self._credit(principal, amount)
        self._deposit_count += 1
        self._events.append(DepositEvent(
            sequence=self._next_event_sequence(),
            principal=principal,
            amount=amount,
            timestamp=now,
        ))
        return Ok(DepositReceipt(
            principal=principal,
            amount=amount,
            balance=self.balance_of(principal),
            total_deposits=self._total_deposits,
        ))

    # -- Withdraw --

    def withdraw(
        self, principal: Principal, amount: int,
    ) -> Ok[WithdrawalReceipt] | Err[LedgerError]:
        """Move amount out of custody to principal.

        1. Checks: amount, withdrawal_limit, balance (begin_withdrawal)
        2. Effects: debit balance, total, bump withdrawal_count
        3. Interaction: transfer amount to principal
        4. Transfer ok -> settle and emit WithdrawalEvent
           Transfer failed or raised -> undo step 2, return TransferFailedError
        """
        match self.begin_withdrawal(principal, amount):
            case Err() as e:
                return e
            case Ok(pending):
                pass

        try:
            outcome = self._transfer.transfer(pending.principal, pending.amount)
        except Exception as exc:  # noqa: BLE001
            # A raising rail moved nothing; it is a failed transfer like any other
            outcome = Err(f"{type(exc).__name__}: {exc}")

        match outcome:
            case Err(reason):
                self._rollback(pending)
                return Err(TransferFailedError(
                    message=f"Transfer of {amount} to {principal} failed: {reason}",
                    code="TRANSFER_FAILED",
                    timestamp=self._clock(),
                    source=f"{_SOURCE}.withdraw",
                    recipient=principal.value,
                    amount=amount,
                    reason=str(reason),
                ))
            case Ok():
                return Ok(self._settle(pending))

    def begin_withdrawal(
        self, principal: Principal, amount: int,
    ) -> Ok[PendingWithdrawal] | Err[LedgerError]:
        """Run every withdrawal check and apply its effects.

        The returned PendingWithdrawal must be passed to exactly one of
        complete_withdrawal() or revert_withdrawal() once the outbound
        transfer has succeeded or failed.
        """
        now = self._clock()
        match self._check_request("withdraw", principal, amount, now):
            case Err() as e:
                return e

        limit = self._config.withdrawal_limit
        if amount > limit:
            return Err(WithdrawalLimitExceededError(
                message=f"Withdrawal of {amount} exceeds per-call limit {limit}",
                code="WITHDRAWAL_LIMIT_EXCEEDED",
                timestamp=now,
                source=f"{_SOURCE}.withdraw",
                requested=amount,
                limit=limit,
            ))

        balance = self.balance_of(principal)
        if amount > balance:
            return Err(InsufficientBalanceError(
                message=f"Withdrawal of {amount} exceeds balance {balance} of {principal}",
                code="INSUFFICIENT_BALANCE",
                timestamp=now,
                source=f"{_SOURCE}.withdraw",
                requested=amount,
                available=balance,
            ))

        # Effects before any interaction
        self._debit(principal, amount)
        self._withdrawal_count += 1
        self._reserved += amount
        self._withdrawal_seq += 1
        pending = PendingWithdrawal(
            withdrawal_id=f"WD-{self._withdrawal_seq}",
            principal=principal,
            amount=amount,
            timestamp=now,
        )
        self._pending[pending.withdrawal_id] = pending
        return Ok(pending)

    def complete_withdrawal(
        self, pending: PendingWithdrawal,
    ) -> Ok[WithdrawalReceipt] | Err[IllegalTransitionError]:
        """Settle a pending withdrawal after its transfer succeeded."""
        if self._pending.get(pending.withdrawal_id) != pending:
            return Err(self._not_pending(pending, WithdrawalStatus.SETTLED))
        return Ok(self._settle(pending))

    def revert_withdrawal(
        self, pending: PendingWithdrawal,
    ) -> Ok[None] | Err[IllegalTransitionError]:
        """Undo a pending withdrawal after its transfer failed."""
        if self._pending.get(pending.withdrawal_id) != pending:
            return Err(self._not_pending(pending, WithdrawalStatus.REVERTED))
        self._rollback(pending)
        return Ok(None)

    # -- Invariants --

    def check_invariants(self) -> Ok[None] | Err[InvariantViolationError]:
        """Verify I1-I3 and reservation bookkeeping against current state."""
        total = sum(self._balances.values())
        if total != self._total_deposits:
            return Err(self._violation("I1", str(self._total_deposits), str(total)))
        if self._total_deposits + self._reserved > self._config.bank_cap:
            return Err(self._violation(
                "I2",
                f"<= {self._config.bank_cap}",
                str(self._total_deposits + self._reserved),
            ))
        for principal, balance in self._balances.items():
            if balance < 0:
                return Err(self._violation("I3", ">= 0", f"{principal}={balance}"))
        reserved = sum(p.amount for p in self._pending.values())
        if reserved != self._reserved:
            return Err(self._violation("RESERVED", str(reserved), str(self._reserved)))
        return Ok(None)

    # -- Internals --

    def _check_request(
        self, operation: str, principal: object, amount: object, now: UtcDatetime,
    ) -> Ok[None] | Err[ValidationError | ZeroAmountError]:
        violations: list[FieldViolation] = []
        if not isinstance(principal, Principal):
            violations.append(FieldViolation(
                path=f"{operation}.principal",
                constraint="must be a Principal",
                actual_value=repr(principal),
            ))
        if not is_amount(amount):
            violations.append(FieldViolation(
                path=f"{operation}.amount",
                constraint="must be a non-negative int",
                actual_value=repr(amount),
            ))
        if violations:
            return Err(ValidationError(
                message=f"Invalid {operation} request",
                code="INVALID_REQUEST",
                timestamp=now,
                source=f"{_SOURCE}.{operation}",
                fields=tuple(violations),
            ))
        if amount == 0:
            return Err(ZeroAmountError(
                message=f"Cannot {operation} a zero amount",
                code="ZERO_AMOUNT",
                timestamp=now,
                source=f"{_SOURCE}.{operation}",
                operation=operation,
            ))
        return Ok(None)

    def _credit(self, principal: Principal, amount: int) -> None:
        self._balances[principal] = self._balances.get(principal, 0) + amount
        self._total_deposits += amount

    def _debit(self, principal: Principal, amount: int) -> None:
        remaining = self._balances.get(principal, 0) - amount
        if remaining:
            self._balances[principal] = remaining
        else:
            self._balances.pop(principal, None)
        self._total_deposits -= amount

    def _next_event_sequence(self) -> int:
        self._event_seq += 1
        return self._event_seq

    def _settle(self, pending: PendingWithdrawal) -> WithdrawalReceipt:
        del self._pending[pending.withdrawal_id]
        self._reserved -= pending.amount
        self._events.append(WithdrawalEvent(
            sequence=self._next_event_sequence(),
            principal=pending.principal,
            amount=pending.amount,
            timestamp=self._clock(),
        ))
        return WithdrawalReceipt(
            withdrawal_id=pending.withdrawal_id,
            principal=pending.principal,
            amount=pending.amount,
            balance=self.balance_of(pending.principal),
            total_deposits=self._total_deposits,
        )

    def _rollback(self, pending: PendingWithdrawal) -> None:
        # Reserved capacity guarantees the credit cannot breach bank_cap.
        del self._pending[pending.withdrawal_id]
        self._reserved -= pending.amount
        self._credit(pending.principal, pending.amount)
        self._withdrawal_count -= 1

    def _not_pending(
        self, pending: PendingWithdrawal, to_state: WithdrawalStatus,
    ) -> IllegalTransitionError:
        return IllegalTransitionError(
            message=f"Withdrawal {pending.withdrawal_id} is not pending",
            code="ILLEGAL_TRANSITION",
            timestamp=self._clock(),
            source=f"{_SOURCE}.{to_state.value.lower()}",
            from_state="NOT_PENDING",
            to_state=to_state.value,
        )

    def _violation(
        self, invariant: str, expected: str, actual: str,
    ) -> InvariantViolationError:
        return InvariantViolationError(
            message=f"Ledger invariant {invariant} violated",
            code="INVARIANT_VIOLATION",
            timestamp=self._clock(),
            source=f"{_SOURCE}.check_invariants",
            invariant=invariant,
            expected=expected,
            actual=actual,
        )
