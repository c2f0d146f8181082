"""Property tests for ledger invariants I1-I4 under arbitrary operation sequences.

I1: total_deposits == sum(balances)
I2: total_deposits <= bank_cap
I3: no negative balance
I4: counters move by exactly 1 per success, never on failure
"""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from custody.core.errors import (
    BankCapExceededError,
    InsufficientBalanceError,
    TransferFailedError,
    WithdrawalLimitExceededError,
    ZeroAmountError,
)
from custody.core.result import Err, Ok, unwrap, unwrap_err
from custody.core.serialization import canonical_bytes
from custody.core.types import Principal
from custody.infra.memory_adapter import InMemoryAssetTransfer
from custody.ledger.engine import CustodyLedger
from custody.ledger.types import DepositEvent, LedgerConfig

from conftest import fixed_clock
from strategies import amounts, limits, operations, principals


def _ledger(
    withdrawal_limit: int, bank_cap: int, transfer: InMemoryAssetTransfer | None = None,
) -> CustodyLedger:
    config = unwrap(LedgerConfig.create(withdrawal_limit, bank_cap))
    return CustodyLedger(config, transfer or InMemoryAssetTransfer(), clock=fixed_clock)


def _assert_invariants(ledger: CustodyLedger) -> None:
    snap = ledger.snapshot()
    assert ledger.total_deposits == sum(amount for _, amount in snap.balances)  # I1
    assert ledger.total_deposits <= ledger.bank_cap  # I2
    assert all(amount > 0 for _, amount in snap.balances)  # I3 (zeros are not stored)
    assert ledger.available_capacity() == ledger.bank_cap - ledger.total_deposits
    assert isinstance(ledger.check_invariants(), Ok)


class TestInvariantsUnderSequences:
    @given(
        withdrawal_limit=limits(max_value=300),
        bank_cap=limits(),
        ops=st.lists(operations(), min_size=1, max_size=40),
    )
    @settings(max_examples=200)
    def test_invariants_hold_after_every_step(
        self, withdrawal_limit: int, bank_cap: int, ops: list[tuple[str, Principal, int]],
    ) -> None:
        ledger = _ledger(withdrawal_limit, bank_cap)
        for kind, principal, amount in ops:
            deposits, withdrawals = ledger.deposit_count, ledger.withdrawal_count
            before = unwrap(canonical_bytes(ledger.snapshot()))

            result = getattr(ledger, kind)(principal, amount)

            match result:
                case Ok():
                    assert ledger.deposit_count == deposits + (kind == "deposit")
                    assert ledger.withdrawal_count == withdrawals + (kind == "withdraw")
                case Err():
                    assert unwrap(canonical_bytes(ledger.snapshot())) == before
            _assert_invariants(ledger)

    @given(
        ops=st.lists(operations(), min_size=1, max_size=40),
        rejected=st.sets(principals(), max_size=2),
    )
    def test_invariants_hold_with_failing_transfers(
        self, ops: list[tuple[str, Principal, int]], rejected: set[Principal],
    ) -> None:
        transfer = InMemoryAssetTransfer(rejected=frozenset(rejected))
        ledger = _ledger(200, 1500, transfer)
        for kind, principal, amount in ops:
            result = getattr(ledger, kind)(principal, amount)
            if kind == "withdraw" and principal in rejected and amount > 0:
                assert isinstance(result, Err)
            _assert_invariants(ledger)
        paid = sum(amount for _, amount in transfer.payouts())
        deposited = sum(e.amount for e in ledger.events() if isinstance(e, DepositEvent))
        assert deposited - paid == ledger.total_deposits

    @given(ops=st.lists(operations(), max_size=30))
    def test_counters_match_events(self, ops: list[tuple[str, Principal, int]]) -> None:
        ledger = _ledger(250, 2000)
        for kind, principal, amount in ops:
            getattr(ledger, kind)(principal, amount)
        assert ledger.deposit_count + ledger.withdrawal_count == len(ledger.events())


class TestRejectionProperties:
    @given(bank_cap=limits(max_value=1000), seed=amounts(max_value=1000), extra=amounts())
    def test_deposit_past_cap_always_fails(self, bank_cap: int, seed: int, extra: int) -> None:
        ledger = _ledger(100, bank_cap)
        principal = Principal(value="p")
        ledger.deposit(principal, min(seed, bank_cap) or 1)
        room = ledger.available_capacity()
        before = ledger.snapshot()

        result = ledger.deposit(principal, room + extra)

        assert isinstance(result, Err)
        assert isinstance(result.error, BankCapExceededError)
        assert result.error.attempted == room + extra
        assert result.error.available == room
        assert ledger.snapshot() == before

    @given(limit=limits(max_value=500), balance=amounts(max_value=1000), over=amounts())
    def test_withdraw_over_limit_always_fails(self, limit: int, balance: int, over: int) -> None:
        ledger = _ledger(limit, 10_000)
        principal = Principal(value="p")
        unwrap(ledger.deposit(principal, balance))

        result = ledger.withdraw(principal, limit + over)

        assert isinstance(result, Err)
        assert isinstance(result.error, WithdrawalLimitExceededError)
        assert result.error.limit == limit

    @given(balance=st.integers(min_value=0, max_value=400), over=amounts(max_value=99))
    def test_withdraw_over_balance_always_fails(self, balance: int, over: int) -> None:
        ledger = _ledger(1000, 10_000)
        principal = Principal(value="p")
        if balance:
            unwrap(ledger.deposit(principal, balance))

        result = ledger.withdraw(principal, balance + over)

        assert isinstance(result, Err)
        assert isinstance(result.error, InsufficientBalanceError)
        assert (result.error.requested, result.error.available) == (balance + over, balance)

    @given(ops=st.lists(operations(), max_size=20), principal=principals())
    def test_zero_amount_rejected_in_any_state(
        self, ops: list[tuple[str, Principal, int]], principal: Principal,
    ) -> None:
        ledger = _ledger(100, 1000)
        for kind, p, amount in ops:
            getattr(ledger, kind)(p, amount)
        assert isinstance(unwrap_err(ledger.deposit(principal, 0)), ZeroAmountError)
        assert isinstance(unwrap_err(ledger.withdraw(principal, 0)), ZeroAmountError)

    @given(amount=amounts(max_value=100), prior=st.integers(min_value=0, max_value=500))
    def test_round_trip_restores_balance(self, amount: int, prior: int) -> None:
        ledger = _ledger(100, 1000)
        principal = Principal(value="p")
        if prior:
            unwrap(ledger.deposit(principal, prior))
        balance, total = ledger.balance_of(principal), ledger.total_deposits

        unwrap(ledger.deposit(principal, amount))
        unwrap(ledger.withdraw(principal, amount))

        assert ledger.balance_of(principal) == balance
        assert ledger.total_deposits == total

    @given(amount=amounts(max_value=100))
    def test_failed_transfer_is_invisible(self, amount: int) -> None:
        ledger = _ledger(100, 1000, InMemoryAssetTransfer(reject_all=True))
        principal = Principal(value="p")
        unwrap(ledger.deposit(principal, 100))
        before = unwrap(canonical_bytes(ledger.snapshot()))

        result = ledger.withdraw(principal, amount)

        assert isinstance(result, Err)
        assert isinstance(result.error, TransferFailedError)
        assert unwrap(canonical_bytes(ledger.snapshot())) == before
