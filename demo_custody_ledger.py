"""
demo_custody_ledger.py -- A walkthrough of the custody ledger's rules.

A custody ledger holds value on behalf of many principals. It answers one
question after every call: "Does each principal still own exactly what the
ledger says, and nothing more left custody than was put in?"

We will:
  1. Configure a ledger (bank cap 1000, withdrawal limit 100)
  2. Deposit, and hit the bank cap
  3. Withdraw, and hit the withdrawal limit and the balance check
  4. Watch a payout rail re-enter the ledger mid-withdrawal
  5. Watch a failed payout undo only its own withdrawal
  6. Publish the observations to an event bus

Run this:  .venv/bin/python demo_custody_ledger.py
"""

from __future__ import annotations

from custody.core.result import Err, Ok, unwrap
from custody.core.types import Principal
from custody.infra.config import TOPIC_DEPOSITS, TOPIC_WITHDRAWALS
from custody.infra.health import LedgerHealthProbe
from custody.infra.memory_adapter import InMemoryAssetTransfer, InMemoryEventBus
from custody.infra.publisher import publish_events
from custody.ledger.engine import CustodyLedger
from custody.ledger.types import LedgerConfig


def sep(title: str) -> None:
    """Print a section separator."""
    print(f"\n{'=' * 72}")
    print(f"  {title}")
    print(f"{'=' * 72}\n")


def show(label: str, result: object) -> None:
    match result:
        case Ok(value):
            print(f"  {label:34s} Ok   {value}")
        case Err(error):
            print(f"  {label:34s} Err  {error.code}: {error.message}")


# ============================================================================
#  STEP 1: CONFIGURE THE LEDGER
# ============================================================================
#
# Both limits are fixed for the ledger's lifetime. LedgerConfig.create()
# validates them and returns a Result; the ledger itself is handed an
# AssetTransfer, the only way value ever leaves custody.

sep("STEP 1: Configure a ledger")

match LedgerConfig.create(withdrawal_limit=100, bank_cap=1000):
    case Ok(config):
        print(f"  bank_cap={config.bank_cap}  withdrawal_limit={config.withdrawal_limit}")
    case Err(e):
        raise RuntimeError(f"Failed to configure ledger: {e.message}")

rail = InMemoryAssetTransfer()
ledger = CustodyLedger(config, rail)
alice = Principal(value="alice")
bob = Principal(value="bob")

show("invalid config (-1, 1000)", LedgerConfig.create(withdrawal_limit=-1, bank_cap=1000))


# ============================================================================
#  STEP 2: DEPOSITS AND THE BANK CAP
# ============================================================================
#
# A deposit that would push total custody past the cap is rejected with the
# attempted amount and the room that was left. Nothing changes on failure.

sep("STEP 2: Deposits and the bank cap")

show("alice deposits 600", ledger.deposit(alice, 600))
show("alice deposits 500", ledger.deposit(alice, 500))
show("alice deposits 0", ledger.deposit(alice, 0))
print(f"\n  total_deposits={ledger.total_deposits}  available={ledger.available_capacity()}")


# ============================================================================
#  STEP 3: WITHDRAWALS
# ============================================================================
#
# Checks run in a fixed order: per-call limit, then the caller's balance.
# The balance is debited BEFORE the payout rail is called.

sep("STEP 3: Withdrawals")

show("alice withdraws 150", ledger.withdraw(alice, 150))
show("alice withdraws 100", ledger.withdraw(alice, 100))
show("bob withdraws 50", ledger.withdraw(bob, 50))
print(f"\n  alice balance={ledger.balance_of(alice)}  withdrawals={ledger.withdrawal_count}")
print(f"  paid out so far: {rail.payouts()}")


# ============================================================================
#  STEP 4: RE-ENTRANCY
# ============================================================================
#
# The payout rail may call back into the ledger before it returns. Because
# the debit already happened, a nested withdrawal sees the reduced balance.
# alice holds 500. The hook re-enters on every payout, asking for 100 each
# time. The innermost call finds the balance already at zero and is refused.

sep("STEP 4: A payout rail that re-enters the ledger")

nested: list[object] = []


def greedy(recipient: Principal, amount: int) -> None:
    nested.append(ledger.withdraw(recipient, 100))


rail.set_hook(greedy)
show("alice withdraws 100 (re-entrant)", ledger.withdraw(alice, 100))
rail.set_hook(None)
for i, outcome in enumerate(nested, start=1):
    show(f"  nested call {i}", outcome)
print(f"\n  alice balance={ledger.balance_of(alice)}  paid to alice={rail.paid_to(alice)}")


# ============================================================================
#  STEP 5: A FAILED PAYOUT
# ============================================================================
#
# When the rail rejects a payout, the withdrawal's own debit is credited
# back. The capacity it held stays reserved while the payout is in flight,
# so even a deposit attempted from inside the rail cannot take that room.

sep("STEP 5: A failed payout is undone")

unwrap(ledger.deposit(bob, 80))
rail.reject(bob)
before = ledger.snapshot()
show("bob withdraws 80 (rail rejects)", ledger.withdraw(bob, 80))
print(f"\n  state unchanged: {ledger.snapshot() == before}")
print(f"  bob balance={ledger.balance_of(bob)}")


# ============================================================================
#  STEP 6: OBSERVATIONS AND HEALTH
# ============================================================================

sep("STEP 6: Publish observations")

bus = InMemoryEventBus()
show("publish_events", publish_events(ledger.events(), bus))
print(f"  {TOPIC_DEPOSITS}:    {len(bus.get_messages(TOPIC_DEPOSITS))} messages")
print(f"  {TOPIC_WITHDRAWALS}: {len(bus.get_messages(TOPIC_WITHDRAWALS))} messages")

status = unwrap(LedgerHealthProbe(ledger).health_check())
print(f"\n  health: healthy={status.healthy}  {status.message}")


# ============================================================================
#  SUMMARY
# ============================================================================

sep("SUMMARY")

print(f"  total_deposits     {ledger.total_deposits}")
print(f"  deposit_count      {ledger.deposit_count}")
print(f"  withdrawal_count   {ledger.withdrawal_count}")
print(f"  paid out           {sum(a for _, a in rail.payouts())}")
print()
print("  Ledger rules demonstrated")
print("    1. total_deposits always equals the sum of balances")
print("    2. total_deposits never exceeds the bank cap")
print("    3. no balance goes negative, even under re-entrant payouts")
print("    4. a failed operation leaves the ledger exactly as it was")
print()
print("Done.")
