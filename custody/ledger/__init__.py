"""custody.ledger — Ledger domain types and engine."""

from custody.ledger.engine import CustodyLedger as CustodyLedger
from custody.ledger.types import DepositEvent as DepositEvent
from custody.ledger.types import DepositReceipt as DepositReceipt
from custody.ledger.types import LedgerConfig as LedgerConfig
from custody.ledger.types import LedgerEvent as LedgerEvent
from custody.ledger.types import LedgerSnapshot as LedgerSnapshot
from custody.ledger.types import PendingWithdrawal as PendingWithdrawal
from custody.ledger.types import WithdrawalEvent as WithdrawalEvent
from custody.ledger.types import WithdrawalReceipt as WithdrawalReceipt
from custody.ledger.types import WithdrawalStatus as WithdrawalStatus
