"""Infrastructure protocol definitions for the custody ledger.

Domain code depends on these abstractions. Infrastructure code implements them.

All protocols return Ok[T] | Err[...]. A rejected transfer or a failed
publish is a visible value in the type system, never an invisible exception.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from custody.core.errors import PersistenceError
from custody.core.result import Err, Ok
from custody.core.types import Principal


@runtime_checkable
class AssetTransfer(Protocol):
    """Outbound value movement out of custody.

    Invoked by withdraw() only after the ledger has already debited the
    recipient, and may call back into the same ledger before returning.

    Invariants:
      - transfer() returns Ok(None) only if amount actually left custody.
      - transfer() returns Err(reason) if the recipient rejected the value
        or the mechanism failed; nothing has moved in that case.
      - An exception escaping transfer() is read by the ledger the same way
        as Err: the withdrawal is reverted and reported as TransferFailed.
    """

    def transfer(
        self, recipient: Principal, amount: int,
    ) -> Ok[None] | Err[str]: ...


@runtime_checkable
class EventBus(Protocol):
    """Append-only event transport for ledger observations.

    Messages are keyed by principal for deterministic partitioning. Values
    are opaque bytes. Serialization is the caller's responsibility.
    """

    def publish(
        self, topic: str, key: str, value: bytes,
    ) -> Ok[None] | Err[PersistenceError]: ...

    def subscribe(
        self, topic: str, group: str,
    ) -> Ok[None] | Err[PersistenceError]: ...
