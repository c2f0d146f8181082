"""In-memory implementations of the infrastructure protocols.

Test doubles that let the suite and the demo run without a real payout
rail or message broker. All classes are @final.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import final

from custody.core.errors import PersistenceError
from custody.core.result import Err, Ok
from custody.core.types import Principal, UtcDatetime


def _persistence_error(operation: str, detail: str) -> PersistenceError:
    """Helper to construct PersistenceError with consistent formatting."""
    return PersistenceError(
        message=detail,
        code="PERSISTENCE_ERROR",
        timestamp=UtcDatetime.now(),
        source=f"memory_adapter.{operation}",
        operation=operation,
    )


type TransferHook = Callable[[Principal, int], None]


@final
class InMemoryAssetTransfer:
    """Records payouts instead of moving value.

    rejected: recipients whose transfers fail.
    reject_all: every transfer fails (payout rail down).
    on_transfer: called before the outcome is decided, so tests can
    re-enter the ledger from inside a withdrawal.
    """

    def __init__(
        self,
        *,
        rejected: frozenset[Principal] = frozenset(),
        reject_all: bool = False,
        on_transfer: TransferHook | None = None,
    ) -> None:
        self._rejected = set(rejected)
        self._reject_all = reject_all
        self._on_transfer = on_transfer
        self._payouts: list[tuple[Principal, int]] = []
        self._attempts = 0

    def transfer(
        self, recipient: Principal, amount: int,
    ) -> Ok[None] | Err[str]:
        self._attempts += 1
        if self._on_transfer is not None:
            self._on_transfer(recipient, amount)
        if self._reject_all:
            return Err("payout rail unavailable")
        if recipient in self._rejected:
            return Err(f"recipient {recipient} rejected transfer")
        self._payouts.append((recipient, amount))
        return Ok(None)

    def reject(self, recipient: Principal) -> None:
        self._rejected.add(recipient)

    def set_reject_all(self, reject_all: bool) -> None:
        self._reject_all = reject_all

    def set_hook(self, hook: TransferHook | None) -> None:
        self._on_transfer = hook

    def payouts(self) -> tuple[tuple[Principal, int], ...]:
        """Test-only helper: successful transfers in order."""
        return tuple(self._payouts)

    def paid_to(self, recipient: Principal) -> int:
        """Test-only helper."""
        return sum(amount for p, amount in self._payouts if p == recipient)

    def attempt_count(self) -> int:
        """Test-only helper."""
        return self._attempts


@final
class InMemoryEventBus:
    """In-memory event bus. Messages stored per-topic as (key, value) pairs.

    Topics listed in unavailable_topics fail every publish.
    """

    def __init__(self, *, unavailable_topics: frozenset[str] = frozenset()) -> None:
        self._topics: dict[str, list[tuple[str, bytes]]] = {}
        self._subscriptions: dict[str, set[str]] = {}
        self._unavailable = unavailable_topics

    def publish(
        self, topic: str, key: str, value: bytes,
    ) -> Ok[None] | Err[PersistenceError]:
        if topic in self._unavailable:
            return Err(_persistence_error("publish", f"Topic unavailable: {topic}"))
        self._topics.setdefault(topic, []).append((key, value))
        return Ok(None)

    def subscribe(
        self, topic: str, group: str,
    ) -> Ok[None] | Err[PersistenceError]:
        if topic in self._unavailable:
            return Err(_persistence_error("subscribe", f"Topic unavailable: {topic}"))
        self._subscriptions.setdefault(topic, set()).add(group)
        return Ok(None)

    def get_messages(self, topic: str) -> list[tuple[str, bytes]]:
        """Test-only helper."""
        return list(self._topics.get(topic, []))

    def subscribers(self, topic: str) -> frozenset[str]:
        """Test-only helper."""
        return frozenset(self._subscriptions.get(topic, set()))

    def topic_count(self) -> int:
        """Test-only helper."""
        return len(self._topics)
