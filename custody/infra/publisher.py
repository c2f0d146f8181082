"""Publish ledger observations to an EventBus.

Deposits and withdrawals go to separate topics, keyed by principal, with
canonical JSON bytes as the value. Publishing stops at the first failure
so a caller can resume from the last published sequence number.
"""

from __future__ import annotations

from collections.abc import Iterable

from custody.core.errors import PersistenceError
from custody.core.result import Err, Ok
from custody.core.serialization import canonical_bytes
from custody.core.types import UtcDatetime
from custody.infra.config import TOPIC_DEPOSITS, TOPIC_WITHDRAWALS
from custody.infra.protocols import EventBus
from custody.ledger.types import DepositEvent, LedgerEvent, WithdrawalEvent


def topic_for(event: LedgerEvent) -> str:
    match event:
        case DepositEvent():
            return TOPIC_DEPOSITS
        case WithdrawalEvent():
            return TOPIC_WITHDRAWALS


def publish_events(
    events: Iterable[LedgerEvent], bus: EventBus,
) -> Ok[int] | Err[PersistenceError]:
    """Publish events in order. Returns Ok(count) or the first Err."""
    published = 0
    for event in events:
        match canonical_bytes(event):
            case Err(detail):
                return Err(PersistenceError(
                    message=f"Cannot encode event {event.sequence}: {detail}",
                    code="PERSISTENCE_ERROR",
                    timestamp=UtcDatetime.now(),
                    source="infra.publisher.publish_events",
                    operation="encode",
                ))
            case Ok(payload):
                pass
        match bus.publish(topic_for(event), event.principal.value, payload):
            case Err(error):
                return Err(error.with_context(f"event {event.sequence}"))
            case Ok():
                published += 1
    return Ok(published)
