"""Core types: UtcDatetime, Principal."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import final

from custody.core.result import Err, Ok


@final
@dataclass(frozen=True, slots=True)
class UtcDatetime:
    """Timezone-aware UTC datetime. Naive datetimes are rejected."""

    value: datetime

    def __post_init__(self) -> None:
        if self.value.tzinfo is None:
            raise TypeError("UtcDatetime requires timezone-aware datetime, got naive")

    @staticmethod
    def parse(raw: datetime) -> Ok[UtcDatetime] | Err[str]:
        """Parse a datetime, rejecting naive (no tzinfo) datetimes."""
        if raw.tzinfo is None:
            return Err("UtcDatetime requires timezone-aware datetime, got naive")
        return Ok(UtcDatetime(value=raw.astimezone(UTC)))

    @staticmethod
    def now() -> UtcDatetime:
        """Current UTC time."""
        return UtcDatetime(value=datetime.now(tz=UTC))


@final
@dataclass(frozen=True, slots=True, order=True)
class Principal:
    """Opaque account-holder identifier.

    The ledger never interprets the value; callers are already authenticated.
    Ordered so that balance snapshots iterate deterministically.
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value:
            raise TypeError(f"Principal requires non-empty string, got {self.value!r}")

    @staticmethod
    def parse(raw: str) -> Ok[Principal] | Err[str]:
        if not isinstance(raw, str):
            return Err(f"Principal requires str, got {type(raw).__name__}")
        if not raw:
            return Err("Principal requires non-empty string")
        return Ok(Principal(value=raw))

    def __str__(self) -> str:
        return self.value
