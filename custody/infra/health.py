"""Health reporting for a custody ledger process.

Kubernetes probes:
  livenessProbe  -> GET /health/live   -> liveness_check()
  readinessProbe -> GET /health/ready  -> readiness_check(probes)

A ledger whose books no longer balance is not ready: readiness fails as
soon as LedgerHealthProbe sees check_invariants() return Err.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, final

from custody.core.errors import CustodyError
from custody.core.result import Err, Ok

if TYPE_CHECKING:
    from custody.ledger.engine import CustodyLedger


@final
@dataclass(frozen=True, slots=True)
class HealthStatus:
    """Outcome of probing one component."""

    healthy: bool
    component: str
    message: str
    checked_at: datetime
    latency_ms: float  # probe latency, not an amount


@final
@dataclass(frozen=True, slots=True)
class SystemHealth:
    """Every probe's status. Healthy only if all of them are."""

    overall_healthy: bool
    checks: tuple[HealthStatus, ...]
    checked_at: datetime

    def failing(self) -> tuple[str, ...]:
        return tuple(c.component for c in self.checks if not c.healthy)


class HealthCheckable(Protocol):
    """Anything readiness_check() can probe."""

    def health_check(self) -> Ok[HealthStatus] | Err[CustodyError]: ...


@final
class LedgerHealthProbe:
    """Probes a ledger by running its invariant check.

    A violated invariant is a healthy probe reporting an unhealthy ledger,
    so it comes back as Ok(HealthStatus(healthy=False)).
    """

    def __init__(self, ledger: CustodyLedger, component: str = "custody-ledger") -> None:
        self._ledger = ledger
        self._component = component

    def health_check(self) -> Ok[HealthStatus] | Err[CustodyError]:
        started = time.perf_counter()
        verdict = self._ledger.check_invariants()
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        match verdict:
            case Ok():
                healthy = True
                message = (
                    f"invariants hold; total_deposits={self._ledger.total_deposits}"
                    f" capacity={self._ledger.available_capacity()}"
                )
            case Err(violation):
                healthy = False
                message = (
                    f"{violation.invariant} violated: "
                    f"expected {violation.expected}, got {violation.actual}"
                )
        return Ok(HealthStatus(
            healthy=healthy, component=self._component, message=message,
            checked_at=datetime.now(tz=UTC), latency_ms=elapsed_ms,
        ))


def liveness_check() -> HealthStatus:
    """The process answers, so it is alive. Ledger state is not consulted."""
    return HealthStatus(
        healthy=True, component="process", message="alive",
        checked_at=datetime.now(tz=UTC), latency_ms=0.0,
    )


def _probe(dependency: HealthCheckable) -> HealthStatus:
    match dependency.health_check():
        case Ok(status):
            return status
        case Err(error):
            # The probe itself broke; name the component by the error's source
            return HealthStatus(
                healthy=False, component=error.source,
                message=f"Health check failed: {error.message}",
                checked_at=datetime.now(tz=UTC), latency_ms=0.0,
            )


def readiness_check(probes: tuple[HealthCheckable, ...]) -> SystemHealth:
    """Run every probe, in order, and aggregate."""
    checks = tuple(_probe(p) for p in probes)
    return SystemHealth(
        overall_healthy=all(c.healthy for c in checks),
        checks=checks,
        checked_at=datetime.now(tz=UTC),
    )
