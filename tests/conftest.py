"""Hypothesis profiles and pytest fixtures for the custody ledger suite."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from hypothesis import HealthCheck, settings

from custody.core.result import unwrap
from custody.core.types import Principal, UtcDatetime
from custody.infra.memory_adapter import InMemoryAssetTransfer
from custody.ledger.engine import CustodyLedger
from custody.ledger.types import LedgerConfig

# ---------------------------------------------------------------------------
# Hypothesis global settings
# ---------------------------------------------------------------------------

settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.register_profile(
    "dev",
    max_examples=50,
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)
settings.load_profile("dev")


FIXED_NOW = UtcDatetime(value=datetime(2025, 6, 15, 10, 0, 0, tzinfo=UTC))


def fixed_clock() -> UtcDatetime:
    return FIXED_NOW


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def alice() -> Principal:
    return Principal(value="alice")


@pytest.fixture
def bob() -> Principal:
    return Principal(value="bob")


@pytest.fixture
def transfer() -> InMemoryAssetTransfer:
    return InMemoryAssetTransfer()


@pytest.fixture
def ledger(transfer: InMemoryAssetTransfer) -> CustodyLedger:
    """bank_cap=1000, withdrawal_limit=100."""
    config = unwrap(LedgerConfig.create(withdrawal_limit=100, bank_cap=1000))
    return CustodyLedger(config, transfer, clock=fixed_clock)
