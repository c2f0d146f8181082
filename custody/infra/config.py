"""Topic definitions and infrastructure configuration for the custody ledger.

No broker or Temporal client library is imported. Pure configuration data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

# ---------------------------------------------------------------------------
# Topic names
# ---------------------------------------------------------------------------

TOPIC_DEPOSITS: str = "custody.deposits"
TOPIC_WITHDRAWALS: str = "custody.withdrawals"

LEDGER_TOPICS: tuple[str, ...] = (
    TOPIC_DEPOSITS,
    TOPIC_WITHDRAWALS,
)


# ---------------------------------------------------------------------------
# Topic configuration
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class TopicConfig:
    """Partitioning and durability settings for one ledger topic."""

    name: str
    partitions: int
    replication_factor: int
    retention_ms: int              # -1 for infinite retention
    cleanup_policy: str
    min_insync_replicas: int


def ledger_topic_configs() -> tuple[TopicConfig, ...]:
    """Return topic configs for the deposit and withdrawal topics.

    Observations are kept forever: they are the external audit trail.
    """
    return tuple(
        TopicConfig(
            name=name,
            partitions=6, replication_factor=3,
            retention_ms=-1,
            cleanup_policy="delete", min_insync_replicas=2,
        )
        for name in LEDGER_TOPICS
    )


# ---------------------------------------------------------------------------
# Temporal worker configuration
# ---------------------------------------------------------------------------

DEFAULT_TASK_QUEUE: str = "custody-ledger"


@final
@dataclass(frozen=True, slots=True)
class TemporalWorkerConfig:
    """Where the ledger worker connects and which queue it serves."""

    target_host: str = "localhost:7233"
    namespace: str = "default"
    task_queue: str = DEFAULT_TASK_QUEUE
