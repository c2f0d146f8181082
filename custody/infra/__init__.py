"""custody.infra — Infrastructure protocols, adapters, and configuration."""

from custody.infra.config import DEFAULT_TASK_QUEUE as DEFAULT_TASK_QUEUE
from custody.infra.config import LEDGER_TOPICS as LEDGER_TOPICS
from custody.infra.config import TOPIC_DEPOSITS as TOPIC_DEPOSITS
from custody.infra.config import TOPIC_WITHDRAWALS as TOPIC_WITHDRAWALS
from custody.infra.config import TemporalWorkerConfig as TemporalWorkerConfig
from custody.infra.config import TopicConfig as TopicConfig
from custody.infra.config import ledger_topic_configs as ledger_topic_configs
from custody.infra.health import HealthCheckable as HealthCheckable
from custody.infra.health import HealthStatus as HealthStatus
from custody.infra.health import LedgerHealthProbe as LedgerHealthProbe
from custody.infra.health import SystemHealth as SystemHealth
from custody.infra.health import liveness_check as liveness_check
from custody.infra.health import readiness_check as readiness_check
from custody.infra.memory_adapter import InMemoryAssetTransfer as InMemoryAssetTransfer
from custody.infra.memory_adapter import InMemoryEventBus as InMemoryEventBus
from custody.infra.protocols import AssetTransfer as AssetTransfer
from custody.infra.protocols import EventBus as EventBus
