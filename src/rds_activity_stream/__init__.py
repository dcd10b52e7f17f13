"""rds-activity-stream: reconcile Aurora cluster activity streams against RDS."""

__version__ = "0.1.0"

from rds_activity_stream.client.base import ControlPlaneClient
from rds_activity_stream.client.memory import InMemoryControlPlane
from rds_activity_stream.client.rds import RdsControlPlaneClient
from rds_activity_stream.config import ProjectConfig, find_config, load_config
from rds_activity_stream.errors import (
    ActivityStreamError,
    DeclarationError,
    NotFoundError,
    QueryError,
    RemoteCallError,
    TransientConfigError,
    UnexpectedStateError,
    UpdateError,
    ValidationError,
    WaitTimeoutError,
)
from rds_activity_stream.models import (
    ActivityStreamConfig,
    ClusterInfo,
    PlanAction,
    ResourceTimeouts,
    StreamMode,
    StreamPlan,
    StreamStartInfo,
    StreamStatus,
    UpdatePhase,
    UpdateResult,
    WaitSettings,
)
from rds_activity_stream.reconciler import ActivityStreamReconciler
from rds_activity_stream.waiter.state import StateChangeWaiter

__all__ = [
    "ActivityStreamConfig",
    "ActivityStreamError",
    "ActivityStreamReconciler",
    "ClusterInfo",
    "ControlPlaneClient",
    "DeclarationError",
    "find_config",
    "InMemoryControlPlane",
    "load_config",
    "NotFoundError",
    "PlanAction",
    "ProjectConfig",
    "QueryError",
    "RdsControlPlaneClient",
    "RemoteCallError",
    "ResourceTimeouts",
    "StateChangeWaiter",
    "StreamMode",
    "StreamPlan",
    "StreamStartInfo",
    "StreamStatus",
    "TransientConfigError",
    "UnexpectedStateError",
    "UpdateError",
    "UpdatePhase",
    "UpdateResult",
    "ValidationError",
    "WaitSettings",
    "WaitTimeoutError",
    "__version__",
]
