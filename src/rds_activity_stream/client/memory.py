"""InMemoryControlPlane — a simulated RDS control plane.

Deterministic stand-in for ``RdsControlPlaneClient``. Clusters are
registered with ``add_cluster()``; stream status transitions settle after
a configurable number of describe calls, so waiters can be exercised
without a real account. Every call is recorded in ``calls``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rds_activity_stream.errors import (
    NotFoundError,
    RemoteCallError,
    TransientConfigError,
)
from rds_activity_stream.models import (
    ClusterInfo,
    StreamMode,
    StreamStartInfo,
    StreamStatus,
)

_TRANSITIONS: dict[str, StreamStatus] = {
    StreamStatus.STARTING: StreamStatus.STARTED,
    StreamStatus.STOPPING: StreamStatus.STOPPED,
}


@dataclass
class SimulatedCluster:
    """Mutable state of one simulated cluster."""

    identifier: str
    arn: str
    status: str = "available"
    stream_status: str = StreamStatus.STOPPED
    mode: str | None = None
    kms_key_id: str | None = None
    kinesis_stream_name: str | None = None
    unsupported_attempts: int = 0
    pending_polls: int = 0

    def to_info(self) -> ClusterInfo:
        return ClusterInfo(
            identifier=self.identifier,
            arn=self.arn,
            status=self.status,
            activity_stream_status=self.stream_status,
            activity_stream_mode=self.mode,
            activity_stream_kms_key_id=self.kms_key_id,
            activity_stream_kinesis_stream_name=self.kinesis_stream_name,
        )


@dataclass
class RecordedCall:
    method: str
    params: dict[str, Any] = field(default_factory=dict)


class InMemoryControlPlane:
    """Control-plane client backed by in-process state.

    ``settle_after`` is the number of describe calls that still report a
    transitional status (``starting``/``stopping``) before it settles.
    """

    def __init__(self, settle_after: int = 1) -> None:
        self._settle_after = settle_after
        self._clusters: dict[str, SimulatedCluster] = {}
        self.calls: list[RecordedCall] = []

    def add_cluster(
        self,
        arn: str,
        identifier: str | None = None,
        unsupported_attempts: int = 0,
    ) -> SimulatedCluster:
        """Register a cluster. *unsupported_attempts* start calls are rejected first."""
        cluster = SimulatedCluster(
            identifier=identifier or arn.rsplit(":", 1)[-1],
            arn=arn,
            unsupported_attempts=unsupported_attempts,
        )
        self._clusters[arn] = cluster
        return cluster

    def remove_cluster(self, arn: str) -> None:
        """Delete a cluster out of band."""
        self._clusters.pop(arn, None)

    def get_cluster(self, arn: str) -> SimulatedCluster | None:
        return self._lookup(arn)

    def count(self, method: str) -> int:
        return sum(1 for c in self.calls if c.method == method)

    # --- ControlPlaneClient ---

    def start_stream(
        self,
        resource_arn: str,
        kms_key_id: str,
        mode: StreamMode,
        apply_immediately: bool,
    ) -> StreamStartInfo:
        self.calls.append(RecordedCall("start_stream", {
            "resource_arn": resource_arn,
            "kms_key_id": kms_key_id,
            "mode": str(mode),
            "apply_immediately": apply_immediately,
        }))
        cluster = self._lookup(resource_arn)
        if cluster is None:
            raise NotFoundError(
                f"RDS cluster ({resource_arn}) not found",
                operation="StartActivityStream",
                code="ResourceNotFoundFault",
            )
        if cluster.unsupported_attempts > 0:
            cluster.unsupported_attempts -= 1
            raise TransientConfigError(
                "Activity Streams is not supported for this configuration",
                operation="StartActivityStream",
                code="InvalidParameterCombination",
            )
        if cluster.stream_status != StreamStatus.STOPPED:
            raise RemoteCallError(
                f"activity stream of {resource_arn} is {cluster.stream_status}",
                operation="StartActivityStream",
                code="InvalidDBClusterStateFault",
            )

        cluster.stream_status = StreamStatus.STARTING
        cluster.mode = str(mode)
        cluster.kms_key_id = kms_key_id
        cluster.kinesis_stream_name = f"aws-rds-das-{cluster.identifier}"
        cluster.pending_polls = self._settle_after
        return StreamStartInfo(
            kms_key_id=kms_key_id,
            kinesis_stream_name=cluster.kinesis_stream_name,
            status=cluster.stream_status,
            mode=cluster.mode,
            apply_immediately=apply_immediately,
        )

    def stop_stream(
        self,
        resource_arn: str,
        apply_immediately: bool,
    ) -> StreamStartInfo:
        self.calls.append(RecordedCall("stop_stream", {
            "resource_arn": resource_arn,
            "apply_immediately": apply_immediately,
        }))
        cluster = self._lookup(resource_arn)
        if cluster is None:
            raise NotFoundError(
                f"RDS cluster ({resource_arn}) not found",
                operation="StopActivityStream",
                code="DBClusterNotFoundFault",
            )
        if cluster.stream_status in (StreamStatus.STOPPED, StreamStatus.STOPPING):
            raise RemoteCallError(
                f"activity stream of {resource_arn} is {cluster.stream_status}",
                operation="StopActivityStream",
                code="InvalidDBClusterStateFault",
            )

        cluster.stream_status = StreamStatus.STOPPING
        cluster.pending_polls = self._settle_after
        return StreamStartInfo(
            kms_key_id=cluster.kms_key_id,
            kinesis_stream_name=cluster.kinesis_stream_name,
            status=cluster.stream_status,
        )

    def describe_resource(self, resource_arn: str) -> list[ClusterInfo]:
        self.calls.append(RecordedCall("describe_resource", {
            "resource_arn": resource_arn,
        }))
        cluster = self._lookup(resource_arn)
        if cluster is None:
            raise NotFoundError(
                f"RDS cluster ({resource_arn}) not found",
                operation="DescribeDBClusters",
                code="DBClusterNotFoundFault",
            )
        self._advance(cluster)
        return [cluster.to_info()]

    # --- Private ---

    def _lookup(self, resource_arn: str) -> SimulatedCluster | None:
        cluster = self._clusters.get(resource_arn)
        if cluster is not None:
            return cluster
        for candidate in self._clusters.values():
            if candidate.identifier == resource_arn:
                return candidate
        return None

    def _advance(self, cluster: SimulatedCluster) -> None:
        settled = _TRANSITIONS.get(cluster.stream_status)
        if settled is None:
            return
        if cluster.pending_polls > 0:
            cluster.pending_polls -= 1
            return
        cluster.stream_status = settled
        if settled == StreamStatus.STOPPED:
            cluster.mode = None
            cluster.kms_key_id = None
            cluster.kinesis_stream_name = None
