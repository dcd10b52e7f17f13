"""Control-plane client protocol.

The ControlPlaneClient protocol defines the three remote calls the
reconciler needs. Any object with ``start_stream()``, ``stop_stream()``
and ``describe_resource()`` methods satisfies the protocol, no
inheritance required. Clients are always passed in explicitly.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from rds_activity_stream.models import ClusterInfo, StreamMode, StreamStartInfo


@runtime_checkable
class ControlPlaneClient(Protocol):
    """Protocol for activity stream control-plane clients."""

    def start_stream(
        self,
        resource_arn: str,
        kms_key_id: str,
        mode: StreamMode,
        apply_immediately: bool,
    ) -> StreamStartInfo:
        """Start the activity stream of a cluster.

        Raises ``TransientConfigError`` when the cluster is not ready yet,
        ``NotFoundError`` when it does not exist, ``RemoteCallError`` otherwise.
        """
        ...

    def stop_stream(
        self,
        resource_arn: str,
        apply_immediately: bool,
    ) -> StreamStartInfo:
        """Stop the activity stream of a cluster."""
        ...

    def describe_resource(self, resource_arn: str) -> list[ClusterInfo]:
        """Describe the cluster(s) matching *resource_arn*.

        Raises ``NotFoundError`` when the cluster does not exist.
        """
        ...
