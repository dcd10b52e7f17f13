"""Tests for the simulated control plane."""

from __future__ import annotations

import pytest

from rds_activity_stream.client.base import ControlPlaneClient
from rds_activity_stream.client.memory import InMemoryControlPlane
from rds_activity_stream.errors import (
    NotFoundError,
    RemoteCallError,
    TransientConfigError,
)
from rds_activity_stream.models import StreamMode

ARN = "arn:aws:rds:us-east-1:123456789012:cluster:db-1"


class TestInMemoryControlPlane:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryControlPlane(), ControlPlaneClient)

    def test_identifier_derived_from_arn(self):
        plane = InMemoryControlPlane()
        assert plane.add_cluster(ARN).identifier == "db-1"

    def test_start_then_settles(self):
        plane = InMemoryControlPlane(settle_after=2)
        plane.add_cluster(ARN)
        info = plane.start_stream(ARN, "key-1", StreamMode.ASYNC, True)
        assert info.status == "starting"
        assert info.kinesis_stream_name == "aws-rds-das-db-1"

        statuses = [
            plane.describe_resource(ARN)[0].activity_stream_status for _ in range(3)
        ]
        assert statuses == ["starting", "starting", "started"]

    def test_start_unknown_cluster(self):
        with pytest.raises(NotFoundError):
            InMemoryControlPlane().start_stream(ARN, "key-1", StreamMode.SYNC, False)

    def test_start_rejected_while_not_ready(self):
        plane = InMemoryControlPlane()
        plane.add_cluster(ARN, unsupported_attempts=1)
        with pytest.raises(TransientConfigError):
            plane.start_stream(ARN, "key-1", StreamMode.SYNC, False)
        assert plane.start_stream(ARN, "key-1", StreamMode.SYNC, False).status == "starting"

    def test_start_twice_rejected(self):
        plane = InMemoryControlPlane()
        plane.add_cluster(ARN)
        plane.start_stream(ARN, "key-1", StreamMode.SYNC, False)
        with pytest.raises(RemoteCallError) as exc_info:
            plane.start_stream(ARN, "key-1", StreamMode.SYNC, False)
        assert exc_info.value.code == "InvalidDBClusterStateFault"

    def test_stop_clears_configuration(self):
        plane = InMemoryControlPlane(settle_after=0)
        plane.add_cluster(ARN)
        plane.start_stream(ARN, "key-1", StreamMode.SYNC, False)
        plane.describe_resource(ARN)
        plane.stop_stream(ARN, True)
        cluster = plane.describe_resource(ARN)[0]
        assert cluster.activity_stream_status == "stopped"
        assert cluster.activity_stream_mode is None
        assert cluster.activity_stream_kinesis_stream_name is None

    def test_stop_when_stopped_rejected(self):
        plane = InMemoryControlPlane()
        plane.add_cluster(ARN)
        with pytest.raises(RemoteCallError):
            plane.stop_stream(ARN, True)

    def test_removed_cluster_not_found(self):
        plane = InMemoryControlPlane()
        plane.add_cluster(ARN)
        plane.remove_cluster(ARN)
        with pytest.raises(NotFoundError):
            plane.describe_resource(ARN)

    def test_calls_are_recorded(self):
        plane = InMemoryControlPlane()
        plane.add_cluster(ARN)
        plane.start_stream(ARN, "key-1", StreamMode.ASYNC, True)
        assert plane.calls[0].method == "start_stream"
        assert plane.calls[0].params == {
            "resource_arn": ARN,
            "kms_key_id": "key-1",
            "mode": "async",
            "apply_immediately": True,
        }
        assert plane.count("start_stream") == 1
