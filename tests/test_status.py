"""Tests for the activity stream status refresh and started/stopped waiters."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from rds_activity_stream.errors import (
    NotFoundError,
    QueryError,
    RemoteCallError,
    WaitTimeoutError,
)
from rds_activity_stream.models import ClusterInfo, StreamStatus, WaitSettings
from rds_activity_stream.waiter.status import (
    activity_stream_status,
    find_cluster,
    wait_for_started,
    wait_for_stopped,
)

ARN = "arn:aws:rds:us-east-1:123456789012:cluster:db-1"


def _cluster(status: str | None, arn: str = ARN, identifier: str = "db-1") -> ClusterInfo:
    return ClusterInfo(
        identifier=identifier,
        arn=arn,
        status="available",
        activity_stream_status=status,
    )


def _client(*responses) -> MagicMock:
    client = MagicMock()
    client.describe_resource.side_effect = list(responses)
    return client


FAST = WaitSettings(delay=0.0, min_timeout=1.0)


class TestFindCluster:
    def test_matches_arn(self):
        assert find_cluster([_cluster("started")], ARN) is not None

    def test_matches_cluster_identifier(self):
        assert find_cluster([_cluster("started")], "db-1") is not None

    def test_no_match(self):
        other = _cluster("started", arn="arn:other", identifier="other")
        assert find_cluster([other], ARN) is None


class TestActivityStreamStatus:
    def test_reports_stream_status(self):
        refresh = activity_stream_status(_client([_cluster("starting")]), ARN)
        cluster, status = refresh()
        assert status == "starting"
        assert cluster.arn == ARN

    def test_not_found_is_stopped(self):
        client = _client(NotFoundError("gone", code="DBClusterNotFoundFault"))
        cluster, status = activity_stream_status(client, ARN)()
        assert cluster is None
        assert status == StreamStatus.STOPPED

    def test_empty_result_is_stopped(self):
        _, status = activity_stream_status(_client([]), ARN)()
        assert status == StreamStatus.STOPPED

    def test_non_matching_result_is_stopped(self):
        other = _cluster("started", arn="arn:other", identifier="other")
        _, status = activity_stream_status(_client([other]), ARN)()
        assert status == StreamStatus.STOPPED

    def test_missing_stream_status_is_stopped(self):
        _, status = activity_stream_status(_client([_cluster(None)]), ARN)()
        assert status == StreamStatus.STOPPED

    def test_other_errors_propagate(self):
        client = _client(RemoteCallError("throttled", code="Throttling"))
        with pytest.raises(RemoteCallError):
            activity_stream_status(client, ARN)()


class TestWaitForStarted:
    def test_started_after_starting(self, clock):
        client = _client(
            [_cluster("starting")], [_cluster("starting")], [_cluster("started")],
        )
        cluster = wait_for_started(client, ARN, 60.0, FAST, clock=clock, sleep=clock.sleep)
        assert cluster.activity_stream_status == "started"
        assert client.describe_resource.call_count == 3

    def test_describe_failure_is_query_error(self, clock):
        client = _client(RemoteCallError("access denied", code="AccessDenied"))
        with pytest.raises(QueryError):
            wait_for_started(client, ARN, 60.0, FAST, clock=clock, sleep=clock.sleep)

    def test_times_out(self, clock):
        client = MagicMock()
        client.describe_resource.return_value = [_cluster("starting")]
        with pytest.raises(WaitTimeoutError) as exc_info:
            wait_for_started(client, ARN, 5.0, FAST, clock=clock, sleep=clock.sleep)
        assert exc_info.value.identifier == ARN


class TestWaitForStopped:
    def test_stopped_after_stopping(self, clock):
        client = _client([_cluster("stopping")], [_cluster("stopped")])
        wait_for_stopped(client, ARN, 60.0, FAST, clock=clock, sleep=clock.sleep)
        assert client.describe_resource.call_count == 2

    def test_not_found_is_immediately_terminal(self, clock):
        client = _client(NotFoundError("gone", code="DBClusterNotFoundFault"))
        assert wait_for_stopped(
            client, ARN, 60.0, FAST, clock=clock, sleep=clock.sleep,
        ) is None
        assert client.describe_resource.call_count == 1

    def test_cluster_vanishes_while_stopping(self, clock):
        client = _client(
            [_cluster("stopping")],
            NotFoundError("gone", code="DBClusterNotFoundFault"),
        )
        wait_for_stopped(client, ARN, 60.0, FAST, clock=clock, sleep=clock.sleep)
        assert client.describe_resource.call_count == 2
