"""Activity stream status refresh and the started/stopped waiters."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from rds_activity_stream.client.base import ControlPlaneClient
from rds_activity_stream.errors import NotFoundError
from rds_activity_stream.models import ClusterInfo, StreamStatus, WaitSettings
from rds_activity_stream.waiter.state import RefreshFunc, StateChangeWaiter

logger = logging.getLogger(__name__)


def find_cluster(clusters: list[ClusterInfo], identifier: str) -> ClusterInfo | None:
    """Return the cluster whose ARN or identifier equals *identifier*."""
    for cluster in clusters:
        if cluster.matches(identifier):
            return cluster
    return None


def activity_stream_status(client: ControlPlaneClient, identifier: str) -> RefreshFunc:
    """Build a refresh function for the activity stream of *identifier*.

    A missing cluster is reported as ``stopped`` rather than as an error,
    so waiting for a stop succeeds even if the cluster itself is gone.
    Any other describe error propagates.
    """

    def refresh() -> tuple[ClusterInfo | None, str]:
        try:
            clusters = client.describe_resource(identifier)
        except NotFoundError as exc:
            logger.debug("Refreshing activity stream state of %s: %s", identifier, exc)
            return None, StreamStatus.STOPPED

        cluster = find_cluster(clusters, identifier)
        if cluster is None:
            logger.debug(
                "Refreshing activity stream state of %s: no matching cluster",
                identifier,
            )
            return None, StreamStatus.STOPPED

        status = cluster.activity_stream_status or StreamStatus.STOPPED
        logger.debug("Refreshing activity stream state of %s... %s", identifier, status)
        return cluster, status

    return refresh


def wait_for_started(
    client: ControlPlaneClient,
    identifier: str,
    timeout: float,
    settings: WaitSettings | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> ClusterInfo | None:
    logger.info("Waiting for activity stream %s to become started...", identifier)
    return _wait(
        client, identifier, timeout, settings, clock, sleep,
        pending=[StreamStatus.STARTING],
        target=[StreamStatus.STARTED],
    )


def wait_for_stopped(
    client: ControlPlaneClient,
    identifier: str,
    timeout: float,
    settings: WaitSettings | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> ClusterInfo | None:
    logger.info("Waiting for activity stream %s to become stopped...", identifier)
    return _wait(
        client, identifier, timeout, settings, clock, sleep,
        pending=[StreamStatus.STOPPING],
        target=[StreamStatus.STOPPED],
    )


def _wait(
    client: ControlPlaneClient,
    identifier: str,
    timeout: float,
    settings: WaitSettings | None,
    clock: Callable[[], float],
    sleep: Callable[[float], None],
    *,
    pending: list[StreamStatus],
    target: list[StreamStatus],
) -> ClusterInfo | None:
    settings = settings or WaitSettings()
    waiter = StateChangeWaiter(
        identifier=identifier,
        pending=pending,
        target=target,
        refresh=activity_stream_status(client, identifier),
        timeout=timeout,
        delay=settings.delay,
        min_timeout=settings.min_timeout,
        poll_interval=settings.poll_interval,
        clock=clock,
        sleep=sleep,
    )
    cluster, _ = waiter.wait_for_state()
    return cluster
