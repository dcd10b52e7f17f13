"""Polling helpers: state change waiter, status refresh, call retry."""

from rds_activity_stream.waiter.retry import retry
from rds_activity_stream.waiter.state import RefreshFunc, StateChangeWaiter
from rds_activity_stream.waiter.status import (
    activity_stream_status,
    find_cluster,
    wait_for_started,
    wait_for_stopped,
)

__all__ = [
    "RefreshFunc",
    "StateChangeWaiter",
    "activity_stream_status",
    "find_cluster",
    "retry",
    "wait_for_started",
    "wait_for_stopped",
]
