"""Integration test fixtures for a real Aurora cluster.

Run with:  pytest tests/integration/ -m integration -v
Requires:  ACTIVITY_STREAM_TEST_ARN and ACTIVITY_STREAM_TEST_KMS_KEY.
Tests skip automatically if either variable is unset.
"""

from __future__ import annotations

import os

import pytest

from rds_activity_stream.models import ResourceTimeouts

TEST_REGION = os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")


@pytest.fixture()
def rds_reconciler():
    from rds_activity_stream.client.rds import RdsControlPlaneClient
    from rds_activity_stream.reconciler import ActivityStreamReconciler

    client = RdsControlPlaneClient(region=TEST_REGION)
    return ActivityStreamReconciler(client, timeouts=ResourceTimeouts())
