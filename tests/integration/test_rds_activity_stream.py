"""Integration tests for the reconciler against a real Aurora cluster.

Starting an activity stream takes several minutes and bills Kinesis usage.
Run: pytest tests/integration/ -m integration -v
"""

from __future__ import annotations

import os

import pytest

from rds_activity_stream.models import ActivityStreamConfig, StreamMode

TEST_ARN = os.environ.get("ACTIVITY_STREAM_TEST_ARN", "")
TEST_KMS_KEY = os.environ.get("ACTIVITY_STREAM_TEST_KMS_KEY", "")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not (TEST_ARN and TEST_KMS_KEY),
        reason="ACTIVITY_STREAM_TEST_ARN / ACTIVITY_STREAM_TEST_KMS_KEY not set",
    ),
]


class TestActivityStreamLifecycle:
    def test_create_read_delete(self, rds_reconciler):
        desired = ActivityStreamConfig(
            arn=TEST_ARN, kms_key_id=TEST_KMS_KEY, mode=StreamMode.ASYNC,
            apply_immediately=True,
        )
        try:
            record = rds_reconciler.create(desired)
            assert record.id == TEST_ARN
            assert record.mode == StreamMode.ASYNC
            assert record.kinesis_stream_name

            assert rds_reconciler.read(TEST_ARN, apply_immediately=True) == record
        finally:
            rds_reconciler.delete(TEST_ARN)

        assert rds_reconciler.read(TEST_ARN) is None

    def test_delete_is_idempotent(self, rds_reconciler):
        rds_reconciler.delete(TEST_ARN)
        rds_reconciler.delete(TEST_ARN)
        assert rds_reconciler.read(TEST_ARN) is None
