"""Reconciler — drives an activity stream towards its declared configuration.

The reconciler starts and stops a cluster's activity stream through a
ControlPlaneClient, waits for the remote status to converge, and reads the
observed attributes back into an ``ActivityStreamConfig`` record. It holds
no state of its own: the live remote state is the only source of truth.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from rds_activity_stream.client.base import ControlPlaneClient
from rds_activity_stream.errors import (
    ActivityStreamError,
    NotFoundError,
    RemoteCallError,
    TransientConfigError,
    UpdateError,
    ValidationError,
)
from rds_activity_stream.models import (
    ActivityStreamConfig,
    PlanAction,
    ResourceTimeouts,
    StreamPlan,
    StreamStatus,
    UpdatePhase,
    UpdateResult,
    WaitSettings,
    validate_mode,
)
from rds_activity_stream.waiter.retry import retry
from rds_activity_stream.waiter.status import (
    activity_stream_status,
    find_cluster,
    wait_for_started,
    wait_for_stopped,
)

logger = logging.getLogger(__name__)

# Fields compared by ``plan``: the ARN is matched by lookup and
# apply_immediately is never reported back by the control plane.
_PLANNED_FIELDS = ("kms_key_id", "mode")


class ActivityStreamReconciler:
    """Create, read, update and delete one cluster's activity stream.

    Lifecycle (create):
      1. Validate the declared mode
      2. Start the stream, retrying while the cluster is not ready yet
      3. Wait for status ``started``
      4. Read back the observed record

    Lifecycle (delete):
      1. Stop the stream (always applied immediately)
      2. Wait for status ``stopped`` (a vanished cluster counts as stopped)
    """

    def __init__(
        self,
        client: ControlPlaneClient,
        timeouts: ResourceTimeouts | None = None,
        wait: WaitSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._timeouts = timeouts or ResourceTimeouts()
        self._wait = wait or WaitSettings()
        self._clock = clock
        self._sleep = sleep

    @property
    def client(self) -> ControlPlaneClient:
        return self._client

    @property
    def timeouts(self) -> ResourceTimeouts:
        return self._timeouts

    def create(self, config: ActivityStreamConfig) -> ActivityStreamConfig:
        """Start the activity stream and wait until it is running.

        Raises:
            ValidationError: The record is not startable.
            RemoteCallError: The start call failed (``NotFoundError`` included).
            WaitTimeoutError: The stream did not reach ``started`` in time.
        """
        mode = validate_mode(config.mode)
        if not config.resource_arn or not config.kms_key_id:
            raise ValidationError("arn and kms_key_id are required to start a stream")

        resource_arn = config.resource_arn
        logger.info("Starting activity stream for %s (mode=%s)", resource_arn, mode)

        info = retry(
            self._timeouts.create,
            lambda: self._client.start_stream(
                resource_arn,
                config.kms_key_id,
                mode,
                config.apply_immediately,
            ),
            retryable=(TransientConfigError,),
            min_timeout=self._wait.interval,
            clock=self._clock,
            sleep=self._sleep,
        )
        logger.debug("Activity stream start acknowledged for %s: %s", resource_arn, info)

        wait_for_started(
            self._client,
            resource_arn,
            self._timeouts.create,
            self._wait,
            clock=self._clock,
            sleep=self._sleep,
        )

        record = self.read(resource_arn, apply_immediately=config.apply_immediately)
        if record is None:
            raise NotFoundError(
                f"activity stream of {resource_arn} disappeared after starting",
                operation="read",
            )
        logger.info("Activity stream for %s started", resource_arn)
        return record

    def read(
        self,
        identifier: str,
        apply_immediately: bool = False,
    ) -> ActivityStreamConfig | None:
        """Read the observed record, or ``None`` when nothing is running there.

        ``apply_immediately`` is not observable remotely and is carried
        over from the caller. Never mutates remote state.
        """
        try:
            clusters = self._client.describe_resource(identifier)
        except NotFoundError:
            logger.warning("RDS cluster (%s) not found, removing from state", identifier)
            return None

        cluster = find_cluster(clusters, identifier)
        if cluster is None:
            logger.warning("RDS cluster (%s) not found, removing from state", identifier)
            return None

        status = cluster.activity_stream_status or StreamStatus.STOPPED
        if status in (StreamStatus.STOPPED, StreamStatus.STOPPING):
            logger.warning(
                "Activity stream of %s is %s, removing from state", identifier, status,
            )
            return None

        if not cluster.activity_stream_mode or not cluster.activity_stream_kms_key_id:
            logger.warning(
                "Activity stream of %s (%s) reports no configuration, removing from state",
                identifier, status,
            )
            return None

        return ActivityStreamConfig(
            resource_arn=cluster.arn or identifier,
            apply_immediately=apply_immediately,
            kms_key_id=cluster.activity_stream_kms_key_id,
            mode=validate_mode(cluster.activity_stream_mode),
            kinesis_stream_name=cluster.activity_stream_kinesis_stream_name,
        )

    def update(
        self,
        prior: ActivityStreamConfig,
        desired: ActivityStreamConfig,
    ) -> UpdateResult:
        """Bring *prior* to *desired*.

        Any change to a force-new field stops the stream (teardown) and
        starts it again (restart), each run to completion. Without changes
        the record is just refreshed. Failures raise ``UpdateError`` tagged
        with the failed phase.
        """
        changed = desired.changed_fields(prior)

        if not changed:
            try:
                record = self.read(prior.id, apply_immediately=desired.apply_immediately)
            except ActivityStreamError as exc:
                raise UpdateError(UpdatePhase.REFRESH, prior.id, str(exc)) from exc
            return UpdateResult(record=record, phases=[UpdatePhase.REFRESH])

        logger.info(
            "Stopping activity stream %s before updating (changed: %s)",
            prior.id, ", ".join(changed),
        )
        phases: list[UpdatePhase] = []
        try:
            self.delete(prior.id)
        except ActivityStreamError as exc:
            raise UpdateError(UpdatePhase.TEARDOWN, prior.id, str(exc)) from exc
        phases.append(UpdatePhase.TEARDOWN)

        logger.info("Starting activity stream %s", desired.id)
        try:
            record = self.create(desired)
        except ActivityStreamError as exc:
            raise UpdateError(
                UpdatePhase.RESTART, desired.id, str(exc), completed=phases,
            ) from exc
        phases.append(UpdatePhase.RESTART)

        return UpdateResult(record=record, replaced=True, changed=changed, phases=phases)

    def delete(self, identifier: str) -> None:
        """Stop the activity stream and wait until it is stopped.

        Idempotent: a missing cluster or an already stopped stream is a
        successful delete.
        """
        logger.info("Stopping activity stream %s", identifier)
        try:
            self._client.stop_stream(identifier, apply_immediately=True)
        except NotFoundError:
            logger.warning(
                "RDS cluster (%s) not found, activity stream already gone", identifier,
            )
            return
        except RemoteCallError as exc:
            try:
                status = self._observed_status(identifier)
            except ActivityStreamError as read_exc:
                raise exc from read_exc
            if status == StreamStatus.STOPPED:
                logger.info("Activity stream %s is already stopped", identifier)
                return
            if status != StreamStatus.STOPPING:
                raise

        wait_for_stopped(
            self._client,
            identifier,
            self._timeouts.delete,
            self._wait,
            clock=self._clock,
            sleep=self._sleep,
        )
        logger.info("Activity stream %s stopped", identifier)

    def import_state(self, identifier: str) -> ActivityStreamConfig:
        """Re-attach a record to a running stream from its identifier alone."""
        record = self.read(identifier)
        if record is None:
            raise NotFoundError(
                f"no running activity stream found for {identifier}",
                operation="import",
            )
        return record

    def plan(
        self,
        desired: ActivityStreamConfig | None,
        current: ActivityStreamConfig | None,
    ) -> StreamPlan:
        """Decide what ``apply`` would do, without touching the remote."""
        if desired is None:
            action = PlanAction.DELETE if current is not None else PlanAction.NOOP
            return StreamPlan(action=action, current=current)
        if current is None:
            return StreamPlan(action=PlanAction.CREATE, desired=desired)

        changed = [
            name for name in _PLANNED_FIELDS
            if getattr(desired, name) != getattr(current, name)
        ]
        action = PlanAction.REPLACE if changed else PlanAction.NOOP
        return StreamPlan(action=action, desired=desired, current=current, changed=changed)

    def apply(
        self,
        desired: ActivityStreamConfig,
    ) -> tuple[StreamPlan, ActivityStreamConfig | None]:
        """Read the live record, plan, and carry out the plan."""
        current = self.read(desired.id, apply_immediately=desired.apply_immediately)
        plan = self.plan(desired, current)

        if plan.action == PlanAction.CREATE:
            self._await_pending_stop(desired.id)
            return plan, self.create(desired)
        if plan.action == PlanAction.REPLACE and current is not None:
            return plan, self.update(current, desired).record
        return plan, current

    # --- Private ---

    def _observed_status(self, identifier: str) -> str:
        _, status = activity_stream_status(self._client, identifier)()
        return status

    def _await_pending_stop(self, identifier: str) -> None:
        """Let a stream that is still stopping finish before it is started again."""
        if self._observed_status(identifier) != StreamStatus.STOPPING:
            return
        logger.info(
            "Activity stream %s is still stopping, waiting before starting it", identifier,
        )
        wait_for_stopped(
            self._client,
            identifier,
            self._timeouts.delete,
            self._wait,
            clock=self._clock,
            sleep=self._sleep,
        )
