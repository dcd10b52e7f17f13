"""Fixed-interval state change waiter.

Polls a refresh function until the observed status is one of the target
statuses, the status leaves the pending set, the refresh fails, or the
timeout elapses. Time is read through an injectable ``clock`` and spent
through an injectable ``sleep`` so tests never wait for real.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from rds_activity_stream.errors import (
    QueryError,
    UnexpectedStateError,
    ValidationError,
    WaitTimeoutError,
)
from rds_activity_stream.models import DEFAULT_DELAY, DEFAULT_MIN_TIMEOUT

logger = logging.getLogger(__name__)

RefreshFunc = Callable[[], tuple[Any, str]]


class StateChangeWaiter:
    """Wait for a remote resource to reach one of a set of statuses.

    State machine: pending -> target | timeout | fatal error.

    - ``delay`` is slept once before the first refresh and counts
      against ``timeout``.
    - Between refreshes the waiter sleeps ``max(poll_interval, min_timeout)``,
      never past the deadline.
    - Any exception from ``refresh`` aborts immediately as ``QueryError``.
    """

    def __init__(
        self,
        identifier: str,
        pending: Iterable[str],
        target: Iterable[str],
        refresh: RefreshFunc,
        timeout: float,
        delay: float = DEFAULT_DELAY,
        min_timeout: float = DEFAULT_MIN_TIMEOUT,
        poll_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not identifier:
            raise ValidationError("identifier must not be empty")
        if timeout <= 0:
            raise ValidationError(f"timeout must be positive, got {timeout}")
        self._identifier = identifier
        self._pending = frozenset(pending)
        self._target = frozenset(target)
        if not self._target:
            raise ValidationError("at least one target status is required")
        self._refresh = refresh
        self._timeout = timeout
        self._delay = delay
        self._interval = max(poll_interval, min_timeout)
        self._clock = clock
        self._sleep = sleep
        self.attempts = 0

    @property
    def target(self) -> frozenset[str]:
        return self._target

    @property
    def pending(self) -> frozenset[str]:
        return self._pending

    def wait_for_state(self) -> tuple[Any, str]:
        """Block until a target status is observed.

        Returns ``(result, status)`` from the final refresh.

        Raises:
            QueryError: The refresh function failed.
            UnexpectedStateError: The status was neither pending nor target.
            WaitTimeoutError: No target status within the timeout.
        """
        start = self._clock()
        self.attempts = 0

        if self._delay > 0:
            self._sleep(min(self._delay, self._timeout))

        while True:
            self.attempts += 1
            try:
                result, status = self._refresh()
            except Exception as exc:
                raise QueryError(self._identifier, str(exc)) from exc

            logger.debug(
                "Refreshed %s (attempt %d): status %s",
                self._identifier, self.attempts, status,
            )

            if status in self._target:
                return result, status

            if status not in self._pending:
                raise UnexpectedStateError(
                    self._identifier, status, self._pending | self._target,
                )

            elapsed = self._clock() - start
            remaining = self._timeout - elapsed
            if remaining <= 0:
                raise WaitTimeoutError(
                    self._identifier,
                    timeout=self._timeout,
                    elapsed=elapsed,
                    last_status=status,
                    target=self._target,
                )

            self._sleep(min(self._interval, remaining))
