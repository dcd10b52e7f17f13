"""Retry a call while it fails with a retryable error."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from rds_activity_stream.errors import TransientConfigError
from rds_activity_stream.models import DEFAULT_MIN_TIMEOUT

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry(
    timeout: float,
    func: Callable[[], T],
    retryable: tuple[type[BaseException], ...] = (TransientConfigError,),
    min_timeout: float = DEFAULT_MIN_TIMEOUT,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call *func* until it returns, retrying *retryable* errors for *timeout* seconds.

    Non-retryable errors propagate immediately. Once the window has
    elapsed one final attempt is made and its outcome is returned or raised
    as-is.
    """
    start = clock()
    attempt = 0
    while True:
        attempt += 1
        try:
            return func()
        except retryable as exc:
            remaining = timeout - (clock() - start)
            if remaining <= 0:
                logger.debug("Retry window of %.0fs elapsed after: %s", timeout, exc)
                break
            logger.debug("Retryable error (attempt %d), will retry: %s", attempt, exc)
            sleep(min(min_timeout, remaining))

    return func()
