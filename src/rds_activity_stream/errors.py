"""Error taxonomy for activity stream reconciliation.

Every error raised by the client, the waiter and the reconciler derives
from ``ActivityStreamError`` so callers can catch the whole family at once
and still tell "still converging" (``WaitTimeoutError``) apart from
"broken" (``QueryError`` / ``RemoteCallError``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rds_activity_stream.models import UpdatePhase


class ActivityStreamError(Exception):
    """Base class for all activity stream errors."""


class ValidationError(ActivityStreamError, ValueError):
    """Raised when caller input is outside the allowed domain.

    Always raised before any remote call is made.
    """


class DeclarationError(ActivityStreamError):
    """Raised when a declarations file is invalid or cannot be loaded."""


class RemoteCallError(ActivityStreamError):
    """Raised when a control-plane call fails."""

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
        code: str = "",
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.code = code


class NotFoundError(RemoteCallError):
    """Raised when the target cluster does not exist."""


class TransientConfigError(RemoteCallError):
    """Raised when the cluster is not ready for activity streams yet.

    The start call is retried on this error within the create timeout.
    """


class QueryError(ActivityStreamError):
    """Raised when the status fetch fails while waiting for a state."""

    def __init__(self, identifier: str, message: str) -> None:
        super().__init__(
            f"error refreshing activity stream status for {identifier}: {message}"
        )
        self.identifier = identifier


class UnexpectedStateError(ActivityStreamError):
    """Raised when the observed status is neither pending nor target."""

    def __init__(
        self,
        identifier: str,
        status: str,
        expected: Iterable[str],
    ) -> None:
        self.identifier = identifier
        self.status = status
        self.expected = sorted(expected)
        super().__init__(
            f"unexpected activity stream status {status!r} for {identifier}, "
            f"wanted one of {self.expected}"
        )


class WaitTimeoutError(ActivityStreamError, TimeoutError):
    """Raised when the target status was not observed within the timeout."""

    def __init__(
        self,
        identifier: str,
        *,
        timeout: float,
        elapsed: float,
        last_status: str | None,
        target: Iterable[str],
    ) -> None:
        self.identifier = identifier
        self.timeout = timeout
        self.elapsed = elapsed
        self.last_status = last_status
        self.target = sorted(target)
        super().__init__(
            f"timeout while waiting for activity stream {identifier} to become "
            f"{'/'.join(self.target)} (last status: {last_status or 'unknown'}, "
            f"waited {elapsed:.0f}s of {timeout:.0f}s)"
        )


class UpdateError(ActivityStreamError):
    """Raised when a stop-then-start update fails.

    ``phase`` names the step that failed and ``completed`` the steps that
    finished before it; the underlying error is chained as ``__cause__``.
    """

    def __init__(
        self,
        phase: UpdatePhase,
        identifier: str,
        message: str,
        completed: list[UpdatePhase] | None = None,
    ) -> None:
        super().__init__(
            f"update of activity stream {identifier} failed during {phase}: {message}"
        )
        self.phase = phase
        self.identifier = identifier
        self.completed = list(completed or [])
