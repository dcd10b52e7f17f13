"""Core data models for RDS activity streams.

Defines the schemas for:
- The activity stream record (desired and observed configuration)
- Observed cluster state returned by the control plane
- Start/stop acknowledgements
- Timeouts and polling settings
- Update and plan outcomes
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from rds_activity_stream.errors import ValidationError

# --- Enums ---


class StreamMode(enum.StrEnum):
    SYNC = "sync"
    ASYNC = "async"


class StreamStatus(enum.StrEnum):
    STARTING = "starting"
    STARTED = "started"
    STOPPING = "stopping"
    STOPPED = "stopped"


class UpdatePhase(enum.StrEnum):
    TEARDOWN = "teardown"
    RESTART = "restart"
    REFRESH = "refresh"


class PlanAction(enum.StrEnum):
    CREATE = "create"
    REPLACE = "replace"
    NOOP = "noop"
    DELETE = "delete"


# --- Activity Stream Record ---

FORCE_NEW_FIELDS: tuple[str, ...] = (
    "resource_arn",
    "apply_immediately",
    "kms_key_id",
    "mode",
)


class ActivityStreamConfig(BaseModel):
    """The desired/observed record for one cluster's activity stream.

    ``resource_arn`` doubles as the record identity. ``apply_immediately``
    is write-only: the control plane never reports it back.
    ``kinesis_stream_name`` is computed by the remote side after a start.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    resource_arn: str = Field(..., alias="arn", min_length=1)
    apply_immediately: bool = False
    kms_key_id: str = Field(..., min_length=1)
    mode: StreamMode
    kinesis_stream_name: str | None = None

    @property
    def id(self) -> str:
        return self.resource_arn

    def changed_fields(self, other: ActivityStreamConfig) -> list[str]:
        """Return the force-new fields whose values differ from *other*."""
        return [
            name for name in FORCE_NEW_FIELDS
            if getattr(self, name) != getattr(other, name)
        ]

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def validate_mode(value: Any) -> StreamMode:
    """Coerce *value* to a ``StreamMode`` or raise ``ValidationError``."""
    try:
        return StreamMode(value)
    except ValueError:
        allowed = ", ".join(m.value for m in StreamMode)
        raise ValidationError(
            f"expected mode to be one of [{allowed}], got {value!r}"
        ) from None


def parse_stream_config(data: dict[str, Any]) -> ActivityStreamConfig:
    """Build an ``ActivityStreamConfig`` from user-supplied data.

    The computed ``kinesis_stream_name`` is never accepted from the caller.
    Raises ``ValidationError`` on any schema problem.
    """
    if not isinstance(data, dict):
        raise ValidationError(
            f"expected a mapping for an activity stream, got {type(data).__name__}"
        )
    if "kinesis_stream_name" in data:
        raise ValidationError("kinesis_stream_name is computed and cannot be set")
    if "mode" in data:
        validate_mode(data["mode"])
    try:
        return ActivityStreamConfig(**data)
    except (PydanticValidationError, TypeError) as e:
        raise ValidationError(f"invalid activity stream: {e}") from e


# --- Observed Remote State ---


class ClusterInfo(BaseModel):
    """A database cluster as reported by the control plane."""

    identifier: str
    arn: str
    status: str | None = None
    activity_stream_status: str | None = None
    activity_stream_mode: str | None = None
    activity_stream_kms_key_id: str | None = None
    activity_stream_kinesis_stream_name: str | None = None

    def matches(self, identifier: str) -> bool:
        return identifier in (self.arn, self.identifier)


class StreamStartInfo(BaseModel):
    """Acknowledgement returned by a start or stop call."""

    kms_key_id: str | None = None
    kinesis_stream_name: str | None = None
    status: str | None = None
    mode: str | None = None
    apply_immediately: bool | None = None


# --- Timeouts & Polling ---

DEFAULT_CREATE_TIMEOUT = 120 * 60.0
DEFAULT_DELETE_TIMEOUT = 120 * 60.0
DEFAULT_DELAY = 5.0
DEFAULT_MIN_TIMEOUT = 3.0


class ResourceTimeouts(BaseModel):
    """Maximum convergence windows, in seconds."""

    create: float = Field(default=DEFAULT_CREATE_TIMEOUT, gt=0)
    delete: float = Field(default=DEFAULT_DELETE_TIMEOUT, gt=0)


class WaitSettings(BaseModel):
    """Fixed-interval polling settings, in seconds."""

    delay: float = Field(default=DEFAULT_DELAY, ge=0)
    min_timeout: float = Field(default=DEFAULT_MIN_TIMEOUT, gt=0)
    poll_interval: float = Field(default=0.0, ge=0)

    @property
    def interval(self) -> float:
        return max(self.poll_interval, self.min_timeout)


# --- Outcomes ---


class UpdateResult(BaseModel):
    """Outcome of an update: which phases ran and the resulting record."""

    record: ActivityStreamConfig | None = None
    replaced: bool = False
    changed: list[str] = Field(default_factory=list)
    phases: list[UpdatePhase] = Field(default_factory=list)


class StreamPlan(BaseModel):
    """What ``apply`` would do for one declared stream."""

    action: PlanAction
    desired: ActivityStreamConfig | None = None
    current: ActivityStreamConfig | None = None
    changed: list[str] = Field(default_factory=list)

    @property
    def identifier(self) -> str:
        record = self.desired or self.current
        return record.id if record is not None else ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "arn": self.identifier,
            "changed": self.changed,
            "desired": self.desired.to_dict() if self.desired else None,
            "current": self.current.to_dict() if self.current else None,
        }
