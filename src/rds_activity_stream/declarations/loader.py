"""Activity stream declarations loader.

Loads and validates declared activity streams from a YAML file.
Provides lookup by cluster ARN for the CLI.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from rds_activity_stream.errors import DeclarationError, ValidationError
from rds_activity_stream.models import ActivityStreamConfig, parse_stream_config


class Declarations:
    """In-memory set of declared activity streams, keyed by ARN."""

    def __init__(self, streams: list[ActivityStreamConfig]) -> None:
        self._streams: dict[str, ActivityStreamConfig] = {}
        for stream in streams:
            if stream.id in self._streams:
                raise DeclarationError(f"Duplicate activity stream for: {stream.id}")
            self._streams[stream.id] = stream

    @property
    def streams(self) -> list[ActivityStreamConfig]:
        return list(self._streams.values())

    def __len__(self) -> int:
        return len(self._streams)

    def get(self, resource_arn: str) -> ActivityStreamConfig | None:
        return self._streams.get(resource_arn)

    def get_or_raise(self, resource_arn: str) -> ActivityStreamConfig:
        stream = self._streams.get(resource_arn)
        if stream is None:
            raise DeclarationError(f"No activity stream declared for: {resource_arn}")
        return stream


def load_declarations(path: str | Path) -> Declarations:
    """Load and validate declared activity streams from a YAML file.

    The YAML file must have a top-level 'streams' key containing a list
    of activity stream definitions::

        streams:
          - arn: arn:aws:rds:us-east-1:123456789012:cluster:orders
            kms_key_id: alias/das
            mode: async
            apply_immediately: true

    Raises:
        DeclarationError: If the file cannot be read, parsed, or validated.
    """
    path = Path(path)
    if not path.exists():
        raise DeclarationError(f"Declarations file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise DeclarationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict) or "streams" not in raw:
        raise DeclarationError(f"Declarations file must have a top-level 'streams' key: {path}")

    raw_streams: Any = raw["streams"]
    if not isinstance(raw_streams, list):
        raise DeclarationError(f"'streams' must be a list: {path}")

    streams: list[ActivityStreamConfig] = []
    for i, entry in enumerate(raw_streams):
        try:
            streams.append(parse_stream_config(entry))
        except ValidationError as e:
            raise DeclarationError(f"Invalid activity stream at index {i} in {path}: {e}") from e

    return Declarations(streams)
