"""Config file loading and auto-discovery for rds-activity-stream.

Searches for ``activity-stream.yaml`` in the current directory and parent
directories, parses it, and resolves the declarations path against the
config file's location.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from rds_activity_stream.models import ResourceTimeouts, WaitSettings

CONFIG_FILENAME = "activity-stream.yaml"


@dataclass(frozen=True)
class ProjectConfig:
    """Parsed rds-activity-stream project configuration."""

    config_path: Path | None = None
    region: str | None = None
    profile: str | None = None
    endpoint_url: str | None = None
    declarations: str | None = None
    timeouts: ResourceTimeouts = field(default_factory=ResourceTimeouts)
    wait: WaitSettings = field(default_factory=WaitSettings)


def find_config(start: Path | None = None) -> Path | None:
    """Walk from *start* (default ``cwd()``) up to the filesystem root.

    Returns the first ``activity-stream.yaml`` found, or ``None``.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    path: str | Path | None = None,
    *,
    auto_discover: bool = True,
) -> ProjectConfig:
    """Load an rds-activity-stream config file.

    Resolution order:

    1. Explicit *path* (error if it doesn't exist).
    2. Auto-discover by walking parent directories.
    3. Return an empty ``ProjectConfig`` (all defaults).
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).resolve()
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)
    elif auto_discover:
        config_path = find_config()

    if config_path is None:
        return ProjectConfig()

    return _parse_config(config_path)


def _parse_config(config_path: Path) -> ProjectConfig:
    """Read and parse a YAML config file, resolving relative paths."""
    text = config_path.read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}

    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {config_path}, got {type(data).__name__}"
        raise ValueError(msg)

    base = config_path.parent
    declarations = data.get("declarations")

    return ProjectConfig(
        config_path=config_path,
        region=data.get("region"),
        profile=data.get("profile"),
        endpoint_url=data.get("endpoint_url"),
        declarations=str((base / declarations).resolve()) if declarations else None,
        timeouts=_parse_timeouts(data.get("timeouts"), config_path),
        wait=WaitSettings(**_mapping(data.get("wait"), "wait", config_path)),
    )


def _parse_timeouts(raw: Any, config_path: Path) -> ResourceTimeouts:
    """Timeouts are given in minutes in the config file."""
    minutes = _mapping(raw, "timeouts", config_path)
    seconds: dict[str, float] = {}
    for key, value in minutes.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            msg = (
                f"Expected 'timeouts.{key}' to be a number of minutes in {config_path}, "
                f"got {type(value).__name__}"
            )
            raise ValueError(msg)
        seconds[key] = float(value) * 60
    return ResourceTimeouts(**seconds)


def _mapping(raw: Any, key: str, config_path: Path) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        msg = f"Expected '{key}' to be a mapping in {config_path}, got {type(raw).__name__}"
        raise ValueError(msg)
    return raw
