"""activity-stream CLI — command-line interface for rds-activity-stream.

Commands:
    plan        Show what apply would do for each declared stream
    apply       Reconcile every declared stream against RDS
    show        Read the live activity stream of a cluster
    import      Re-attach to a running activity stream by ARN
    destroy     Stop the activity stream of a cluster
    wait        Wait for an activity stream to reach a status
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn

import click

from rds_activity_stream import __version__
from rds_activity_stream.client.base import ControlPlaneClient
from rds_activity_stream.config import ProjectConfig, load_config
from rds_activity_stream.declarations.loader import Declarations, load_declarations
from rds_activity_stream.errors import ActivityStreamError
from rds_activity_stream.models import (
    ActivityStreamConfig,
    PlanAction,
    StreamPlan,
    StreamStatus,
)
from rds_activity_stream.reconciler import ActivityStreamReconciler
from rds_activity_stream.waiter.status import wait_for_started, wait_for_stopped

# --- Defaults ---

DEFAULT_DECLARATIONS = "./streams.yaml"


def _or(explicit: str | None, cfg_val: str | None, fallback: str | None) -> str | None:
    """Return first non-None value: explicit CLI flag > config > fallback."""
    return explicit or cfg_val or fallback


def _error(message: str) -> NoReturn:
    click.echo(click.style("ERROR", fg="red") + f"  {message}", err=True)
    sys.exit(1)


def _build_client(
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
) -> ControlPlaneClient:
    from rds_activity_stream.client.rds import RdsControlPlaneClient

    return RdsControlPlaneClient(
        region=region,
        profile=profile,
        endpoint_url=endpoint_url,
    )


def _build_reconciler(
    cfg: ProjectConfig,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
) -> ActivityStreamReconciler:
    try:
        client = _build_client(
            _or(region, cfg.region, None),
            _or(profile, cfg.profile, None),
            _or(endpoint_url, cfg.endpoint_url, None),
        )
    except ImportError as e:
        _error(str(e))
    return ActivityStreamReconciler(client, timeouts=cfg.timeouts, wait=cfg.wait)


def _aws_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Shared connection options for commands that talk to RDS."""
    options = [
        click.option("--region", default=None, help="AWS region"),
        click.option("--profile", default=None, help="AWS profile name"),
        click.option(
            "--endpoint-url", default=None,
            help="Override the RDS endpoint (e.g. LocalStack)",
        ),
        click.option("--json-output", is_flag=True, help="Output as JSON"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_streams(path: str | None, cfg: ProjectConfig) -> Declarations:
    resolved = _or(path, cfg.declarations, DEFAULT_DECLARATIONS)
    assert resolved is not None
    try:
        return load_declarations(Path(resolved))
    except ActivityStreamError as e:
        _error(str(e))


def _action_badge(action: PlanAction) -> str:
    color = {
        PlanAction.CREATE: "green",
        PlanAction.REPLACE: "yellow",
        PlanAction.DELETE: "red",
        PlanAction.NOOP: "cyan",
    }.get(action, "white")
    return click.style(f"[{action.value}]", fg=color, bold=True)


def _echo_record(record: ActivityStreamConfig) -> None:
    click.echo(f"  arn:                 {record.resource_arn}")
    click.echo(f"  mode:                {record.mode.value}")
    click.echo(f"  kms_key_id:          {record.kms_key_id}")
    click.echo(f"  kinesis_stream_name: {record.kinesis_stream_name or '-'}")


def _echo_plan(plan: StreamPlan) -> None:
    line = f"{_action_badge(plan.action)} {plan.identifier}"
    if plan.changed:
        line += f"  (changed: {', '.join(plan.changed)})"
    click.echo(line)


# --- Root group ---


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="Path to activity-stream.yaml")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """rds-activity-stream: manage Aurora cluster activity streams."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        cfg = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        _error(f"Error loading config: {e}")
    ctx.obj = cfg


# --- plan / apply ---


@cli.command()
@click.argument("declarations", required=False)
@_aws_options
@click.pass_obj
def plan(
    cfg: ProjectConfig,
    declarations: str | None,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    json_output: bool,
) -> None:
    """Show what apply would do for each stream in DECLARATIONS."""
    streams = _load_streams(declarations, cfg)
    reconciler = _build_reconciler(cfg, region, profile, endpoint_url)

    plans: list[StreamPlan] = []
    for desired in streams.streams:
        try:
            current = reconciler.read(desired.id, apply_immediately=desired.apply_immediately)
        except ActivityStreamError as e:
            _error(f"{desired.id}: {e}")
        plans.append(reconciler.plan(desired, current))

    if json_output:
        click.echo(json.dumps([p.to_dict() for p in plans], indent=2))
        return
    for p in plans:
        _echo_plan(p)


@cli.command()
@click.argument("declarations", required=False)
@_aws_options
@click.pass_obj
def apply(
    cfg: ProjectConfig,
    declarations: str | None,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    json_output: bool,
) -> None:
    """Reconcile every stream in DECLARATIONS against RDS."""
    streams = _load_streams(declarations, cfg)
    reconciler = _build_reconciler(cfg, region, profile, endpoint_url)

    results: list[dict[str, Any]] = []
    for desired in streams.streams:
        try:
            stream_plan, record = reconciler.apply(desired)
        except ActivityStreamError as e:
            _error(f"{desired.id}: {e}")
        results.append({
            "plan": stream_plan.to_dict(),
            "record": record.to_dict() if record else None,
        })
        if not json_output:
            _echo_plan(stream_plan)
            if record is not None:
                _echo_record(record)

    if json_output:
        click.echo(json.dumps(results, indent=2))
    else:
        click.echo("")
        click.echo(click.style(
            f"Applied {len(results)} activity stream(s).", fg="green", bold=True,
        ))


# --- show / import ---


@cli.command()
@click.argument("arn")
@_aws_options
@click.pass_obj
def show(
    cfg: ProjectConfig,
    arn: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    json_output: bool,
) -> None:
    """Read the live activity stream of the cluster ARN."""
    reconciler = _build_reconciler(cfg, region, profile, endpoint_url)
    try:
        record = reconciler.read(arn)
    except ActivityStreamError as e:
        _error(str(e))

    if record is None:
        if json_output:
            click.echo(json.dumps(None))
        else:
            click.echo(f"No running activity stream found for {arn}", err=True)
        sys.exit(1)

    if json_output:
        click.echo(json.dumps(record.to_dict(), indent=2))
    else:
        click.echo(click.style("STARTED", fg="green", bold=True) + f" — {record.id}")
        _echo_record(record)


@cli.command("import")
@click.argument("arn")
@_aws_options
@click.pass_obj
def import_stream(
    cfg: ProjectConfig,
    arn: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    json_output: bool,
) -> None:
    """Re-attach to the running activity stream of the cluster ARN."""
    reconciler = _build_reconciler(cfg, region, profile, endpoint_url)
    try:
        record = reconciler.import_state(arn)
    except ActivityStreamError as e:
        _error(str(e))

    if json_output:
        click.echo(json.dumps(record.to_dict(), indent=2))
    else:
        click.echo(click.style("IMPORTED", fg="green", bold=True) + f" — {record.id}")
        _echo_record(record)


# --- destroy / wait ---


@cli.command()
@click.argument("arn")
@click.option("--dry-run", is_flag=True, help="Only show what would be stopped")
@_aws_options
@click.pass_obj
def destroy(
    cfg: ProjectConfig,
    arn: str,
    dry_run: bool,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    json_output: bool,
) -> None:
    """Stop the activity stream of the cluster ARN."""
    reconciler = _build_reconciler(cfg, region, profile, endpoint_url)
    try:
        if dry_run:
            stream_plan = reconciler.plan(None, reconciler.read(arn))
        else:
            reconciler.delete(arn)
    except ActivityStreamError as e:
        _error(str(e))

    if dry_run:
        if json_output:
            click.echo(json.dumps(stream_plan.to_dict(), indent=2))
        else:
            _echo_plan(stream_plan)
        return

    if json_output:
        click.echo(json.dumps({"arn": arn, "status": StreamStatus.STOPPED.value}))
    else:
        click.echo(click.style("STOPPED", fg="red", bold=True) + f" — {arn}")


@cli.command()
@click.argument("arn")
@click.option(
    "--status", "target", required=True,
    type=click.Choice([StreamStatus.STARTED.value, StreamStatus.STOPPED.value]),
    help="Status to wait for",
)
@click.option(
    "--timeout", default=None, type=click.FloatRange(min=0, min_open=True),
    help="Timeout in minutes (default: the create/delete timeout)",
)
@_aws_options
@click.pass_obj
def wait(
    cfg: ProjectConfig,
    arn: str,
    target: str,
    timeout: float | None,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    json_output: bool,
) -> None:
    """Wait for the activity stream of the cluster ARN to reach a status."""
    reconciler = _build_reconciler(cfg, region, profile, endpoint_url)
    client = reconciler.client

    try:
        if target == StreamStatus.STARTED:
            seconds = timeout * 60 if timeout is not None else cfg.timeouts.create
            wait_for_started(client, arn, seconds, cfg.wait)
        else:
            seconds = timeout * 60 if timeout is not None else cfg.timeouts.delete
            wait_for_stopped(client, arn, seconds, cfg.wait)
    except ActivityStreamError as e:
        _error(str(e))

    if json_output:
        click.echo(json.dumps({"arn": arn, "status": target}))
    else:
        click.echo(click.style(target.upper(), fg="green", bold=True) + f" — {arn}")
