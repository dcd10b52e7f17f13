"""RdsControlPlaneClient — activity stream calls via boto3.

Uses the AWS boto3 SDK to start, stop and describe Aurora cluster
activity streams. Supports an explicit credential payload (access key,
secret, session token), a named profile, or falls back to boto3's
default credential chain.

Requires: ``pip install rds-activity-stream[aws]``
"""

from __future__ import annotations

import logging
from typing import Any

from rds_activity_stream.errors import (
    NotFoundError,
    RemoteCallError,
    TransientConfigError,
)
from rds_activity_stream.models import ClusterInfo, StreamMode, StreamStartInfo

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"DBClusterNotFoundFault", "ResourceNotFoundFault"})

TRANSIENT_CONFIG_CODE = "InvalidParameterCombination"
TRANSIENT_CONFIG_MESSAGE = "Activity Streams is not supported for this configuration"


def _check_boto3_available() -> None:
    """Raise ImportError with helpful message if boto3 is not installed."""
    try:
        import boto3  # noqa: F401
    except ImportError:
        raise ImportError(
            "The 'boto3' package is required for RdsControlPlaneClient. "
            "Install it with: pip install rds-activity-stream[aws]"
        ) from None


def is_aws_error(exc: BaseException, code: str, message: str = "") -> bool:
    """True if *exc* is a botocore ClientError with *code* and *message* in its text."""
    from botocore.exceptions import ClientError

    if not isinstance(exc, ClientError):
        return False
    error = exc.response.get("Error", {})
    return error.get("Code") == code and message in error.get("Message", "")


def translate_error(exc: Exception, operation: str, resource_arn: str) -> RemoteCallError:
    """Map a boto3/botocore exception onto the activity stream error taxonomy.

    Anything that is not a botocore error is re-raised unchanged.
    """
    from botocore.exceptions import BotoCoreError, ClientError

    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code", "")
        message = error.get("Message", "") or str(exc)
        if code in NOT_FOUND_CODES:
            return NotFoundError(
                f"RDS cluster ({resource_arn}) not found: {message}",
                operation=operation,
                code=code,
            )
        if is_aws_error(exc, TRANSIENT_CONFIG_CODE, TRANSIENT_CONFIG_MESSAGE):
            return TransientConfigError(
                f"{operation} rejected for {resource_arn}: {message}",
                operation=operation,
                code=code,
            )
        return RemoteCallError(
            f"AWS API error during {operation} for {resource_arn}: {message}",
            operation=operation,
            code=code,
        )
    if isinstance(exc, BotoCoreError):
        return RemoteCallError(
            f"AWS client error during {operation} for {resource_arn}: {exc}",
            operation=operation,
        )
    raise exc


class RdsControlPlaneClient:
    """Control-plane client that uses boto3 to call the RDS API.

    Requires: ``pip install rds-activity-stream[aws]``

    Credential handling:
    - If ``credentials`` has ``"access_key_id"`` and ``"secret_access_key"``,
      uses explicit credentials (optionally with ``"session_token"``)
    - If ``credentials`` has ``"profile_name"``, uses that AWS profile
    - Otherwise falls back to *profile*, then boto3's default credential chain
    """

    def __init__(
        self,
        region: str | None = None,
        profile: str | None = None,
        endpoint_url: str | None = None,
        credentials: dict[str, Any] | None = None,
    ) -> None:
        _check_boto3_available()
        self._region = region
        self._profile = profile
        self._endpoint_url = endpoint_url
        self._credentials = credentials
        self._client: Any = None

    def start_stream(
        self,
        resource_arn: str,
        kms_key_id: str,
        mode: StreamMode,
        apply_immediately: bool,
    ) -> StreamStartInfo:
        kwargs = {
            "ResourceArn": resource_arn,
            "Mode": str(mode),
            "KmsKeyId": kms_key_id,
            "ApplyImmediately": apply_immediately,
        }
        logger.debug("RDS cluster start activity stream input: %s", kwargs)
        try:
            response = self._get_client().start_activity_stream(**kwargs)
        except Exception as exc:
            raise translate_error(exc, "StartActivityStream", resource_arn) from exc
        logger.debug("RDS cluster start activity stream response: %s", response)
        return _stream_info_from_response(response)

    def stop_stream(
        self,
        resource_arn: str,
        apply_immediately: bool,
    ) -> StreamStartInfo:
        kwargs = {
            "ResourceArn": resource_arn,
            "ApplyImmediately": apply_immediately,
        }
        logger.debug("RDS cluster stop activity stream input: %s", kwargs)
        try:
            response = self._get_client().stop_activity_stream(**kwargs)
        except Exception as exc:
            raise translate_error(exc, "StopActivityStream", resource_arn) from exc
        return _stream_info_from_response(response)

    def describe_resource(self, resource_arn: str) -> list[ClusterInfo]:
        logger.debug("Describing RDS cluster: %s", resource_arn)
        try:
            response = self._get_client().describe_db_clusters(
                DBClusterIdentifier=resource_arn,
            )
        except Exception as exc:
            raise translate_error(exc, "DescribeDBClusters", resource_arn) from exc
        return [
            _cluster_from_response(cluster)
            for cluster in response.get("DBClusters") or []
        ]

    # --- Private: session/client setup ---

    def _get_boto3_session(self) -> Any:
        """Build a boto3 Session from credentials or constructor config."""
        import boto3

        kwargs: dict[str, Any] = {}

        if self._region:
            kwargs["region_name"] = self._region

        if self._credentials is not None:
            payload = self._credentials
            if "access_key_id" in payload:
                kwargs["aws_access_key_id"] = payload["access_key_id"]
                kwargs["aws_secret_access_key"] = payload["secret_access_key"]
                if "session_token" in payload:
                    kwargs["aws_session_token"] = payload["session_token"]
                return boto3.Session(**kwargs)
            if "profile_name" in payload:
                kwargs["profile_name"] = payload["profile_name"]
                return boto3.Session(**kwargs)

        if self._profile:
            kwargs["profile_name"] = self._profile

        return boto3.Session(**kwargs)

    def _get_client(self) -> Any:
        """Get (and cache) the boto3 RDS client."""
        if self._client is None:
            session = self._get_boto3_session()
            kwargs: dict[str, Any] = {}
            if self._endpoint_url:
                kwargs["endpoint_url"] = self._endpoint_url
            self._client = session.client("rds", **kwargs)
        return self._client


# --- Private: response extractors ---


def _stream_info_from_response(response: dict[str, Any]) -> StreamStartInfo:
    return StreamStartInfo(
        kms_key_id=response.get("KmsKeyId"),
        kinesis_stream_name=response.get("KinesisStreamName"),
        status=response.get("Status"),
        mode=response.get("Mode"),
        apply_immediately=response.get("ApplyImmediately"),
    )


def _cluster_from_response(cluster: dict[str, Any]) -> ClusterInfo:
    return ClusterInfo(
        identifier=cluster.get("DBClusterIdentifier", ""),
        arn=cluster.get("DBClusterArn", ""),
        status=cluster.get("Status"),
        activity_stream_status=cluster.get("ActivityStreamStatus"),
        activity_stream_mode=cluster.get("ActivityStreamMode"),
        activity_stream_kms_key_id=cluster.get("ActivityStreamKmsKeyId"),
        activity_stream_kinesis_stream_name=cluster.get(
            "ActivityStreamKinesisStreamName"
        ),
    )
