"""Control-plane clients for activity stream reconciliation.

Clients: RdsControlPlaneClient (boto3), InMemoryControlPlane (simulated).
"""

from rds_activity_stream.client.base import ControlPlaneClient
from rds_activity_stream.client.memory import InMemoryControlPlane
from rds_activity_stream.client.rds import RdsControlPlaneClient

__all__ = [
    "ControlPlaneClient",
    "InMemoryControlPlane",
    "RdsControlPlaneClient",
]
