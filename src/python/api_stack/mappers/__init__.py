"""Resource mappers for converting resolved plans to Pulumi resources."""

from .cdn import create_cdn
from .cluster import create_cluster
from .jobs import create_scheduled_job
from .network import create_network
from .scaling import register_scaling_actions
from .service import create_api_service

__all__ = [
    "create_api_service",
    "create_cdn",
    "create_cluster",
    "create_network",
    "create_scheduled_job",
    "register_scaling_actions",
]
