"""Declarative API service definitions resolved into provisioning plans."""

from .builder import ServiceBuilder, ZoneSelector
from .errors import ConfigurationError, ParseError, ToolchainError
from .models import ContainerImageConfig, ResolvedPlan, ScalingMetric, ServiceConfig
from .planner import ProvisioningBackend, resolve_plan

__all__ = [
    "ConfigurationError",
    "ContainerImageConfig",
    "ParseError",
    "ToolchainError",
    "ProvisioningBackend",
    "ResolvedPlan",
    "ScalingMetric",
    "ServiceBuilder",
    "ServiceConfig",
    "ZoneSelector",
    "resolve_plan",
]
