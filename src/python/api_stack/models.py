"""Data models for api_stack."""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Union

from .consts import (
    DEFAULT_SCALE_IN_COOLDOWN_SECONDS,
    DEFAULT_SCALE_OUT_COOLDOWN_SECONDS,
    DEFAULT_TARGET_UTILIZATION_PERCENT,
)


# ---------------------------------------------------------------------------
# Service definition (operator input)
# ---------------------------------------------------------------------------


@dataclass
class CapacityMixture:
    """Fargate spot / on-demand weighting."""

    spot: int
    ondemand: int


@dataclass
class ExistingResourceSelection:
    """Identifiers of existing resources to attach instead of creating."""

    network_id: Optional[str] = None  # e.g., "vpc-0abc..."
    cluster_id: Optional[str] = None  # cluster name


@dataclass
class ContainerImageConfig:
    """Where the API container image comes from."""

    local: Optional[str] = None  # build context relative to the project root
    registry: Optional[str] = None  # e.g., "example/api:1.2"


@dataclass
class ContainerConfig:
    """API container definition."""

    image: ContainerImageConfig
    name: Optional[str] = None
    port: Optional[int] = None
    essential: Optional[bool] = None
    # Mapping, or a JSON object serialized as text
    envs: Optional[Union[str, dict[str, str]]] = None


class ScalingMetric(str, Enum):
    """Metric a scaling policy tracks."""

    CPU = "cpu"
    MEMORY = "memory"
    REQUEST_COUNT = "request_count"


@dataclass
class ScalerConfig:
    """Target tracking thresholds for a scaling policy."""

    target_utilization_percent: int = DEFAULT_TARGET_UTILIZATION_PERCENT
    scale_in_cooldown_seconds: int = DEFAULT_SCALE_IN_COOLDOWN_SECONDS
    scale_out_cooldown_seconds: int = DEFAULT_SCALE_OUT_COOLDOWN_SECONDS
    request_count_scaler: Optional[int] = None


@dataclass
class ScalingPolicy:
    """Abstract scaling policy: a metric plus optional thresholds."""

    metric: ScalingMetric
    scaling: Optional[ScalerConfig] = None


@dataclass
class ScalingConfig:
    """Task count bounds and scaling policies."""

    desired_count: int
    max_count: int
    min_count: int
    policies: list[ScalingPolicy] = field(default_factory=list)


@dataclass
class ZoneImport:
    """An existing Route 53 hosted zone."""

    zone_name: str
    zone_id: str


@dataclass
class ZoneCreation:
    """A Route 53 hosted zone to create."""

    zone_name: str


@dataclass
class CloudfrontConfig:
    """CloudFront distribution in front of the API load balancer."""

    domain_name: str
    certificate_arn: Optional[str] = None
    external_zone: Optional[ZoneImport] = None
    new_zone: Optional[ZoneCreation] = None


@dataclass
class JobCodeSource:
    """Code source selector for a scheduled job. Exactly one field is set."""

    local: Optional[str] = None  # directory or archive relative to the project root
    local_image: Optional[str] = None  # image build context relative to the project root
    from_bucket: Optional[str] = None  # e.g., "s3://bucket/jobs/handler.zip"
    ecr_image: Optional[str] = None  # e.g., "123.dkr.ecr.us-east-1.amazonaws.com/jobs:1"
    inline: Optional[str] = None  # literal source code


@dataclass
class ScheduledJob:
    """A function run on a schedule."""

    name: str
    entrypoint: str  # e.g., "index.handler"
    schedule: str  # e.g., "rate(15 minutes)"
    runtime: str  # e.g., "python3.11"
    source: JobCodeSource = field(default_factory=JobCodeSource)


@dataclass
class ServiceConfig:
    """A full service definition. Unset optional fields are None."""

    service_name: str
    region: str
    stack_id: str
    container: ContainerConfig
    scaling: ScalingConfig
    cpu_reservation: int
    memory_reservation: int  # MiB
    capacity_mixture: Optional[CapacityMixture] = None
    attach_existing: Optional[ExistingResourceSelection] = None
    cloudfront: Optional[CloudfrontConfig] = None
    jobs: list[ScheduledJob] = field(default_factory=list)
    cluster_name: Optional[str] = None
    use_logging: Optional[bool] = None
    use_all_azs: Optional[bool] = None


# ---------------------------------------------------------------------------
# Resolved plan (engine output)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LocalBuildImage:
    """Image built from a local context directory."""

    path: str  # normalized, e.g., "/api/"
    context: str  # absolute build context


@dataclass(frozen=True)
class RegistryImage:
    """Image pulled from a registry."""

    reference: str


ResolvedImage = Union[LocalBuildImage, RegistryImage]


class CodeSourceKind(str, Enum):
    """Strategy a job's code was resolved with."""

    LOCAL = "local"
    LOCAL_IMAGE = "local_image"
    BUCKET = "from_bucket"
    ECR_IMAGE = "ecr_image"
    INLINE = "inline"


@dataclass(frozen=True)
class LocalCode:
    path: str
    strategy: ClassVar[CodeSourceKind] = CodeSourceKind.LOCAL


@dataclass(frozen=True)
class LocalImageCode:
    path: str
    strategy: ClassVar[CodeSourceKind] = CodeSourceKind.LOCAL_IMAGE


@dataclass(frozen=True)
class BucketCode:
    bucket: str
    key: str
    strategy: ClassVar[CodeSourceKind] = CodeSourceKind.BUCKET


@dataclass(frozen=True)
class RegistryImageCode:
    reference: str
    strategy: ClassVar[CodeSourceKind] = CodeSourceKind.ECR_IMAGE


@dataclass(frozen=True)
class InlineCode:
    code: str
    strategy: ClassVar[CodeSourceKind] = CodeSourceKind.INLINE


ResolvedJobCode = Union[LocalCode, LocalImageCode, BucketCode, RegistryImageCode, InlineCode]


@dataclass(frozen=True)
class ResolvedJob:
    name: str
    entrypoint: str
    schedule: str
    runtime: str
    code: ResolvedJobCode


@dataclass(frozen=True)
class ScalableTarget:
    """Capacity bounds of the service's desired task count."""

    min_capacity: int
    max_capacity: int


@dataclass(frozen=True)
class ScalingAction:
    """One target tracking rule to register against the scalable target."""

    name: str
    metric: ScalingMetric
    target_utilization_percent: int
    scale_in_cooldown_seconds: int
    scale_out_cooldown_seconds: int
    requests_per_target: Optional[int] = None
    target_group: Optional[str] = None


@dataclass(frozen=True)
class AttachNetwork:
    network_id: str


@dataclass(frozen=True)
class CreateNetwork:
    max_azs: int


@dataclass(frozen=True)
class AttachCluster:
    cluster_id: str


@dataclass(frozen=True)
class CreateCluster:
    name: str
    max_azs: int


@dataclass(frozen=True)
class ImportZone:
    zone_name: str
    zone_id: str


@dataclass(frozen=True)
class CreateZone:
    zone_name: str


ZoneStrategy = Union[ImportZone, CreateZone]


@dataclass(frozen=True)
class AliasRecord:
    record_type: str  # "A" or "AAAA"
    name: str


@dataclass(frozen=True)
class CdnPlan:
    domain_name: str
    certificate_arn: str
    zone: ZoneStrategy
    records: tuple[AliasRecord, ...]


@dataclass(frozen=True)
class ResolvedPlan:
    """Everything the provisioning backend needs for one service."""

    config: ServiceConfig
    image: ResolvedImage
    jobs: tuple[ResolvedJob, ...]
    scalable_target: ScalableTarget
    scaling_actions: tuple[ScalingAction, ...]
    network: Union[AttachNetwork, CreateNetwork]
    cluster: Union[AttachCluster, CreateCluster]
    cdn: Optional[CdnPlan] = None
