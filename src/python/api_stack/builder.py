"""Fluent builder for service definitions.

Every setter returns a new builder, so a shared prefix can be extended
into several independent definitions:

    base = ServiceBuilder("us-east-1", "orders", "OrdersStack").reservations(256, 512)
    cpu = base.add_scaling_policy(ScalingMetric.CPU)
    mem = base.add_scaling_policy(ScalingMetric.MEMORY)  # cpu is unaffected
"""

from dataclasses import dataclass, replace
from typing import Optional, Union

from .models import (
    CapacityMixture,
    CloudfrontConfig,
    ContainerConfig,
    ContainerImageConfig,
    ExistingResourceSelection,
    JobCodeSource,
    ResolvedPlan,
    ScalerConfig,
    ScalingConfig,
    ScalingMetric,
    ScalingPolicy,
    ScheduledJob,
    ServiceConfig,
    ZoneCreation,
    ZoneImport,
)
from .planner import ProvisioningBackend, resolve_plan


@dataclass(frozen=True)
class ServiceBuilder:
    """Immutable draft of a service definition."""

    region: str
    service_name: str
    stack_id: str
    cluster_name: Optional[str] = None
    use_logging: Optional[bool] = None
    use_all_azs: Optional[bool] = None
    capacity_mixture: Optional[CapacityMixture] = None
    cpu_reservation: int = 0
    memory_reservation: int = 0
    attachments: Optional[ExistingResourceSelection] = None
    container_config: Optional[ContainerConfig] = None
    desired_count: int = 1
    max_count: int = 1
    min_count: int = 1
    scaling_policies: tuple[ScalingPolicy, ...] = ()
    cloudfront_config: Optional[CloudfrontConfig] = None
    jobs: tuple[ScheduledJob, ...] = ()

    def toggle_features(self, use_logging: bool, use_all_azs: bool) -> "ServiceBuilder":
        return replace(self, use_logging=use_logging, use_all_azs=use_all_azs)

    def cluster(self, name: str) -> "ServiceBuilder":
        return replace(self, cluster_name=name)

    def capacity(self, spot: int, ondemand: int) -> "ServiceBuilder":
        return replace(self, capacity_mixture=CapacityMixture(spot=spot, ondemand=ondemand))

    def reservations(self, cpu: int, memory: int) -> "ServiceBuilder":
        return replace(self, cpu_reservation=cpu, memory_reservation=memory)

    def attach_existing(
        self, network_id: Optional[str] = None, cluster_id: Optional[str] = None
    ) -> "ServiceBuilder":
        return replace(
            self,
            attachments=ExistingResourceSelection(network_id=network_id, cluster_id=cluster_id),
        )

    def api_container(
        self,
        name: str,
        port: int,
        image: ContainerImageConfig,
        envs: Optional[Union[str, dict[str, str]]] = None,
        essential: Optional[bool] = None,
    ) -> "ServiceBuilder":
        container = ContainerConfig(
            image=image, name=name, port=port, essential=essential, envs=envs
        )
        return replace(self, container_config=container)

    def task_scale(self, desired_count: int, max_count: int, min_count: int) -> "ServiceBuilder":
        return replace(
            self, desired_count=desired_count, max_count=max_count, min_count=min_count
        )

    def add_scaling_policy(
        self,
        metric: ScalingMetric,
        utilization_percent: Optional[int] = None,
        scale_in_cooldown: Optional[int] = None,
        scale_out_cooldown: Optional[int] = None,
        request_count: Optional[int] = None,
    ) -> "ServiceBuilder":
        """Append a scaling policy. Omitted thresholds fall back to defaults."""
        overrides = {
            key: value
            for key, value in (
                ("target_utilization_percent", utilization_percent),
                ("scale_in_cooldown_seconds", scale_in_cooldown),
                ("scale_out_cooldown_seconds", scale_out_cooldown),
                ("request_count_scaler", request_count),
            )
            if value is not None
        }
        policy = ScalingPolicy(
            metric=metric, scaling=ScalerConfig(**overrides) if overrides else None
        )
        return replace(self, scaling_policies=self.scaling_policies + (policy,))

    def add_cloudfront(self, domain: str, certificate_arn: Optional[str] = None) -> "ZoneSelector":
        """Configure the CDN; the returned selector picks its hosted zone."""
        return ZoneSelector(
            builder=self,
            cloudfront=CloudfrontConfig(domain_name=domain, certificate_arn=certificate_arn),
        )

    def add_scheduled_job(
        self,
        name: str,
        entrypoint: str,
        schedule: str,
        runtime: str,
        *,
        local: Optional[str] = None,
        local_image: Optional[str] = None,
        from_bucket: Optional[str] = None,
        ecr_image: Optional[str] = None,
        inline: Optional[str] = None,
    ) -> "ServiceBuilder":
        job = ScheduledJob(
            name=name,
            entrypoint=entrypoint,
            schedule=schedule,
            runtime=runtime,
            source=JobCodeSource(
                local=local,
                local_image=local_image,
                from_bucket=from_bucket,
                ecr_image=ecr_image,
                inline=inline,
            ),
        )
        return replace(self, jobs=self.jobs + (job,))

    def build(self) -> ServiceConfig:
        """Assemble the accumulated fields into a ServiceConfig."""
        return ServiceConfig(
            service_name=self.service_name,
            region=self.region,
            stack_id=self.stack_id,
            container=self.container_config or ContainerConfig(image=ContainerImageConfig()),
            scaling=ScalingConfig(
                desired_count=self.desired_count,
                max_count=self.max_count,
                min_count=self.min_count,
                policies=list(self.scaling_policies),
            ),
            cpu_reservation=self.cpu_reservation,
            memory_reservation=self.memory_reservation,
            capacity_mixture=self.capacity_mixture,
            attach_existing=self.attachments,
            cloudfront=self.cloudfront_config,
            jobs=list(self.jobs),
            cluster_name=self.cluster_name,
            use_logging=self.use_logging,
            use_all_azs=self.use_all_azs,
        )

    def finalize(self, backend: ProvisioningBackend, **resolve_kwargs) -> ResolvedPlan:
        """Resolve the definition and hand the plan to the backend.

        Nothing reaches the backend unless resolution succeeds.

        Args:
            backend: Provisioning backend receiving the plan
            **resolve_kwargs: Passed through to resolve_plan (toolchain_check, project_root)

        Returns:
            The plan that was provisioned
        """
        plan = resolve_plan(self.build(), **resolve_kwargs)
        backend.provision(plan)
        return plan


@dataclass(frozen=True)
class ZoneSelector:
    """Picks exactly one hosted zone strategy for a CDN config."""

    builder: ServiceBuilder
    cloudfront: CloudfrontConfig

    def use_external_zone(self, zone_name: str, zone_id: str) -> ServiceBuilder:
        cloudfront = replace(
            self.cloudfront, external_zone=ZoneImport(zone_name=zone_name, zone_id=zone_id)
        )
        return replace(self.builder, cloudfront_config=cloudfront)

    def new_zone(self, zone_name: str) -> ServiceBuilder:
        cloudfront = replace(self.cloudfront, new_zone=ZoneCreation(zone_name=zone_name))
        return replace(self.builder, cloudfront_config=cloudfront)
