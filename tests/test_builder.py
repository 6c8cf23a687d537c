"""Tests for the fluent service builder."""

import pytest

from api_stack.builder import ServiceBuilder, ZoneSelector
from api_stack.errors import ConfigurationError
from api_stack.models import (
    CapacityMixture,
    ContainerImageConfig,
    ImportZone,
    RegistryImage,
    ScalerConfig,
    ScalingMetric,
    ZoneCreation,
    ZoneImport,
)

from .conftest import docker_down


@pytest.fixture
def base() -> ServiceBuilder:
    return (
        ServiceBuilder("us-east-1", "orders-api", "OrdersApiStack")
        .reservations(256, 512)
        .api_container("api", 8080, ContainerImageConfig(registry="example/api"))
        .task_scale(2, 5, 1)
    )


class TestServiceBuilder:
    def test_build_assembles_config(self, base):
        config = (
            base.toggle_features(use_logging=True, use_all_azs=False)
            .cluster("orders")
            .capacity(2, 1)
            .attach_existing(network_id="vpc-1")
            .build()
        )

        assert config.service_name == "orders-api"
        assert config.region == "us-east-1"
        assert config.stack_id == "OrdersApiStack"
        assert config.cpu_reservation == 256
        assert config.memory_reservation == 512
        assert config.cluster_name == "orders"
        assert config.use_logging is True
        assert config.capacity_mixture == CapacityMixture(spot=2, ondemand=1)
        assert config.attach_existing.network_id == "vpc-1"
        assert config.container.port == 8080
        assert (config.scaling.desired_count, config.scaling.max_count, config.scaling.min_count) == (
            2,
            5,
            1,
        )

    def test_unset_fields_stay_unset(self, base):
        config = base.build()
        assert config.use_logging is None
        assert config.cluster_name is None
        assert config.capacity_mixture is None
        assert config.cloudfront is None

    def test_scaling_policies_are_appended(self, base):
        config = (
            base.add_scaling_policy(ScalingMetric.CPU)
            .add_scaling_policy(ScalingMetric.MEMORY, 70, 300, 60)
            .build()
        )

        assert [p.metric for p in config.scaling.policies] == [
            ScalingMetric.CPU,
            ScalingMetric.MEMORY,
        ]
        assert config.scaling.policies[0].scaling is None
        assert config.scaling.policies[1].scaling == ScalerConfig(70, 300, 60)

    def test_request_count_only_keeps_default_thresholds(self, base):
        config = base.add_scaling_policy(ScalingMetric.REQUEST_COUNT, request_count=300).build()
        assert config.scaling.policies[0].scaling == ScalerConfig(request_count_scaler=300)

    def test_setters_do_not_alias(self, base):
        cpu = base.add_scaling_policy(ScalingMetric.CPU)
        mem = base.add_scaling_policy(ScalingMetric.MEMORY)

        assert base.build().scaling.policies == []
        assert [p.metric for p in cpu.build().scaling.policies] == [ScalingMetric.CPU]
        assert [p.metric for p in mem.build().scaling.policies] == [ScalingMetric.MEMORY]

    def test_scheduled_jobs(self, base):
        config = base.add_scheduled_job(
            "cleanup", "index.handler", "rate(1 day)", "python3.11", inline="x = 1"
        ).build()

        (job,) = config.jobs
        assert job.name == "cleanup"
        assert job.source.inline == "x = 1"
        assert job.source.from_bucket is None


class TestZoneSelector:
    def test_add_cloudfront_returns_selector(self, base):
        selector = base.add_cloudfront("api.example.com")
        assert isinstance(selector, ZoneSelector)
        assert not hasattr(selector, "build")

    def test_external_zone(self, base):
        config = (
            base.add_cloudfront("api.example.com", "arn:cert")
            .use_external_zone("example.com", "Z123")
            .build()
        )

        assert config.cloudfront.domain_name == "api.example.com"
        assert config.cloudfront.certificate_arn == "arn:cert"
        assert config.cloudfront.external_zone == ZoneImport("example.com", "Z123")
        assert config.cloudfront.new_zone is None

    def test_new_zone(self, base):
        config = base.add_cloudfront("api.example.com").new_zone("example.com").build()
        assert config.cloudfront.new_zone == ZoneCreation("example.com")
        assert config.cloudfront.external_zone is None

    def test_readding_cloudfront_replaces_zone_choice(self, base):
        builder = base.add_cloudfront("a.example.com").new_zone("example.com")
        config = builder.add_cloudfront("b.example.com").use_external_zone("example.com", "Z1").build()

        assert config.cloudfront.domain_name == "b.example.com"
        assert config.cloudfront.new_zone is None


class TestFinalize:
    def test_provisions_resolved_plan(self, base, backend):
        builder = (
            base.add_scaling_policy(ScalingMetric.CPU)
            .add_cloudfront("api.example.com", "arn:aws:acm:us-east-1:123:certificate/abc")
            .use_external_zone("example.com", "Z123")
        )

        plan = builder.finalize(backend, toolchain_check=docker_down)

        assert backend.plans == [plan]
        assert plan.image == RegistryImage("example/api")
        assert plan.cdn.zone == ImportZone("example.com", "Z123")

    def test_invalid_definition_never_reaches_backend(self, base, backend):
        builder = base.add_scaling_policy(ScalingMetric.REQUEST_COUNT)

        with pytest.raises(ConfigurationError):
            builder.finalize(backend, toolchain_check=docker_down)

        assert backend.plans == []

    def test_missing_container_fails(self, backend):
        builder = ServiceBuilder("us-east-1", "bare", "Bare").reservations(256, 512)
        with pytest.raises(ConfigurationError, match="no usable image source"):
            builder.finalize(backend, toolchain_check=docker_down)
        assert backend.plans == []
