"""End-to-end tests for the resolution pipeline."""

import dataclasses

import pytest

from api_stack.errors import ConfigurationError, ParseError
from api_stack.models import (
    BucketCode,
    CapacityMixture,
    CloudfrontConfig,
    ContainerConfig,
    ContainerImageConfig,
    CreateCluster,
    CreateNetwork,
    JobCodeSource,
    RegistryImage,
    ScalerConfig,
    ScalingConfig,
    ScalingMetric,
    ScalingPolicy,
    ScheduledJob,
    ZoneCreation,
    ZoneImport,
)
from api_stack.planner import resolve_plan

from .conftest import docker_down, docker_up, make_config


class TestResolvePlan:
    def test_registry_cpu_service_without_cdn_or_jobs(self, config):
        plan = resolve_plan(config, toolchain_check=docker_down)

        assert plan.image == RegistryImage(reference="example/api")
        assert len(plan.scaling_actions) == 1
        action = plan.scaling_actions[0]
        assert action.metric == ScalingMetric.CPU
        assert (
            action.target_utilization_percent,
            action.scale_in_cooldown_seconds,
            action.scale_out_cooldown_seconds,
        ) == (65, 240, 120)
        assert plan.cdn is None
        assert plan.jobs == ()
        assert plan.network == CreateNetwork(max_azs=3)
        assert isinstance(plan.cluster, CreateCluster)
        assert plan.scalable_target.min_capacity == 1
        assert plan.scalable_target.max_capacity == 5

    def test_bucket_job(self):
        config = make_config(
            jobs=[
                ScheduledJob(
                    name="handler",
                    entrypoint="index.handler",
                    schedule="rate(5 minutes)",
                    runtime="python3.11",
                    source=JobCodeSource(from_bucket="s3://my-bucket/jobs/handler.zip"),
                )
            ]
        )

        plan = resolve_plan(config, toolchain_check=docker_down)

        assert plan.jobs[0].code == BucketCode(bucket="my-bucket", key="jobs/handler.zip")

    def test_plan_carries_normalized_config(self, config):
        plan = resolve_plan(config, toolchain_check=docker_down)
        assert plan.config.use_logging is False
        assert plan.config.capacity_mixture == CapacityMixture(spot=1, ondemand=0)
        # The caller's config is untouched
        assert config.use_logging is None

    def test_plan_is_immutable(self, config):
        plan = resolve_plan(config, toolchain_check=docker_down)
        with pytest.raises(dataclasses.FrozenInstanceError):
            plan.cdn = None

    def test_request_count_uses_service_target_group(self):
        config = make_config(
            scaling=ScalingConfig(
                desired_count=1,
                max_count=3,
                min_count=1,
                policies=[
                    ScalingPolicy(
                        ScalingMetric.REQUEST_COUNT, ScalerConfig(request_count_scaler=200)
                    )
                ],
            )
        )

        plan = resolve_plan(config, toolchain_check=docker_down)

        assert plan.scaling_actions[0].requests_per_target == 200
        assert plan.scaling_actions[0].target_group is not None

    def test_local_image_with_toolchain(self, tmp_path):
        config = make_config(
            container=ContainerConfig(
                image=ContainerImageConfig(local="api", registry="example/api")
            )
        )
        plan = resolve_plan(config, toolchain_check=docker_up, project_root=tmp_path)
        assert plan.image.path == "/api/"

    def test_cdn_with_external_zone(self):
        config = make_config(
            cloudfront=CloudfrontConfig(
                domain_name="api.example.com",
                certificate_arn="arn:aws:acm:us-east-1:123:certificate/abc",
                external_zone=ZoneImport(zone_name="example.com", zone_id="Z1"),
            )
        )
        plan = resolve_plan(config, toolchain_check=docker_down)
        assert len(plan.cdn.records) == 2


class TestResolvePlanFailures:
    def test_ambiguous_zone_fails(self):
        config = make_config(
            cloudfront=CloudfrontConfig(
                domain_name="api.example.com",
                external_zone=ZoneImport(zone_name="example.com", zone_id="Z1"),
                new_zone=ZoneCreation(zone_name="example.com"),
            )
        )
        with pytest.raises(ConfigurationError, match="only one zone definition"):
            resolve_plan(config, toolchain_check=docker_down)

    def test_no_image_source_fails(self):
        config = make_config(container=ContainerConfig(image=ContainerImageConfig()))
        with pytest.raises(ConfigurationError, match="no usable image source"):
            resolve_plan(config, toolchain_check=docker_down)

    def test_malformed_envs_propagate(self):
        config = make_config(
            container=ContainerConfig(
                image=ContainerImageConfig(registry="example/api"), envs="LOG_LEVEL=info"
            )
        )
        with pytest.raises(ParseError):
            resolve_plan(config, toolchain_check=docker_down)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"service_name": ""},
            {"cpu_reservation": 0},
            {"memory_reservation": -512},
            {"capacity_mixture": CapacityMixture(spot=0, ondemand=0)},
            {"capacity_mixture": CapacityMixture(spot=-1, ondemand=2)},
        ],
    )
    def test_shape_checks(self, overrides):
        with pytest.raises(ConfigurationError):
            resolve_plan(make_config(**overrides), toolchain_check=docker_down)
