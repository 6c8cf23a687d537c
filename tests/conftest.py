"""Shared fixtures for api_stack tests."""

import pytest

from api_stack.models import (
    ContainerConfig,
    ContainerImageConfig,
    ResolvedPlan,
    ScalingConfig,
    ScalingMetric,
    ScalingPolicy,
    ServiceConfig,
)


class FakeBackend:
    """Provisioning backend that records the plans it receives."""

    def __init__(self):
        self.plans: list[ResolvedPlan] = []

    def provision(self, plan: ResolvedPlan) -> None:
        self.plans.append(plan)


def docker_up() -> bool:
    return True


def docker_down() -> bool:
    return False


def make_config(**overrides) -> ServiceConfig:
    """Create a minimal valid ServiceConfig with every optional field unset."""
    fields = dict(
        service_name="orders-api",
        region="us-east-1",
        stack_id="orders-api",
        container=ContainerConfig(image=ContainerImageConfig(registry="example/api")),
        scaling=ScalingConfig(
            desired_count=2,
            max_count=5,
            min_count=1,
            policies=[ScalingPolicy(metric=ScalingMetric.CPU)],
        ),
        cpu_reservation=256,
        memory_reservation=512,
    )
    fields.update(overrides)
    return ServiceConfig(**fields)


@pytest.fixture
def config() -> ServiceConfig:
    return make_config()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
