"""Tests for scaling policy compilation."""

import pytest

from api_stack.errors import ConfigurationError
from api_stack.models import (
    ScalableTarget,
    ScalerConfig,
    ScalingAction,
    ScalingConfig,
    ScalingMetric,
    ScalingPolicy,
)
from api_stack.scaling import compile_scaling_policies, scalable_target

TARGET = ScalableTarget(min_capacity=1, max_capacity=5)
TARGET_GROUP = "api-target-group"


class TestCompileScalingPolicies:
    def test_missing_thresholds_use_defaults(self):
        (action,) = compile_scaling_policies([ScalingPolicy(ScalingMetric.CPU)], TARGET)

        assert action == ScalingAction(
            name="cpu-autoscaler-0",
            metric=ScalingMetric.CPU,
            target_utilization_percent=65,
            scale_in_cooldown_seconds=240,
            scale_out_cooldown_seconds=120,
        )

    def test_explicit_thresholds(self):
        policy = ScalingPolicy(
            ScalingMetric.MEMORY,
            ScalerConfig(
                target_utilization_percent=80,
                scale_in_cooldown_seconds=300,
                scale_out_cooldown_seconds=60,
            ),
        )

        (action,) = compile_scaling_policies([policy], TARGET)

        assert action.metric == ScalingMetric.MEMORY
        assert action.target_utilization_percent == 80
        assert action.scale_in_cooldown_seconds == 300
        assert action.scale_out_cooldown_seconds == 60
        assert action.requests_per_target is None

    def test_one_action_per_policy_in_order(self):
        policies = [
            ScalingPolicy(ScalingMetric.MEMORY),
            ScalingPolicy(ScalingMetric.CPU),
            ScalingPolicy(ScalingMetric.CPU),
        ]

        actions = compile_scaling_policies(policies, TARGET)

        assert [a.name for a in actions] == [
            "memory-autoscaler-0",
            "cpu-autoscaler-1",
            "cpu-autoscaler-2",
        ]

    def test_empty_policies(self):
        assert compile_scaling_policies([], TARGET) == ()


class TestRequestCountPolicy:
    def test_with_target_group_and_request_count(self):
        policy = ScalingPolicy(
            ScalingMetric.REQUEST_COUNT, ScalerConfig(request_count_scaler=500)
        )

        (action,) = compile_scaling_policies([policy], TARGET, TARGET_GROUP)

        assert action.metric == ScalingMetric.REQUEST_COUNT
        assert action.requests_per_target == 500
        assert action.target_group == TARGET_GROUP
        assert action.scale_in_cooldown_seconds == 240
        assert action.scale_out_cooldown_seconds == 120

    def test_missing_target_group_fails(self):
        policy = ScalingPolicy(
            ScalingMetric.REQUEST_COUNT, ScalerConfig(request_count_scaler=500)
        )
        with pytest.raises(ConfigurationError, match="target group"):
            compile_scaling_policies([policy], TARGET, None)

    def test_missing_request_count_fails(self):
        policy = ScalingPolicy(ScalingMetric.REQUEST_COUNT, ScalerConfig())
        with pytest.raises(ConfigurationError, match="request_count_scaler"):
            compile_scaling_policies([policy], TARGET, TARGET_GROUP)

    def test_defaults_never_supply_request_count(self):
        policy = ScalingPolicy(ScalingMetric.REQUEST_COUNT)
        with pytest.raises(ConfigurationError, match="request_count_scaler"):
            compile_scaling_policies([policy], TARGET, TARGET_GROUP)

    @pytest.mark.parametrize("request_count", [0, -100])
    def test_non_positive_request_count_fails(self, request_count):
        policy = ScalingPolicy(
            ScalingMetric.REQUEST_COUNT, ScalerConfig(request_count_scaler=request_count)
        )
        with pytest.raises(ConfigurationError, match="request_count_scaler"):
            compile_scaling_policies([policy], TARGET, TARGET_GROUP)


class TestUnsupportedMetric:
    def test_unknown_metric_fails(self):
        policy = ScalingPolicy(metric="gpu")
        with pytest.raises(ConfigurationError, match="unsupported scaling metric"):
            compile_scaling_policies([policy], TARGET)

    def test_failure_stops_compilation(self):
        policies = [ScalingPolicy(ScalingMetric.CPU), ScalingPolicy(metric="gpu")]
        with pytest.raises(ConfigurationError):
            compile_scaling_policies(policies, TARGET)


class TestScalableTarget:
    def test_bounds(self):
        scaling = ScalingConfig(desired_count=2, max_count=5, min_count=1)
        assert scalable_target(scaling) == ScalableTarget(min_capacity=1, max_capacity=5)

    def test_zero_minimum_allowed(self):
        scaling = ScalingConfig(desired_count=0, max_count=1, min_count=0)
        assert scalable_target(scaling).min_capacity == 0

    @pytest.mark.parametrize(
        "desired, max_count, min_count",
        [(6, 5, 1), (1, 5, 2), (2, 5, -1), (0, 0, 0)],
    )
    def test_invalid_bounds(self, desired, max_count, min_count):
        scaling = ScalingConfig(desired_count=desired, max_count=max_count, min_count=min_count)
        with pytest.raises(ConfigurationError):
            scalable_target(scaling)
