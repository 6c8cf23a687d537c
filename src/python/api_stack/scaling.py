"""Compile abstract scaling policies into concrete scaling actions."""

import logging
from typing import Optional, Sequence

from .errors import ConfigurationError
from .models import (
    ScalableTarget,
    ScalerConfig,
    ScalingAction,
    ScalingConfig,
    ScalingMetric,
    ScalingPolicy,
)

logger = logging.getLogger(__name__)

DEFAULT_SCALER = ScalerConfig()


def scalable_target(scaling: ScalingConfig) -> ScalableTarget:
    """Build the task count target, validating its bounds.

    Raises:
        ConfigurationError: Unless 0 <= min <= desired <= max and max >= 1
    """
    if scaling.max_count < 1:
        raise ConfigurationError(f"max_count must be at least 1, got {scaling.max_count}")
    if not 0 <= scaling.min_count <= scaling.desired_count <= scaling.max_count:
        raise ConfigurationError(
            "task counts must satisfy 0 <= min_count <= desired_count <= max_count "
            f"(got min={scaling.min_count}, desired={scaling.desired_count}, "
            f"max={scaling.max_count})"
        )
    return ScalableTarget(min_capacity=scaling.min_count, max_capacity=scaling.max_count)


def _compile_policy(
    index: int,
    policy: ScalingPolicy,
    target_group: Optional[str],
) -> ScalingAction:
    scaler = policy.scaling or DEFAULT_SCALER
    name = f"{getattr(policy.metric, 'value', policy.metric)}-autoscaler-{index}"

    if policy.metric in (ScalingMetric.CPU, ScalingMetric.MEMORY):
        return ScalingAction(
            name=name,
            metric=policy.metric,
            target_utilization_percent=scaler.target_utilization_percent,
            scale_in_cooldown_seconds=scaler.scale_in_cooldown_seconds,
            scale_out_cooldown_seconds=scaler.scale_out_cooldown_seconds,
        )

    if policy.metric == ScalingMetric.REQUEST_COUNT:
        # Only an explicit config can carry a request count; defaults never do
        requests_per_target = policy.scaling.request_count_scaler if policy.scaling else None
        if target_group is None or not requests_per_target:
            raise ConfigurationError(
                "a target group and request_count_scaler must exist "
                "when using request count scaling"
            )
        if requests_per_target < 0:
            raise ConfigurationError(
                f"request_count_scaler must be positive, got {requests_per_target}"
            )
        return ScalingAction(
            name=name,
            metric=policy.metric,
            target_utilization_percent=scaler.target_utilization_percent,
            scale_in_cooldown_seconds=scaler.scale_in_cooldown_seconds,
            scale_out_cooldown_seconds=scaler.scale_out_cooldown_seconds,
            requests_per_target=requests_per_target,
            target_group=target_group,
        )

    raise ConfigurationError(f"unsupported scaling metric: {policy.metric!r}")


def compile_scaling_policies(
    policies: Sequence[ScalingPolicy],
    target: ScalableTarget,
    target_group: Optional[str] = None,
) -> tuple[ScalingAction, ...]:
    """Turn scaling policies into scaling actions, one per policy, in order.

    Order only affects action naming; every action is independently
    active. Compilation stops at the first invalid policy.

    Args:
        policies: Policies in registration order
        target: Scalable task count the actions will be registered against
        target_group: Load balancer target group reference, if any

    Returns:
        Scaling actions in input order

    Raises:
        ConfigurationError: On an unsupported metric, or a request count
            policy without a target group or request_count_scaler
    """
    actions = tuple(
        _compile_policy(index, policy, target_group)
        for index, policy in enumerate(policies)
    )
    logger.info(
        "Compiled %d scaling action(s) for task count %d..%d",
        len(actions),
        target.min_capacity,
        target.max_capacity,
    )
    return actions
