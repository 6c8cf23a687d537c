"""Mapper for task count autoscaling."""

from typing import Mapping, Optional, Sequence

import pulumi
import pulumi_aws as aws

from ..errors import ConfigurationError
from ..models import ScalableTarget, ScalingAction, ScalingMetric

PREDEFINED_METRICS = {
    ScalingMetric.CPU: "ECSServiceAverageCPUUtilization",
    ScalingMetric.MEMORY: "ECSServiceAverageMemoryUtilization",
    ScalingMetric.REQUEST_COUNT: "ALBRequestCountPerTarget",
}


def target_tracking_configuration(
    action: ScalingAction,
    resource_label: Optional[pulumi.Input[str]] = None,
) -> aws.appautoscaling.PolicyTargetTrackingScalingPolicyConfigurationArgs:
    """Build the target tracking configuration for one scaling action.

    Request count actions track requests per target; the others track
    utilization percent.
    """
    if action.metric == ScalingMetric.REQUEST_COUNT:
        target_value = action.requests_per_target
    else:
        target_value = action.target_utilization_percent

    return aws.appautoscaling.PolicyTargetTrackingScalingPolicyConfigurationArgs(
        target_value=target_value,
        scale_in_cooldown=action.scale_in_cooldown_seconds,
        scale_out_cooldown=action.scale_out_cooldown_seconds,
        predefined_metric_specification=aws.appautoscaling.PolicyTargetTrackingScalingPolicyConfigurationPredefinedMetricSpecificationArgs(
            predefined_metric_type=PREDEFINED_METRICS[action.metric],
            resource_label=resource_label,
        ),
    )


def register_scaling_actions(
    name: str,
    target: ScalableTarget,
    actions: Sequence[ScalingAction],
    cluster_name: pulumi.Input[str],
    service_name: pulumi.Input[str],
    target_group_labels: Mapping[str, pulumi.Input[str]],
    opts: pulumi.ResourceOptions,
) -> list[aws.appautoscaling.Policy]:
    """Register the scalable target and one policy per action, in order.

    A failure stops the remaining registrations; nothing is rolled back.

    Args:
        name: Service name used to prefix resource names
        target: Task count bounds
        actions: Compiled scaling actions
        cluster_name: ECS cluster name
        service_name: ECS service name
        target_group_labels: ALB resource label per logical target group
        opts: Resource options (parent component)

    Returns:
        Registered policies, in action order
    """
    scalable = aws.appautoscaling.Target(
        f"{name}-scaling-target",
        min_capacity=target.min_capacity,
        max_capacity=target.max_capacity,
        resource_id=pulumi.Output.concat("service/", cluster_name, "/", service_name),
        scalable_dimension="ecs:service:DesiredCount",
        service_namespace="ecs",
        opts=opts,
    )

    policies = []
    for action in actions:
        resource_label = None
        if action.target_group is not None:
            if action.target_group not in target_group_labels:
                raise ConfigurationError(
                    f"Unknown target group '{action.target_group}' for {action.name}"
                )
            resource_label = target_group_labels[action.target_group]

        policies.append(
            aws.appautoscaling.Policy(
                f"{name}-{action.name}",
                policy_type="TargetTrackingScaling",
                resource_id=scalable.resource_id,
                scalable_dimension=scalable.scalable_dimension,
                service_namespace=scalable.service_namespace,
                target_tracking_scaling_policy_configuration=target_tracking_configuration(
                    action, resource_label
                ),
                opts=opts,
            )
        )

    return policies
