"""Mapper for the ECS cluster."""

from dataclasses import dataclass, field
from typing import Union

import pulumi
import pulumi_aws as aws

from ..models import AttachCluster, CreateCluster
from .common import project_tags

FARGATE = "FARGATE"
FARGATE_SPOT = "FARGATE_SPOT"


@dataclass
class ClusterHandles:
    arn: pulumi.Input[str]
    name: pulumi.Input[str]
    # Resources a service must wait on before using the cluster
    depends_on: list[pulumi.Resource] = field(default_factory=list)


def create_cluster(
    name: str,
    plan: Union[AttachCluster, CreateCluster],
    opts: pulumi.ResourceOptions,
) -> ClusterHandles:
    """Look up an existing ECS cluster or create a Fargate-enabled one.

    Attached clusters must already offer the FARGATE and FARGATE_SPOT
    capacity providers.
    """
    if isinstance(plan, AttachCluster):
        existing = aws.ecs.get_cluster(cluster_name=plan.cluster_id)
        return ClusterHandles(arn=existing.arn, name=existing.cluster_name)

    cluster = aws.ecs.Cluster(
        f"{name}-cluster",
        name=plan.name,
        settings=[aws.ecs.ClusterSettingArgs(name="containerInsights", value="enabled")],
        tags=project_tags(name, plan.name),
        opts=opts,
    )

    providers = aws.ecs.ClusterCapacityProviders(
        f"{name}-capacity-providers",
        cluster_name=cluster.name,
        capacity_providers=[FARGATE, FARGATE_SPOT],
        opts=opts,
    )

    return ClusterHandles(arn=cluster.arn, name=cluster.name, depends_on=[providers])
