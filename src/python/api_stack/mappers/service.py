"""Mapper for the load balanced Fargate API service."""

import json
from dataclasses import dataclass
from typing import Optional

import pulumi
import pulumi_aws as aws

from ..models import CapacityMixture, ContainerConfig, ServiceConfig
from .cluster import FARGATE, FARGATE_SPOT, ClusterHandles
from .common import project_tags
from .network import NetworkHandles

LISTENER_PORT = 80
LOG_RETENTION_DAYS = 14


@dataclass
class ApiServiceHandles:
    load_balancer: aws.lb.LoadBalancer
    target_group: aws.lb.TargetGroup
    service: aws.ecs.Service


def capacity_provider_strategies(
    mixture: CapacityMixture,
) -> list[aws.ecs.ServiceCapacityProviderStrategyArgs]:
    """Map spot / on-demand weights to Fargate capacity provider strategies.

    Zero weights are dropped.
    """
    weights = [(FARGATE_SPOT, mixture.spot), (FARGATE, mixture.ondemand)]
    return [
        aws.ecs.ServiceCapacityProviderStrategyArgs(capacity_provider=provider, weight=weight)
        for provider, weight in weights
        if weight > 0
    ]


def build_container_definition(
    container: ContainerConfig,
    image: str,
    region: str,
    log_group: Optional[str] = None,
    stream_prefix: str = "api",
) -> dict:
    """Build the ECS container definition for the API container.

    Args:
        container: Container config with defaults applied
        image: Image URI to run
        region: AWS region for the awslogs driver
        log_group: CloudWatch log group name, or None to disable logging
        stream_prefix: awslogs stream prefix

    Returns:
        Container definition dict (ECS JSON shape)
    """
    definition = {
        "name": container.name,
        "image": image,
        "essential": container.essential,
        "portMappings": [{"containerPort": container.port, "protocol": "tcp"}],
        "environment": [
            {"name": key, "value": value}
            for key, value in sorted((container.envs or {}).items())
        ],
    }

    if log_group:
        definition["logConfiguration"] = {
            "logDriver": "awslogs",
            "options": {
                "awslogs-group": log_group,
                "awslogs-region": region,
                "awslogs-stream-prefix": stream_prefix,
            },
        }

    return definition


def _assume_role_policy(service: str) -> str:
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Effect": "Allow",
            "Principal": {"Service": service},
            "Action": "sts:AssumeRole"
        }]
    })


def create_api_service(
    name: str,
    config: ServiceConfig,
    image_uri: pulumi.Input[str],
    network: NetworkHandles,
    cluster: ClusterHandles,
    opts: pulumi.ResourceOptions,
) -> ApiServiceHandles:
    """Create the load balancer, task definition and Fargate service.

    Args:
        name: Service name used to prefix resource names
        config: Service config with defaults applied
        image_uri: Image the API container runs
        network: VPC and subnets to place resources in
        cluster: Cluster to run the service on
        opts: Resource options (parent component)

    Returns:
        ApiServiceHandles
    """
    container = config.container
    tags = project_tags(name)

    execution_role = aws.iam.Role(
        f"{name}-execution-role",
        assume_role_policy=_assume_role_policy("ecs-tasks.amazonaws.com"),
        tags=tags,
        opts=opts,
    )
    aws.iam.RolePolicyAttachment(
        f"{name}-execution-policy",
        role=execution_role.name,
        policy_arn="arn:aws:iam::aws:policy/service-role/AmazonECSTaskExecutionRolePolicy",
        opts=opts,
    )

    task_role = aws.iam.Role(
        f"{name}-task-role",
        assume_role_policy=_assume_role_policy("ecs-tasks.amazonaws.com"),
        description=f"{name} ecs task role",
        tags=tags,
        opts=opts,
    )

    log_group = None
    if config.use_logging:
        log_group = aws.cloudwatch.LogGroup(
            f"{name}-logs",
            retention_in_days=LOG_RETENTION_DAYS,
            tags=tags,
            opts=opts,
        )

    lb_sg = aws.ec2.SecurityGroup(
        f"{name}-lb-sg",
        description=f"Load balancer for {name}",
        vpc_id=network.vpc_id,
        ingress=[
            aws.ec2.SecurityGroupIngressArgs(
                protocol="tcp",
                from_port=LISTENER_PORT,
                to_port=LISTENER_PORT,
                cidr_blocks=["0.0.0.0/0"],
                ipv6_cidr_blocks=["::/0"],
                description="Allow HTTP"
            ),
        ],
        egress=[
            aws.ec2.SecurityGroupEgressArgs(
                protocol="-1",
                from_port=0,
                to_port=0,
                cidr_blocks=["0.0.0.0/0"],
                description="Allow all outbound traffic"
            ),
        ],
        tags=tags,
        opts=opts,
    )

    service_sg = aws.ec2.SecurityGroup(
        f"{name}-service-sg",
        description=f"Tasks of {name}",
        vpc_id=network.vpc_id,
        ingress=[
            aws.ec2.SecurityGroupIngressArgs(
                protocol="tcp",
                from_port=container.port,
                to_port=container.port,
                security_groups=[lb_sg.id],
                description="Allow traffic from the load balancer"
            ),
        ],
        egress=[
            aws.ec2.SecurityGroupEgressArgs(
                protocol="-1",
                from_port=0,
                to_port=0,
                cidr_blocks=["0.0.0.0/0"],
                description="Allow all outbound traffic"
            ),
        ],
        tags=tags,
        opts=opts,
    )

    load_balancer = aws.lb.LoadBalancer(
        f"{name}-lb",
        load_balancer_type="application",
        security_groups=[lb_sg.id],
        subnets=network.public_subnet_ids,
        tags=tags,
        opts=opts,
    )

    target_group = aws.lb.TargetGroup(
        f"{name}-tg",
        port=container.port,
        protocol="HTTP",
        target_type="ip",
        vpc_id=network.vpc_id,
        tags=tags,
        opts=opts,
    )

    listener = aws.lb.Listener(
        f"{name}-listener",
        load_balancer_arn=load_balancer.arn,
        port=LISTENER_PORT,
        protocol="HTTP",
        default_actions=[
            aws.lb.ListenerDefaultActionArgs(type="forward", target_group_arn=target_group.arn)
        ],
        opts=opts,
    )

    log_group_name = log_group.name if log_group else None
    container_definitions = pulumi.Output.all(image_uri, log_group_name).apply(
        lambda args: json.dumps([
            build_container_definition(container, args[0], config.region, args[1], name)
        ])
    )

    task_definition = aws.ecs.TaskDefinition(
        f"{name}-task",
        family=name,
        cpu=str(config.cpu_reservation),
        memory=str(config.memory_reservation),
        network_mode="awsvpc",
        requires_compatibilities=["FARGATE"],
        execution_role_arn=execution_role.arn,
        task_role_arn=task_role.arn,
        container_definitions=container_definitions,
        tags=tags,
        opts=opts,
    )

    service = aws.ecs.Service(
        f"{name}-service",
        cluster=cluster.arn,
        task_definition=task_definition.arn,
        desired_count=config.scaling.desired_count,
        platform_version="LATEST",
        capacity_provider_strategies=capacity_provider_strategies(config.capacity_mixture),
        network_configuration=aws.ecs.ServiceNetworkConfigurationArgs(
            subnets=network.private_subnet_ids,
            security_groups=[service_sg.id],
            assign_public_ip=False,
        ),
        load_balancers=[
            aws.ecs.ServiceLoadBalancerArgs(
                target_group_arn=target_group.arn,
                container_name=container.name,
                container_port=container.port,
            )
        ],
        tags=tags,
        opts=pulumi.ResourceOptions.merge(
            opts,
            pulumi.ResourceOptions(
                depends_on=[listener, *cluster.depends_on],
                # Autoscaling owns the running count after creation
                ignore_changes=["desiredCount"],
            ),
        ),
    )

    return ApiServiceHandles(
        load_balancer=load_balancer,
        target_group=target_group,
        service=service,
    )
