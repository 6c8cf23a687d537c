"""Mapper for the service network (VPC and subnets)."""

from dataclasses import dataclass
from typing import Union

import pulumi
import pulumi_aws as aws

from ..models import AttachNetwork, CreateNetwork
from .common import project_tags

VPC_CIDR = "10.0.0.0/16"
PUBLIC_SUBNET_OFFSET = 0
PRIVATE_SUBNET_OFFSET = 100


@dataclass
class NetworkHandles:
    """Identifiers downstream mappers place resources into."""

    vpc_id: pulumi.Input[str]
    public_subnet_ids: pulumi.Input[list[str]]
    private_subnet_ids: pulumi.Input[list[str]]


def subnet_cidr(offset: int, index: int) -> str:
    """CIDR of the index-th subnet in a block, e.g. (100, 1) -> 10.0.101.0/24."""
    return f"10.0.{offset + index}.0/24"


def create_network(
    name: str,
    plan: Union[AttachNetwork, CreateNetwork],
    opts: pulumi.ResourceOptions,
) -> NetworkHandles:
    """Look up an existing VPC or create one with public and private subnets.

    Args:
        name: Service name used to prefix resource names
        plan: Resolved network strategy
        opts: Resource options (parent component)

    Returns:
        NetworkHandles for the service
    """
    if isinstance(plan, AttachNetwork):
        vpc = aws.ec2.get_vpc(id=plan.network_id)
        subnets = aws.ec2.get_subnets(
            filters=[aws.ec2.GetSubnetsFilterArgs(name="vpc-id", values=[vpc.id])]
        )
        return NetworkHandles(
            vpc_id=vpc.id,
            public_subnet_ids=subnets.ids,
            private_subnet_ids=subnets.ids,
        )

    zones = aws.get_availability_zones(state="available").names[: plan.max_azs]

    vpc = aws.ec2.Vpc(
        f"{name}-vpc",
        cidr_block=VPC_CIDR,
        enable_dns_hostnames=True,
        enable_dns_support=True,
        tags=project_tags(name, f"{name}-vpc"),
        opts=opts,
    )

    igw = aws.ec2.InternetGateway(
        f"{name}-igw",
        vpc_id=vpc.id,
        tags=project_tags(name),
        opts=opts,
    )

    public_rt = aws.ec2.RouteTable(
        f"{name}-public-rt",
        vpc_id=vpc.id,
        routes=[aws.ec2.RouteTableRouteArgs(cidr_block="0.0.0.0/0", gateway_id=igw.id)],
        tags=project_tags(name),
        opts=opts,
    )

    public_subnets = []
    private_subnets = []
    for index, zone in enumerate(zones):
        public = aws.ec2.Subnet(
            f"{name}-public-{index}",
            vpc_id=vpc.id,
            cidr_block=subnet_cidr(PUBLIC_SUBNET_OFFSET, index),
            availability_zone=zone,
            map_public_ip_on_launch=True,
            tags=project_tags(name, f"{name}-public-{zone}"),
            opts=opts,
        )
        aws.ec2.RouteTableAssociation(
            f"{name}-public-rta-{index}",
            subnet_id=public.id,
            route_table_id=public_rt.id,
            opts=opts,
        )
        public_subnets.append(public)

        private_subnets.append(
            aws.ec2.Subnet(
                f"{name}-private-{index}",
                vpc_id=vpc.id,
                cidr_block=subnet_cidr(PRIVATE_SUBNET_OFFSET, index),
                availability_zone=zone,
                tags=project_tags(name, f"{name}-private-{zone}"),
                opts=opts,
            )
        )

    # A single NAT gateway serves every private subnet
    nat_eip = aws.ec2.Eip(f"{name}-nat-eip", domain="vpc", tags=project_tags(name), opts=opts)
    nat = aws.ec2.NatGateway(
        f"{name}-nat",
        subnet_id=public_subnets[0].id,
        allocation_id=nat_eip.id,
        tags=project_tags(name),
        opts=opts,
    )

    private_rt = aws.ec2.RouteTable(
        f"{name}-private-rt",
        vpc_id=vpc.id,
        routes=[aws.ec2.RouteTableRouteArgs(cidr_block="0.0.0.0/0", nat_gateway_id=nat.id)],
        tags=project_tags(name),
        opts=opts,
    )
    for index, subnet in enumerate(private_subnets):
        aws.ec2.RouteTableAssociation(
            f"{name}-private-rta-{index}",
            subnet_id=subnet.id,
            route_table_id=private_rt.id,
            opts=opts,
        )

    return NetworkHandles(
        vpc_id=vpc.id,
        public_subnet_ids=[s.id for s in public_subnets],
        private_subnet_ids=[s.id for s in private_subnets],
    )
