"""VPC for the devbox instances.

One public and one private subnet per availability zone. The private tier
reaches S3 through a gateway endpoint, SSM through an interface endpoint and
everything else through a single NAT gateway, unless ``enable_nat_gateway``
is turned off.
"""
from dataclasses import dataclass, field
from typing import List, Optional

import pulumi
import pulumi_aws as aws

from devbox_infra.config import StackSettings, create_common_tags


@dataclass
class Network:
    vpc: aws.ec2.Vpc
    internet_gateway: aws.ec2.InternetGateway
    public_subnets: List[aws.ec2.Subnet]
    private_subnets: List[aws.ec2.Subnet]
    public_route_table: aws.ec2.RouteTable
    private_route_table: aws.ec2.RouteTable
    s3_gateway_endpoint: aws.ec2.VpcEndpoint
    nat_gateway: Optional[aws.ec2.NatGateway] = None
    interface_endpoints: List[aws.ec2.VpcEndpoint] = field(default_factory=list)

    @property
    def endpoints(self) -> List[aws.ec2.VpcEndpoint]:
        return [self.s3_gateway_endpoint] + self.interface_endpoints


def endpoint_service_name(region: str, service: str) -> str:
    return f"com.amazonaws.{region}.{service}"


def resolve_availability_zones(settings: StackSettings) -> List[str]:
    """Configured AZs, or the first available ones in the region."""
    count = len(settings.public_subnet_cidrs)
    if settings.availability_zones:
        return settings.availability_zones
    available = aws.get_availability_zones(state="available").names
    if len(available) < count:
        raise ValueError(f"Region has {len(available)} available zones, {count} subnets per tier requested")
    return available[:count]


def create_network(settings: StackSettings, region: str) -> Network:
    name = settings.project_name
    availability_zones = resolve_availability_zones(settings)

    vpc = aws.ec2.Vpc(f"{name}-vpc",
        cidr_block=settings.vpc_cidr,
        enable_dns_hostnames=True,
        enable_dns_support=True,
        tags=create_common_tags(settings, "vpc"))

    igw = aws.ec2.InternetGateway(f"{name}-igw",
        vpc_id=vpc.id,
        tags=create_common_tags(settings, "igw"))

    public_route_table = aws.ec2.RouteTable(f"{name}-public-rt",
        vpc_id=vpc.id,
        routes=[
            aws.ec2.RouteTableRouteArgs(
                cidr_block="0.0.0.0/0",
                gateway_id=igw.id,
            )
        ],
        tags=create_common_tags(settings, "public-rt"))

    public_subnets = []
    for i, cidr in enumerate(settings.public_subnet_cidrs):
        subnet = aws.ec2.Subnet(f"{name}-public-subnet-{i+1}",
            vpc_id=vpc.id,
            cidr_block=cidr,
            availability_zone=availability_zones[i],
            map_public_ip_on_launch=True,
            tags=create_common_tags(settings, f"public-subnet-{i+1}", {"Tier": "Public"}))
        aws.ec2.RouteTableAssociation(f"{name}-public-rta-{i+1}",
            subnet_id=subnet.id,
            route_table_id=public_route_table.id)
        public_subnets.append(subnet)

    # Single NAT gateway shared by all private subnets
    nat_gateway = None
    private_routes = []
    if settings.enable_nat_gateway:
        nat_eip = aws.ec2.Eip(f"{name}-nat-eip",
            domain="vpc",
            tags=create_common_tags(settings, "nat-eip"))
        nat_gateway = aws.ec2.NatGateway(f"{name}-nat-gw",
            allocation_id=nat_eip.id,
            subnet_id=public_subnets[0].id,
            tags=create_common_tags(settings, "nat-gw"),
            opts=pulumi.ResourceOptions(depends_on=[igw]))
        private_routes.append(aws.ec2.RouteTableRouteArgs(
            cidr_block="0.0.0.0/0",
            nat_gateway_id=nat_gateway.id,
        ))

    private_route_table = aws.ec2.RouteTable(f"{name}-private-rt",
        vpc_id=vpc.id,
        routes=private_routes,
        tags=create_common_tags(settings, "private-rt"))

    private_subnets = []
    for i, cidr in enumerate(settings.private_subnet_cidrs):
        subnet = aws.ec2.Subnet(f"{name}-private-subnet-{i+1}",
            vpc_id=vpc.id,
            cidr_block=cidr,
            availability_zone=availability_zones[i],
            map_public_ip_on_launch=False,
            tags=create_common_tags(settings, f"private-subnet-{i+1}", {"Tier": "Private"}))
        aws.ec2.RouteTableAssociation(f"{name}-private-rta-{i+1}",
            subnet_id=subnet.id,
            route_table_id=private_route_table.id)
        private_subnets.append(subnet)

    s3_gateway_endpoint = aws.ec2.VpcEndpoint(f"{name}-s3-gateway-endpoint",
        vpc_id=vpc.id,
        service_name=endpoint_service_name(region, "s3"),
        vpc_endpoint_type="Gateway",
        route_table_ids=[public_route_table.id, private_route_table.id],
        tags=create_common_tags(settings, "s3-gateway-endpoint"))

    return Network(
        vpc=vpc,
        internet_gateway=igw,
        public_subnets=public_subnets,
        private_subnets=private_subnets,
        public_route_table=public_route_table,
        private_route_table=private_route_table,
        s3_gateway_endpoint=s3_gateway_endpoint,
        nat_gateway=nat_gateway,
    )


def add_interface_endpoint(settings: StackSettings, network: Network, region: str, service: str,
                           security_group_id: pulumi.Input[str]) -> aws.ec2.VpcEndpoint:
    """Interface endpoint for an AWS service, reachable from the private subnets."""
    endpoint = aws.ec2.VpcEndpoint(f"{settings.project_name}-{service}-interface-endpoint",
        vpc_id=network.vpc.id,
        service_name=endpoint_service_name(region, service),
        vpc_endpoint_type="Interface",
        private_dns_enabled=True,
        subnet_ids=[s.id for s in network.private_subnets],
        security_group_ids=[security_group_id],
        tags=create_common_tags(settings, f"{service}-interface-endpoint"))
    network.interface_endpoints.append(endpoint)
    return endpoint
