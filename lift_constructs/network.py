"""
VPC Construct
Creates a two-AZ VPC with public and private subnets and the security group
used by compute resources, then registers it as the provider network
"""

import ipaddress
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Sequence

import pulumi
import pulumi_aws as aws

from .errors import MissingDependencyError, NetworkConflictError
from .schema import ConstructConfig, validate


class VpcConfig(ConstructConfig):
    """Configuration block of a vpc construct, nothing but its type"""

    type: Optional[Literal["vpc"]] = None


MAX_AZS = 2
VPC_CIDR = "10.0.0.0/16"
SUBNET_PREFIX = 18


@dataclass(frozen=True)
class EgressRule:
    """Outbound rule of the application security group"""

    protocol: str
    from_port: int
    to_port: int
    cidr_blocks: Sequence[str]
    description: str = ""


# Compute resources may call any endpoint on the internet
ALLOW_ALL_EGRESS = (
    EgressRule(protocol="-1", from_port=0, to_port=0, cidr_blocks=("0.0.0.0/0",),
               description="Allow all outbound IPv4 traffic"),
)


@dataclass(frozen=True)
class NetworkContext:
    """Network placement shared with every construct that needs one"""

    vpc_id: Any
    security_group_ids: List[Any]
    private_subnet_ids: List[Any]


def subnet_cidrs(vpc_cidr: str = VPC_CIDR, count: int = MAX_AZS * 2) -> List[str]:
    """Split the VPC range in equal blocks, public subnets first"""
    blocks = ipaddress.ip_network(vpc_cidr).subnets(new_prefix=SUBNET_PREFIX)
    return [str(block) for _, block in zip(range(count), blocks)]


class Vpc:
    """VPC construct, registered on the provider as its network"""

    type = "vpc"
    schema = VpcConfig
    provides_network = True

    def __init__(self, construct_id: str, configuration: Optional[Dict[str, Any]], provider,
                 egress: Sequence[EgressRule] = ALLOW_ALL_EGRESS):
        self.construct_id = construct_id
        self.configuration = validate(configuration, VpcConfig, construct_id)
        self.provider = provider
        if provider.network_context is not None:
            raise NetworkConflictError(f"Cannot declare VPC {construct_id}: a VPC is already registered")
        tags = provider.tags

        azs = aws.get_availability_zones(state="available")
        zones = list(azs.names)[:MAX_AZS]
        if len(zones) < MAX_AZS:
            raise MissingDependencyError(f"{MAX_AZS} available availability zones", construct_id)
        cidrs = subnet_cidrs(count=len(zones) * 2)

        self.vpc = aws.ec2.Vpc(
            f"{construct_id}-vpc",
            cidr_block=VPC_CIDR,
            enable_dns_hostnames=True,
            enable_dns_support=True,
            tags={**tags, "Name": f"{provider.stack_name}-{construct_id}"}
        )

        self.internet_gateway = aws.ec2.InternetGateway(
            f"{construct_id}-igw",
            vpc_id=self.vpc.id,
            tags={**tags, "Name": f"{provider.stack_name}-{construct_id}-igw"}
        )

        public_route_table = aws.ec2.RouteTable(
            f"{construct_id}-public-rt",
            vpc_id=self.vpc.id,
            routes=[aws.ec2.RouteTableRouteArgs(
                cidr_block="0.0.0.0/0",
                gateway_id=self.internet_gateway.id)],
            tags={**tags, "Name": f"{provider.stack_name}-{construct_id}-public-rt"}
        )

        self.public_subnets = []
        self.private_subnets = []
        self.nat_gateways = []
        for i, zone in enumerate(zones):
            public_subnet = aws.ec2.Subnet(
                f"{construct_id}-public-subnet-{i+1}",
                vpc_id=self.vpc.id,
                cidr_block=cidrs[i],
                availability_zone=zone,
                map_public_ip_on_launch=True,
                tags={**tags, "Name": f"{provider.stack_name}-{construct_id}-public-{i+1}", "Type": "public"}
            )
            aws.ec2.RouteTableAssociation(
                f"{construct_id}-public-rta-{i+1}",
                subnet_id=public_subnet.id,
                route_table_id=public_route_table.id
            )

            # One NAT per AZ so private subnets keep egress when a zone fails
            eip = aws.ec2.Eip(
                f"{construct_id}-nat-eip-{i+1}",
                domain="vpc",
                tags={**tags, "Name": f"{provider.stack_name}-{construct_id}-nat-{i+1}"}
            )
            nat_gateway = aws.ec2.NatGateway(
                f"{construct_id}-nat-{i+1}",
                allocation_id=eip.id,
                subnet_id=public_subnet.id,
                tags={**tags, "Name": f"{provider.stack_name}-{construct_id}-nat-{i+1}"},
                opts=pulumi.ResourceOptions(depends_on=[self.internet_gateway])
            )

            private_subnet = aws.ec2.Subnet(
                f"{construct_id}-private-subnet-{i+1}",
                vpc_id=self.vpc.id,
                cidr_block=cidrs[len(zones) + i],
                availability_zone=zone,
                map_public_ip_on_launch=False,
                tags={**tags, "Name": f"{provider.stack_name}-{construct_id}-private-{i+1}", "Type": "private"}
            )
            private_route_table = aws.ec2.RouteTable(
                f"{construct_id}-private-rt-{i+1}",
                vpc_id=self.vpc.id,
                routes=[aws.ec2.RouteTableRouteArgs(
                    cidr_block="0.0.0.0/0",
                    nat_gateway_id=nat_gateway.id)],
                tags={**tags, "Name": f"{provider.stack_name}-{construct_id}-private-rt-{i+1}"}
            )
            aws.ec2.RouteTableAssociation(
                f"{construct_id}-private-rta-{i+1}",
                subnet_id=private_subnet.id,
                route_table_id=private_route_table.id
            )

            self.public_subnets.append(public_subnet)
            self.private_subnets.append(private_subnet)
            self.nat_gateways.append(nat_gateway)

        # Security group for the Lambda functions
        self.app_security_group = aws.ec2.SecurityGroup(
            f"{construct_id}-app-sg",
            vpc_id=self.vpc.id,
            description=f"Application security group of {construct_id}",
            tags={**tags, "Name": f"{provider.stack_name}-{construct_id}-app-sg"}
        )

        self.egress_rules = []
        for i, rule in enumerate(egress):
            self.egress_rules.append(aws.ec2.SecurityGroupRule(
                f"{construct_id}-app-egress-{i+1}",
                type="egress",
                protocol=rule.protocol,
                from_port=rule.from_port,
                to_port=rule.to_port,
                cidr_blocks=list(rule.cidr_blocks),
                description=rule.description or None,
                security_group_id=self.app_security_group.id
            ))

        self.context = NetworkContext(
            vpc_id=self.vpc.id,
            security_group_ids=[self.app_security_group.id],
            private_subnet_ids=[subnet.id for subnet in self.private_subnets],
        )

        pulumi.log.info(f"VPC {construct_id} declared across {len(zones)} availability zones")

        # Auto-register the VPC
        provider.set_vpc_config(self.context)

    def commands(self) -> Dict[str, Any]:
        return {}

    def outputs(self) -> Dict[str, Any]:
        return {}

    def references(self) -> Dict[str, Any]:
        return {}
