"""
Unit tests for the VPC construct
"""

import unittest
from unittest.mock import Mock, patch
import sys

import pulumi
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lift_constructs.errors import MissingDependencyError, NetworkConflictError, ValidationError
from lift_constructs.network import ALLOW_ALL_EGRESS, MAX_AZS, EgressRule, NetworkContext, Vpc, subnet_cidrs
from lift_constructs.provider import Provider


def named_mock(name, **kwargs):
    return Mock(id=f"{name}-id")


def mock_network_resources(mock_aws, zones=("eu-west-1a", "eu-west-1b", "eu-west-1c")):
    mock_aws.get_availability_zones.return_value = Mock(names=list(zones))
    mock_aws.ec2.Vpc.side_effect = named_mock
    mock_aws.ec2.InternetGateway.side_effect = lambda *args, **kwargs: Mock(spec=pulumi.CustomResource)
    mock_aws.ec2.Subnet.side_effect = named_mock
    mock_aws.ec2.SecurityGroup.side_effect = named_mock
    mock_aws.ec2.NatGateway.side_effect = named_mock


class TestSubnetCidrs(unittest.TestCase):

    def test_blocks_do_not_overlap(self):
        self.assertEqual(subnet_cidrs(), ["10.0.0.0/18", "10.0.64.0/18", "10.0.128.0/18", "10.0.192.0/18"])


@patch('lift_constructs.network.aws')
class TestVpcConstruct(unittest.TestCase):
    """Resources declared by the Vpc construct"""

    def test_spans_two_availability_zones(self, mock_aws):
        mock_network_resources(mock_aws)
        vpc = Vpc("vpc", {"type": "vpc"}, Provider("app-dev"))

        self.assertEqual(MAX_AZS, 2)
        self.assertEqual(len(vpc.public_subnets), 2)
        self.assertEqual(len(vpc.private_subnets), 2)
        self.assertEqual(mock_aws.ec2.NatGateway.call_count, 2)
        zones = [call.kwargs["availability_zone"] for call in mock_aws.ec2.Subnet.call_args_list]
        self.assertEqual(sorted(set(zones)), ["eu-west-1a", "eu-west-1b"])

    def test_region_with_a_single_zone_is_refused(self, mock_aws):
        mock_network_resources(mock_aws, zones=("eu-west-1a",))
        provider = Provider("app-dev")

        with self.assertRaises(MissingDependencyError):
            Vpc("vpc", {}, provider)

        mock_aws.ec2.Vpc.assert_not_called()
        self.assertIsNone(provider.network_context)

    def test_private_subnets_have_no_public_ips(self, mock_aws):
        mock_network_resources(mock_aws)
        Vpc("vpc", {}, Provider("app-dev"))

        for call in mock_aws.ec2.Subnet.call_args_list:
            name = call.args[0]
            with self.subTest(subnet=name):
                self.assertEqual(call.kwargs["map_public_ip_on_launch"], "public" in name)

    def test_single_security_group_with_open_egress(self, mock_aws):
        mock_network_resources(mock_aws)
        Vpc("vpc", {}, Provider("app-dev"))

        mock_aws.ec2.SecurityGroup.assert_called_once()
        mock_aws.ec2.SecurityGroupRule.assert_called_once()
        kwargs = mock_aws.ec2.SecurityGroupRule.call_args.kwargs
        self.assertEqual(kwargs["type"], "egress")
        self.assertEqual(kwargs["protocol"], "-1")
        self.assertEqual(kwargs["cidr_blocks"], ["0.0.0.0/0"])
        self.assertEqual(kwargs["security_group_id"], "vpc-app-sg-id")

    def test_egress_policy_can_be_overridden(self, mock_aws):
        mock_network_resources(mock_aws)
        https_only = (EgressRule(protocol="tcp", from_port=443, to_port=443, cidr_blocks=("0.0.0.0/0",)),)
        Vpc("vpc", {}, Provider("app-dev"), egress=https_only)

        kwargs = mock_aws.ec2.SecurityGroupRule.call_args.kwargs
        self.assertEqual(kwargs["protocol"], "tcp")
        self.assertEqual(kwargs["from_port"], 443)
        self.assertEqual(kwargs["to_port"], 443)
        self.assertEqual(len(ALLOW_ALL_EGRESS), 1)

    def test_registers_network_context(self, mock_aws):
        mock_network_resources(mock_aws)
        provider = Provider("app-dev")
        vpc = Vpc("vpc", {}, provider)

        self.assertIs(provider.network_context, vpc.context)
        self.assertEqual(provider.network_context.vpc_id, "vpc-vpc-id")
        self.assertEqual(provider.network_context.security_group_ids, ["vpc-app-sg-id"])
        self.assertEqual(provider.network_context.private_subnet_ids,
                         ["vpc-private-subnet-1-id", "vpc-private-subnet-2-id"])

    def test_exposes_nothing(self, mock_aws):
        mock_network_resources(mock_aws)
        vpc = Vpc("vpc", {}, Provider("app-dev"))

        self.assertEqual(vpc.references(), {})
        self.assertEqual(vpc.outputs(), {})
        self.assertEqual(vpc.commands(), {})

    def test_second_vpc_conflicts(self, mock_aws):
        mock_network_resources(mock_aws)
        provider = Provider("app-dev")
        first = Vpc("vpc", {}, provider)

        with self.assertRaises(NetworkConflictError):
            Vpc("other", {}, provider)
        self.assertIs(provider.network_context, first.context)
        self.assertEqual(mock_aws.ec2.Vpc.call_count, 1)

    def test_invalid_configuration_declares_nothing(self, mock_aws):
        provider = Provider("app-dev")
        with self.assertRaises(ValidationError):
            Vpc("vpc", {"type": "vpc", "cidr": "10.1.0.0/16"}, provider)

        mock_aws.ec2.Vpc.assert_not_called()
        self.assertIsNone(provider.network_context)


class TestNetworkContext(unittest.TestCase):

    def test_is_immutable(self):
        context = NetworkContext(vpc_id="vpc-1", security_group_ids=["sg-1"], private_subnet_ids=["subnet-1"])
        with self.assertRaises(AttributeError):
            context.vpc_id = "vpc-2"


if __name__ == '__main__':
    unittest.main()
