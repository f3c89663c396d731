"""Tests for CLI output rendering."""

import json
from datetime import datetime, timezone

import pytest
import yaml
from vpcctl.cli.output import pretty_encode, render_details
from vpcctl.core.errors import ValidationError
from vpcctl.vpc.models import ManagedResourceSet


@pytest.fixture
def details():
    return ManagedResourceSet(
        network={"VpcId": "vpc-1", "CidrBlock": "10.0.0.0/16"},
        subnets=[{"SubnetId": "subnet-1", "AvailabilityZone": "us-west-2a", "CidrBlock": "10.0.0.0/24"}],
        nat_gateway={"NatGatewayId": "nat-1", "CreateTime": datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)},
    )


def test_pretty_encode_indents_four_spaces():
    assert pretty_encode({"a": 1}) == '{\n    "a": 1\n}'


def test_pretty_encode_handles_datetimes():
    encoded = pretty_encode({"when": datetime(2024, 1, 2, tzinfo=timezone.utc)})

    assert json.loads(encoded) == {"when": "2024-01-02 00:00:00+00:00"}


def test_render_details_json(details):
    data = json.loads(render_details(details))

    assert data["VPC"]["VpcId"] == "vpc-1"
    assert data["NATGateway"]["CreateTime"].startswith("2024-01-02")
    assert data["InternetGateway"] is None


def test_render_details_eksctl(details):
    data = yaml.safe_load(render_details(details, "eksctl"))

    assert data["vpc"]["subnets"]["private"]["us-west-2a"]["id"] == "subnet-1"


def test_render_details_unknown_format(details):
    with pytest.raises(ValidationError, match="Unknown output format"):
        render_details(details, "xml")
