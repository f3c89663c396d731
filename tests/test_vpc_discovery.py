"""Tests for tag-based discovery, get and list."""

import pytest
from vpcctl.core.errors import AmbiguousError, NotFoundError, ProviderRejectedError
from vpcctl.vpc import discovery
from vpcctl.vpc.create import create
from vpcctl.vpc.tags import build_tags


@pytest.mark.asyncio
async def test_find_network_not_found(provider):
    with pytest.raises(NotFoundError, match="VPC missing not found"):
        await discovery.find_network(provider, "missing")


@pytest.mark.asyncio
async def test_find_network_ignores_unmanaged_vpcs(provider):
    await provider.create_vpc("10.0.0.0/16", [{"Key": "Name", "Value": "my-vpc"}])

    with pytest.raises(NotFoundError):
        await discovery.find_network(provider, "my-vpc")


@pytest.mark.asyncio
async def test_find_network_ambiguous(provider):
    first = await provider.create_vpc("10.0.0.0/16", build_tags("my-vpc"))
    second = await provider.create_vpc("10.1.0.0/16", build_tags("my-vpc"))

    with pytest.raises(AmbiguousError) as exc_info:
        await discovery.find_network(provider, "my-vpc")

    assert exc_info.value.details["vpc_ids"] == [first["VpcId"], second["VpcId"]]


@pytest.mark.asyncio
async def test_gateway_lookups_return_none_when_absent(provider):
    vpc = await provider.create_vpc("10.0.0.0/16", build_tags("my-vpc"))

    assert await discovery.find_internet_gateway(provider, vpc["VpcId"]) is None
    assert await discovery.find_nat_gateway(provider, vpc["VpcId"]) is None


@pytest.mark.asyncio
async def test_find_nat_gateway_returns_deleted_gateway(provider, two_zone_spec):
    result = await create(provider, two_zone_spec, poll_interval=0)
    nat_id = result.details.nat_gateway_id
    provider.nat_gateways[nat_id]["State"] = "deleted"

    nat = await discovery.find_nat_gateway(provider, result.details.network_id)

    assert nat["NatGatewayId"] == nat_id
    assert nat["State"] == "deleted"


@pytest.mark.asyncio
async def test_find_nat_gateway_prefers_live_gateway(provider, two_zone_spec):
    result = await create(provider, two_zone_spec, poll_interval=0)
    provider.nat_gateways[result.details.nat_gateway_id]["State"] = "deleted"
    address = await provider.allocate_address([])
    replacement = await provider.create_nat_gateway(
        result.details.public_subnets()[0]["SubnetId"],
        address["AllocationId"],
        build_tags("test-vpc"),
    )

    nat = await discovery.find_nat_gateway(provider, result.details.network_id)

    assert nat["NatGatewayId"] == replacement["NatGatewayId"]


@pytest.mark.asyncio
async def test_get_returns_full_set(provider, two_zone_spec):
    await create(provider, two_zone_spec, poll_interval=0)

    result = await discovery.get(provider, "test-vpc")

    assert result.success
    assert len(result.details.subnets) == 4
    assert len(result.details.route_tables) == 2
    assert result.details.internet_gateway_id.startswith("igw-")
    assert result.details.nat_gateway["State"] == "available"


@pytest.mark.asyncio
async def test_get_unknown_name(provider):
    result = await discovery.get(provider, "missing")

    assert isinstance(result.error, NotFoundError)
    assert result.details.network is None


@pytest.mark.asyncio
async def test_get_without_gateways_is_not_an_error(provider):
    vpc = await provider.create_vpc("10.0.0.0/16", build_tags("my-vpc"))
    await provider.create_subnet(vpc["VpcId"], "us-west-2a", "10.0.0.0/24", build_tags("my-vpc-us-west-2a-PRIVATE"))

    result = await discovery.get(provider, "my-vpc")

    assert result.success
    assert len(result.details.subnets) == 1
    assert result.details.internet_gateway is None
    assert result.details.nat_gateway is None


@pytest.mark.asyncio
async def test_get_stops_at_first_failure(provider, two_zone_spec):
    await create(provider, two_zone_spec, poll_interval=0)
    provider.fail("describe_route_tables")

    result = await discovery.get(provider, "test-vpc")

    assert isinstance(result.error, ProviderRejectedError)
    assert len(result.details.subnets) == 4
    assert result.details.route_tables == []
    assert result.details.internet_gateway is None
    assert provider.calls_to("describe_internet_gateways") == 0


@pytest.mark.asyncio
async def test_list_empty(provider):
    assert await discovery.list_names(provider) == []


@pytest.mark.asyncio
async def test_list_names_in_provider_order(provider):
    await provider.create_vpc("10.0.0.0/16", build_tags("first"))
    await provider.create_vpc("10.1.0.0/16", build_tags("second"))

    assert await discovery.list_names(provider) == ["first", "second"]


@pytest.mark.asyncio
async def test_list_excludes_unnamed_and_unmanaged(provider):
    await provider.create_vpc("10.0.0.0/16", [{"Key": "CreatedBy", "Value": "vpcctl"}])
    await provider.create_vpc("10.1.0.0/16", [{"Key": "Name", "Value": "not-ours"}])
    await provider.create_vpc("10.2.0.0/16", build_tags("ours"))

    assert await discovery.list_names(provider) == ["ours"]


@pytest.mark.asyncio
async def test_list_propagates_provider_failure(provider):
    provider.fail("describe_vpcs")

    with pytest.raises(ProviderRejectedError):
        await discovery.list_names(provider)
