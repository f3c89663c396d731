"""Tests for NAT gateway state waits."""

import asyncio

import pytest
from vpcctl.core.errors import ProviderRejectedError, WaitTimeoutError
from vpcctl.providers.memory import InMemoryEC2Provider
from vpcctl.vpc.waiters import NAT_AVAILABLE, NAT_DELETED, wait_for_nat_gateway


async def _pending_nat(provider):
    vpc = await provider.create_vpc("10.0.0.0/16", [])
    subnet = await provider.create_subnet(vpc["VpcId"], "us-west-2a", "10.0.0.0/24", [])
    address = await provider.allocate_address([])
    nat = await provider.create_nat_gateway(subnet["SubnetId"], address["AllocationId"], [])
    return nat["NatGatewayId"]


@pytest.mark.asyncio
async def test_wait_until_available():
    provider = InMemoryEC2Provider(nat_ready_after=3)
    nat_id = await _pending_nat(provider)

    nat = await wait_for_nat_gateway(provider, nat_id, NAT_AVAILABLE, timeout=5, poll_interval=0)

    assert nat["State"] == "available"
    assert provider.calls_to("describe_nat_gateways") == 3


@pytest.mark.asyncio
async def test_wait_times_out():
    provider = InMemoryEC2Provider(nat_ready_after=None)
    nat_id = await _pending_nat(provider)

    with pytest.raises(WaitTimeoutError) as exc_info:
        await wait_for_nat_gateway(provider, nat_id, NAT_AVAILABLE, timeout=0.05, poll_interval=0.01)

    assert exc_info.value.details == {"nat_gateway_id": nat_id, "state": "pending"}


@pytest.mark.asyncio
async def test_wait_never_sleeps_past_timeout():
    provider = InMemoryEC2Provider(nat_ready_after=None)
    nat_id = await _pending_nat(provider)

    with pytest.raises(WaitTimeoutError):
        await asyncio.wait_for(
            wait_for_nat_gateway(provider, nat_id, NAT_AVAILABLE, timeout=0.05, poll_interval=60),
            timeout=5,
        )

    assert provider.calls_to("describe_nat_gateways") == 1


@pytest.mark.asyncio
async def test_wait_fails_fast_on_failed_gateway():
    provider = InMemoryEC2Provider(nat_fails=True)
    nat_id = await _pending_nat(provider)

    with pytest.raises(ProviderRejectedError, match="insufficient free addresses") as exc_info:
        await wait_for_nat_gateway(provider, nat_id, NAT_AVAILABLE, timeout=5, poll_interval=0)

    assert exc_info.value.details["state"] == "failed"
    assert exc_info.value.details["code"] == "InsufficientFreeAddressesInSubnet"


@pytest.mark.asyncio
async def test_wait_until_deleted():
    provider = InMemoryEC2Provider()
    nat_id = await _pending_nat(provider)
    await provider.delete_nat_gateway(nat_id)

    nat = await wait_for_nat_gateway(provider, nat_id, NAT_DELETED, timeout=5, poll_interval=0)

    assert nat["State"] == "deleted"


@pytest.mark.asyncio
async def test_wait_for_deleted_tolerates_vanished_gateway(provider):
    nat = await wait_for_nat_gateway(provider, "nat-00000000000000099", NAT_DELETED, timeout=5, poll_interval=0)

    assert nat is None


@pytest.mark.asyncio
async def test_wait_for_available_propagates_describe_failure(provider):
    with pytest.raises(ProviderRejectedError):
        await wait_for_nat_gateway(provider, "nat-00000000000000099", NAT_AVAILABLE, timeout=5, poll_interval=0)


@pytest.mark.asyncio
async def test_wait_is_cancellable():
    provider = InMemoryEC2Provider(nat_ready_after=None)
    nat_id = await _pending_nat(provider)

    task = asyncio.create_task(
        wait_for_nat_gateway(provider, nat_id, NAT_AVAILABLE, timeout=300, poll_interval=60)
    )
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
