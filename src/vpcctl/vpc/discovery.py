"""
Tag-based discovery of the resources that make up a logical VPC.

Nothing is cached between calls: every lookup goes to the provider, so the
answer survives process restarts and reflects whatever is live right now.
"""

from __future__ import annotations

from typing import Any

from vpcctl.core.errors import AmbiguousError, NotFoundError, VpcctlError
from vpcctl.logging import bind_context
from vpcctl.providers.base import BaseEC2Provider
from vpcctl.vpc.models import ManagedResourceSet, OperationResult
from vpcctl.vpc.tags import (
    NAME_TAG_KEY,
    attachment_filter,
    managed_filters,
    name_filter,
    name_key_filter,
    tag_value,
    vpc_filter,
)

# Preferred over failed or deleted gateways, which stay visible for about an hour
LIVE_NAT_GATEWAY_STATES = ("pending", "available", "deleting")


async def find_network(provider: BaseEC2Provider, name: str) -> dict[str, Any]:
    """
    Find the managed VPC carrying ``Name=name``.

    Raises:
        NotFoundError: no managed VPC has that name
        AmbiguousError: more than one managed VPC has that name
    """
    vpcs = await provider.describe_vpcs([name_filter(name), *managed_filters()])
    if not vpcs:
        raise NotFoundError(f"VPC {name} not found", {"vpc_name": name})
    if len(vpcs) > 1:
        raise AmbiguousError(
            f"Found {len(vpcs)} VPCs named {name}",
            {"vpc_name": name, "vpc_ids": [vpc["VpcId"] for vpc in vpcs]},
        )
    return vpcs[0]


async def find_subnets(provider: BaseEC2Provider, vpc_id: str) -> list[dict[str, Any]]:
    return await provider.describe_subnets([vpc_filter(vpc_id), *managed_filters()])


async def find_route_tables(provider: BaseEC2Provider, vpc_id: str) -> list[dict[str, Any]]:
    return await provider.describe_route_tables([vpc_filter(vpc_id), *managed_filters()])


async def find_internet_gateway(provider: BaseEC2Provider, vpc_id: str) -> dict[str, Any] | None:
    """Return the managed internet gateway attached to the VPC, or None if absent."""
    gateways = await provider.describe_internet_gateways([attachment_filter(vpc_id), *managed_filters()])
    return gateways[0] if gateways else None


async def find_nat_gateway(provider: BaseEC2Provider, vpc_id: str) -> dict[str, Any] | None:
    """
    Return the managed NAT gateway in the VPC, or None if absent.

    Gateways in every state are visible so that delete can still release the
    address of a failed or already deleted gateway. A live gateway wins.
    """
    gateways = await provider.describe_nat_gateways(filters=[vpc_filter(vpc_id), *managed_filters()])
    live = [nat for nat in gateways if nat.get("State") in LIVE_NAT_GATEWAY_STATES]
    candidates = live or gateways
    return candidates[0] if candidates else None


async def get(provider: BaseEC2Provider, name: str) -> OperationResult:
    """
    Rebuild the resource set of a logical VPC from the live provider.

    Lookups run in the order VPC, subnets, route tables, internet gateway,
    NAT gateway and stop at the first failure. A missing internet or NAT
    gateway is not a failure.
    """
    log = bind_context(vpc_name=name)
    result = OperationResult(details=ManagedResourceSet())
    details = result.details

    try:
        details.network = await find_network(provider, name)
        vpc_id = details.network["VpcId"]
        log.debug("found_vpc", vpc_id=vpc_id)

        details.subnets = await find_subnets(provider, vpc_id)
        details.route_tables = await find_route_tables(provider, vpc_id)
        details.internet_gateway = await find_internet_gateway(provider, vpc_id)
        details.nat_gateway = await find_nat_gateway(provider, vpc_id)
    except VpcctlError as exc:
        log.debug("discovery_failed", error=exc.message)
        result.error = exc
        return result

    log.debug(
        "discovered_vpc",
        subnets=details.subnet_ids,
        route_tables=details.route_table_ids,
        internet_gateway=details.internet_gateway_id,
        nat_gateway=details.nat_gateway_id,
    )
    return result


async def list_names(provider: BaseEC2Provider) -> list[str]:
    """
    List the names of all VPCs managed by vpcctl, in provider order.

    VPCs without a ``Name`` tag value are skipped.

    Raises:
        ProviderRejectedError: the describe call failed
    """
    vpcs = await provider.describe_vpcs([*managed_filters(), name_key_filter()])
    return [name for name in (tag_value(vpc, NAME_TAG_KEY) for vpc in vpcs) if name]
