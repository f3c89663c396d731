"""
VPC deletion.

Resources are discovered by name and removed in reverse dependency order:
NAT gateway (and its Elastic IP), internet gateway, route tables, subnets,
then the VPC itself. The first failure stops deletion; the result carries
the set that was discovered, so a rerun picks up whatever remains.
"""

from __future__ import annotations

from typing import Any

import structlog

from vpcctl.core.errors import ProviderRejectedError, VpcctlError
from vpcctl.logging import bind_context
from vpcctl.providers.base import BaseEC2Provider
from vpcctl.vpc.discovery import get
from vpcctl.vpc.models import OperationResult
from vpcctl.vpc.waiters import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_WAIT_TIMEOUT,
    NAT_DELETED,
    wait_for_nat_gateway,
)

logger = structlog.get_logger()

INTERNET_GATEWAY_PREFIX = "igw-"
ADDRESS_NOT_FOUND = "InvalidAllocationID.NotFound"

# Gateways in these states hold no address and need no delete call
SETTLED_NAT_GATEWAY_STATES = ("failed", "deleted")


async def delete(
    provider: BaseEC2Provider,
    name: str,
    *,
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> OperationResult:
    """
    Delete every managed resource of the VPC called ``name``.

    Args:
        provider: EC2 provider
        name: Value of the VPC's Name tag
        wait_timeout: Ceiling for the NAT gateway to finish deleting
        poll_interval: Seconds between NAT gateway state checks

    Returns:
        OperationResult with the discovered resources and the error that
        stopped deletion, if any
    """
    log = bind_context(vpc_name=name)
    log.info("fetching_vpc_details")
    result = await get(provider, name)
    if not result.success:
        return result

    details = result.details
    try:
        if details.nat_gateway is not None:
            log.info("deleting_nat_gateway", nat_gateway_id=details.nat_gateway_id)
            await _delete_nat_gateway(
                provider,
                details.nat_gateway,
                wait_timeout=wait_timeout,
                poll_interval=poll_interval,
            )
            log.info("deleted_nat_gateway", nat_gateway_id=details.nat_gateway_id)

        if details.internet_gateway is not None:
            log.info("deleting_internet_gateway", internet_gateway_id=details.internet_gateway_id)
            await provider.detach_internet_gateway(details.internet_gateway_id, details.network_id)
            await provider.delete_internet_gateway(details.internet_gateway_id)
            log.info("deleted_internet_gateway", internet_gateway_id=details.internet_gateway_id)

        log.info("deleting_route_tables", route_tables=details.route_table_ids)
        for route_table in details.route_tables:
            await _delete_route_table(provider, route_table)
        log.info("deleted_route_tables")

        log.info("deleting_subnets", subnets=details.subnet_ids)
        for subnet_id in details.subnet_ids:
            await provider.delete_subnet(subnet_id)
        log.info("deleted_subnets")

        log.info("deleting_vpc", vpc_id=details.network_id)
        await provider.delete_vpc(details.network_id)
        log.info("deleted_vpc", vpc_id=details.network_id)
    except VpcctlError as exc:
        log.error("delete_failed", error_type=type(exc).__name__, error=exc.message, details=exc.details)
        result.error = exc

    return result


async def _delete_nat_gateway(
    provider: BaseEC2Provider,
    nat_gateway: dict[str, Any],
    *,
    wait_timeout: float,
    poll_interval: float,
) -> None:
    nat_id = nat_gateway["NatGatewayId"]
    state = nat_gateway.get("State")
    if state not in SETTLED_NAT_GATEWAY_STATES:
        if state != "deleting":
            await provider.delete_nat_gateway(nat_id)
        await wait_for_nat_gateway(
            provider,
            nat_id,
            NAT_DELETED,
            timeout=wait_timeout,
            poll_interval=poll_interval,
        )

    # The address stays associated until the gateway is gone
    for address in nat_gateway.get("NatGatewayAddresses", []):
        allocation_id = address.get("AllocationId")
        if allocation_id:
            await _release_address(provider, allocation_id)


async def _release_address(provider: BaseEC2Provider, allocation_id: str) -> None:
    try:
        await provider.release_address(allocation_id)
    except ProviderRejectedError as exc:
        # Released by an earlier run
        if exc.details.get("code") != ADDRESS_NOT_FOUND:
            raise
        logger.debug("address_already_released", allocation_id=allocation_id)


async def _delete_route_table(provider: BaseEC2Provider, route_table: dict[str, Any]) -> None:
    route_table_id = route_table["RouteTableId"]

    for route in route_table.get("Routes", []):
        gateway_id = route.get("GatewayId") or ""
        destination = route.get("DestinationCidrBlock")
        if gateway_id.startswith(INTERNET_GATEWAY_PREFIX) and destination:
            await provider.delete_route(route_table_id, destination)

    for association in route_table.get("Associations", []):
        association_id = association.get("RouteTableAssociationId")
        if association.get("Main") or not association_id:
            continue
        await provider.disassociate_route_table(association_id)

    await provider.delete_route_table(route_table_id)
