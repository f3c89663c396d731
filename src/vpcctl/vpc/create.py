"""
VPC creation.

Resources are created in a fixed dependency order:

1. VPC
2. Subnets (then public-IP attributes, one modify call per public subnet)
3. Route tables, one per non-empty public/private partition, shared by
   every subnet in that partition
4. Internet gateway, attached to the VPC, default route in the public table
5. Elastic IP and NAT gateway in the first public subnet, default route in
   the private table once the gateway is available

Every resource is written into the result as soon as it exists, so a failure
at any step still reports everything created before it. Nothing is rolled
back; pass the name to delete to clean up.

Delete finds resources by tag and attachment, so two things can outlive it:
an internet gateway whose attach failed and the Elastic IP of a rejected NAT
gateway. Their ids are added to the error details as ``internet_gateway_id``
and ``allocation_id``.
"""

from __future__ import annotations

import ipaddress
from dataclasses import replace
from typing import Any

from vpcctl.core.errors import PreconditionError, ProviderRejectedError, VpcctlError
from vpcctl.logging import bind_context
from vpcctl.providers.base import BaseEC2Provider
from vpcctl.vpc.defaults import default_subnets
from vpcctl.vpc.models import ManagedResourceSet, NetworkSpec, OperationResult
from vpcctl.vpc.naming import SubnetType, get_route_table_name, get_subnet_name, subnet_type
from vpcctl.vpc.tags import build_tags
from vpcctl.vpc.waiters import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_WAIT_TIMEOUT,
    NAT_AVAILABLE,
    wait_for_nat_gateway,
)

DEFAULT_ROUTE = "0.0.0.0/0"


def _normalize_cidr(cidr: str) -> str:
    return str(ipaddress.ip_network(cidr, strict=False))


async def create(
    provider: BaseEC2Provider,
    spec: NetworkSpec,
    *,
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> OperationResult:
    """
    Create a VPC and its subnets, route tables and gateways.

    Args:
        provider: EC2 provider
        spec: Desired VPC; with no subnets the default layout is used
        wait_timeout: Ceiling for the NAT gateway to become available
        poll_interval: Seconds between NAT gateway state checks

    Returns:
        OperationResult with everything created so far and the error that
        stopped creation, if any
    """
    result = OperationResult(details=ManagedResourceSet())
    details = result.details
    log = bind_context(vpc_name=spec.name)

    try:
        spec.validate()
        if not spec.subnets:
            if not provider.region:
                raise PreconditionError("Cannot lay out default subnets without a region")
            spec = replace(spec, subnets=default_subnets(provider.region, spec.cidr))

        log.info("creating_vpc", cidr=spec.cidr)
        details.network = await _create_vpc(provider, spec)
        vpc_id = details.network["VpcId"]
        log.info("created_vpc", vpc_id=vpc_id)

        log.info("creating_subnets", count=len(spec.subnets))
        await _create_subnets(provider, vpc_id, spec, details)
        log.info(
            "created_subnets",
            public=[s["SubnetId"] for s in details.public_subnets()],
            private=[s["SubnetId"] for s in details.private_subnets()],
        )

        log.info("creating_route_tables")
        route_tables = await _create_route_tables(provider, vpc_id, spec, details)
        log.info("created_route_tables", route_tables=details.route_table_ids)

        log.info("creating_internet_gateway")
        await _create_internet_gateway(provider, vpc_id, route_tables.get(SubnetType.PUBLIC), spec, details)
        log.info("created_internet_gateway", internet_gateway_id=details.internet_gateway_id)

        log.info("creating_nat_gateway")
        await _create_nat_gateway(
            provider,
            route_tables.get(SubnetType.PRIVATE),
            spec,
            details,
            wait_timeout=wait_timeout,
            poll_interval=poll_interval,
        )
        log.info("created_nat_gateway", nat_gateway_id=details.nat_gateway_id)
    except VpcctlError as exc:
        log.error("create_failed", error_type=type(exc).__name__, error=exc.message, details=exc.details)
        result.error = exc

    return result


async def _create_vpc(provider: BaseEC2Provider, spec: NetworkSpec) -> dict[str, Any]:
    return await provider.create_vpc(spec.cidr, build_tags(spec.name, spec.tags))


async def _create_subnets(
    provider: BaseEC2Provider,
    vpc_id: str,
    spec: NetworkSpec,
    details: ManagedResourceSet,
) -> None:
    for subnet_spec in spec.subnets:
        kind = subnet_type(subnet_spec.public)
        subnet = await provider.create_subnet(
            vpc_id,
            subnet_spec.az,
            subnet_spec.cidr,
            build_tags(get_subnet_name(spec.name, subnet_spec.az, kind), spec.tags, kind),
        )
        details.subnets.append(subnet)

    # MapPublicIpOnLaunch can't be set on creation
    specs_by_cidr = {_normalize_cidr(s.cidr): s for s in spec.subnets}
    for subnet in details.subnets:
        subnet_spec = specs_by_cidr.get(_normalize_cidr(subnet["CidrBlock"]))
        if subnet_spec is None:
            raise PreconditionError(
                f"Unable to find subnet options for subnet "
                f"{subnet.get('AvailabilityZone')} - {subnet['CidrBlock']}",
                {"subnet_id": subnet["SubnetId"]},
            )
        if subnet_spec.public:
            await provider.modify_subnet_attribute(subnet["SubnetId"], map_public_ip_on_launch=True)
            subnet["MapPublicIpOnLaunch"] = True


async def _create_route_tables(
    provider: BaseEC2Provider,
    vpc_id: str,
    spec: NetworkSpec,
    details: ManagedResourceSet,
) -> dict[SubnetType, dict[str, Any]]:
    route_tables: dict[SubnetType, dict[str, Any]] = {}
    partitions = (
        (SubnetType.PUBLIC, details.public_subnets()),
        (SubnetType.PRIVATE, details.private_subnets()),
    )
    for kind, subnets in partitions:
        if not subnets:
            continue
        route_table = await provider.create_route_table(
            vpc_id,
            build_tags(get_route_table_name(spec.name, kind), spec.tags, kind),
        )
        details.route_tables.append(route_table)
        route_tables[kind] = route_table

        for subnet in subnets:
            association_id = await provider.associate_route_table(route_table["RouteTableId"], subnet["SubnetId"])
            route_table.setdefault("Associations", []).append(
                {
                    "Main": False,
                    "RouteTableAssociationId": association_id,
                    "RouteTableId": route_table["RouteTableId"],
                    "SubnetId": subnet["SubnetId"],
                }
            )
    return route_tables


async def _create_internet_gateway(
    provider: BaseEC2Provider,
    vpc_id: str,
    public_route_table: dict[str, Any] | None,
    spec: NetworkSpec,
    details: ManagedResourceSet,
) -> None:
    igw = await provider.create_internet_gateway(build_tags(spec.name, spec.tags))
    details.internet_gateway = igw
    igw_id = igw["InternetGatewayId"]

    try:
        await provider.attach_internet_gateway(igw_id, vpc_id)
    except ProviderRejectedError as exc:
        exc.details.setdefault("internet_gateway_id", igw_id)
        raise
    igw["Attachments"] = [{"VpcId": vpc_id, "State": "available"}]

    if public_route_table is None:
        raise PreconditionError(
            "No public route table to route through the internet gateway",
            {"internet_gateway_id": igw_id},
        )
    await provider.create_route(public_route_table["RouteTableId"], DEFAULT_ROUTE, gateway_id=igw_id)
    public_route_table.setdefault("Routes", []).append(
        {"DestinationCidrBlock": DEFAULT_ROUTE, "GatewayId": igw_id, "State": "active"}
    )


async def _create_nat_gateway(
    provider: BaseEC2Provider,
    private_route_table: dict[str, Any] | None,
    spec: NetworkSpec,
    details: ManagedResourceSet,
    *,
    wait_timeout: float,
    poll_interval: float,
) -> None:
    public_subnets = details.public_subnets()
    if not public_subnets:
        raise PreconditionError("A NAT gateway requires at least one public subnet")
    if private_route_table is None:
        raise PreconditionError("A NAT gateway requires a private route table")

    tags = build_tags(spec.name, spec.tags)
    address = await provider.allocate_address(tags)
    try:
        nat = await provider.create_nat_gateway(public_subnets[0]["SubnetId"], address["AllocationId"], tags)
    except ProviderRejectedError as exc:
        exc.details.setdefault("allocation_id", address["AllocationId"])
        raise
    details.nat_gateway = nat
    nat_id = nat["NatGatewayId"]

    available = await wait_for_nat_gateway(
        provider,
        nat_id,
        NAT_AVAILABLE,
        timeout=wait_timeout,
        poll_interval=poll_interval,
    )
    if available is not None:
        details.nat_gateway = available

    await provider.create_route(private_route_table["RouteTableId"], DEFAULT_ROUTE, nat_gateway_id=nat_id)
    private_route_table.setdefault("Routes", []).append(
        {"DestinationCidrBlock": DEFAULT_ROUTE, "NatGatewayId": nat_id, "State": "active"}
    )
