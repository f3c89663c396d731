"""
EC2 provider backed by aioboto3.

Usage:
    async with EC2Provider(region="us-west-2") as provider:
        vpcs = await provider.describe_vpcs(filters)

Credentials and region resolve the usual boto way (environment, shared
config, instance profile) unless given explicitly.
"""

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Any

import aioboto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from vpcctl.core.errors import ProviderRejectedError
from vpcctl.providers.base import BaseEC2Provider, Descriptor, Filters, Tags

logger = structlog.get_logger()


def _tag_specifications(resource_type: str, tags: Tags) -> list[dict[str, Any]]:
    return [{"ResourceType": resource_type, "Tags": tags}]


def _translate_error(operation: str, exc: Exception) -> ProviderRejectedError:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code", "Unknown")
        message = error.get("Message") or str(exc)
        logger.debug("ec2_call_rejected", operation=operation, code=code, error=message)
        return ProviderRejectedError(
            f"{operation} failed: {message}",
            {"operation": operation, "code": code},
        )
    logger.debug("ec2_call_failed", operation=operation, error=str(exc))
    return ProviderRejectedError(f"{operation} failed: {exc}", {"operation": operation})


class EC2Provider(BaseEC2Provider):
    """EC2 capability over a single aioboto3 client."""

    def __init__(
        self,
        region: str | None = None,
        profile: str | None = None,
        session: aioboto3.Session | None = None,
    ) -> None:
        self._session = session or aioboto3.Session(region_name=region, profile_name=profile)
        self._client: Any = None
        self._exit_stack: AsyncExitStack | None = None

    @property
    def region(self) -> str:
        return self._session.region_name or ""

    async def __aenter__(self) -> "EC2Provider":
        self._exit_stack = AsyncExitStack()
        self._client = await self._exit_stack.enter_async_context(self._session.client("ec2"))
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
        self._exit_stack = None
        self._client = None

    @property
    def client(self) -> Any:
        if self._client is None:
            raise RuntimeError("EC2Provider must be entered with 'async with' before use")
        return self._client

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        try:
            return await getattr(self.client, operation)(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise _translate_error(operation, exc) from exc

    async def _paginate(self, operation: str, result_key: str, **kwargs: Any) -> list[Descriptor]:
        items: list[Descriptor] = []
        try:
            paginator = self.client.get_paginator(operation)
            async for page in paginator.paginate(**kwargs):
                items.extend(page.get(result_key, []))
        except (ClientError, BotoCoreError) as exc:
            raise _translate_error(operation, exc) from exc
        return items

    # VPCs

    async def create_vpc(self, cidr: str, tags: Tags) -> Descriptor:
        response = await self._call(
            "create_vpc",
            CidrBlock=cidr,
            TagSpecifications=_tag_specifications("vpc", tags),
        )
        return response["Vpc"]

    async def describe_vpcs(self, filters: Filters) -> list[Descriptor]:
        return await self._paginate("describe_vpcs", "Vpcs", Filters=filters)

    async def delete_vpc(self, vpc_id: str) -> None:
        await self._call("delete_vpc", VpcId=vpc_id)

    # Subnets

    async def create_subnet(self, vpc_id: str, az: str, cidr: str, tags: Tags) -> Descriptor:
        response = await self._call(
            "create_subnet",
            VpcId=vpc_id,
            AvailabilityZone=az,
            CidrBlock=cidr,
            TagSpecifications=_tag_specifications("subnet", tags),
        )
        return response["Subnet"]

    async def modify_subnet_attribute(self, subnet_id: str, map_public_ip_on_launch: bool) -> None:
        await self._call(
            "modify_subnet_attribute",
            SubnetId=subnet_id,
            MapPublicIpOnLaunch={"Value": map_public_ip_on_launch},
        )

    async def describe_subnets(self, filters: Filters) -> list[Descriptor]:
        return await self._paginate("describe_subnets", "Subnets", Filters=filters)

    async def delete_subnet(self, subnet_id: str) -> None:
        await self._call("delete_subnet", SubnetId=subnet_id)

    # Route tables

    async def create_route_table(self, vpc_id: str, tags: Tags) -> Descriptor:
        response = await self._call(
            "create_route_table",
            VpcId=vpc_id,
            TagSpecifications=_tag_specifications("route-table", tags),
        )
        return response["RouteTable"]

    async def associate_route_table(self, route_table_id: str, subnet_id: str) -> str:
        response = await self._call(
            "associate_route_table",
            RouteTableId=route_table_id,
            SubnetId=subnet_id,
        )
        return response["AssociationId"]

    async def disassociate_route_table(self, association_id: str) -> None:
        await self._call("disassociate_route_table", AssociationId=association_id)

    async def create_route(
        self,
        route_table_id: str,
        destination_cidr: str,
        *,
        gateway_id: str | None = None,
        nat_gateway_id: str | None = None,
    ) -> None:
        params: dict[str, Any] = {
            "RouteTableId": route_table_id,
            "DestinationCidrBlock": destination_cidr,
        }
        if gateway_id:
            params["GatewayId"] = gateway_id
        if nat_gateway_id:
            params["NatGatewayId"] = nat_gateway_id
        await self._call("create_route", **params)

    async def delete_route(self, route_table_id: str, destination_cidr: str) -> None:
        await self._call(
            "delete_route",
            RouteTableId=route_table_id,
            DestinationCidrBlock=destination_cidr,
        )

    async def describe_route_tables(self, filters: Filters) -> list[Descriptor]:
        return await self._paginate("describe_route_tables", "RouteTables", Filters=filters)

    async def delete_route_table(self, route_table_id: str) -> None:
        await self._call("delete_route_table", RouteTableId=route_table_id)

    # Internet gateways

    async def create_internet_gateway(self, tags: Tags) -> Descriptor:
        response = await self._call(
            "create_internet_gateway",
            TagSpecifications=_tag_specifications("internet-gateway", tags),
        )
        return response["InternetGateway"]

    async def attach_internet_gateway(self, internet_gateway_id: str, vpc_id: str) -> None:
        await self._call(
            "attach_internet_gateway",
            InternetGatewayId=internet_gateway_id,
            VpcId=vpc_id,
        )

    async def detach_internet_gateway(self, internet_gateway_id: str, vpc_id: str) -> None:
        await self._call(
            "detach_internet_gateway",
            InternetGatewayId=internet_gateway_id,
            VpcId=vpc_id,
        )

    async def describe_internet_gateways(self, filters: Filters) -> list[Descriptor]:
        return await self._paginate("describe_internet_gateways", "InternetGateways", Filters=filters)

    async def delete_internet_gateway(self, internet_gateway_id: str) -> None:
        await self._call("delete_internet_gateway", InternetGatewayId=internet_gateway_id)

    # Elastic IPs

    async def allocate_address(self, tags: Tags) -> Descriptor:
        response = await self._call(
            "allocate_address",
            Domain="vpc",
            TagSpecifications=_tag_specifications("elastic-ip", tags),
        )
        return {k: v for k, v in response.items() if k != "ResponseMetadata"}

    async def release_address(self, allocation_id: str) -> None:
        await self._call("release_address", AllocationId=allocation_id)

    # NAT gateways

    async def create_nat_gateway(self, subnet_id: str, allocation_id: str, tags: Tags) -> Descriptor:
        response = await self._call(
            "create_nat_gateway",
            SubnetId=subnet_id,
            AllocationId=allocation_id,
            TagSpecifications=_tag_specifications("natgateway", tags),
        )
        return response["NatGateway"]

    async def describe_nat_gateways(
        self,
        filters: Filters | None = None,
        nat_gateway_ids: list[str] | None = None,
    ) -> list[Descriptor]:
        params: dict[str, Any] = {}
        # DescribeNatGateways names its filter parameter "Filter", not "Filters"
        if filters:
            params["Filter"] = filters
        if nat_gateway_ids:
            params["NatGatewayIds"] = nat_gateway_ids
        return await self._paginate("describe_nat_gateways", "NatGateways", **params)

    async def delete_nat_gateway(self, nat_gateway_id: str) -> None:
        await self._call("delete_nat_gateway", NatGatewayId=nat_gateway_id)
