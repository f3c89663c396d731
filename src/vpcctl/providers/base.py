"""
Base class for EC2 provider capabilities.

A provider performs single create/describe/modify/delete calls and knows
nothing about ordering or ownership; the orchestrators in ``vpcctl.vpc``
own all of that.

Providers should:
- Return the provider's own descriptors (boto3 EC2 response shapes)
- Accept filters in the EC2 ``{"Name": ..., "Values": [...]}`` form
- Raise ProviderRejectedError for any failed call, never retry
- Stay cancellable: every call is a coroutine, so cancelling the
  surrounding task aborts it
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

Descriptor = dict[str, Any]
Filters = list[dict[str, Any]]
Tags = list[dict[str, str]]


class BaseEC2Provider(ABC):
    """Abstract EC2 capability consumed by the orchestrators."""

    @property
    @abstractmethod
    def region(self) -> str:
        """Region the provider operates in."""

    async def __aenter__(self) -> "BaseEC2Provider":
        return self

    async def __aexit__(self, *args: Any) -> None:
        return None

    # VPCs

    @abstractmethod
    async def create_vpc(self, cidr: str, tags: Tags) -> Descriptor: ...

    @abstractmethod
    async def describe_vpcs(self, filters: Filters) -> list[Descriptor]: ...

    @abstractmethod
    async def delete_vpc(self, vpc_id: str) -> None: ...

    # Subnets

    @abstractmethod
    async def create_subnet(self, vpc_id: str, az: str, cidr: str, tags: Tags) -> Descriptor: ...

    @abstractmethod
    async def modify_subnet_attribute(self, subnet_id: str, map_public_ip_on_launch: bool) -> None:
        """Set MapPublicIpOnLaunch. EC2 accepts one attribute per call."""

    @abstractmethod
    async def describe_subnets(self, filters: Filters) -> list[Descriptor]: ...

    @abstractmethod
    async def delete_subnet(self, subnet_id: str) -> None: ...

    # Route tables

    @abstractmethod
    async def create_route_table(self, vpc_id: str, tags: Tags) -> Descriptor: ...

    @abstractmethod
    async def associate_route_table(self, route_table_id: str, subnet_id: str) -> str:
        """Associate a subnet and return the association id."""

    @abstractmethod
    async def disassociate_route_table(self, association_id: str) -> None: ...

    @abstractmethod
    async def create_route(
        self,
        route_table_id: str,
        destination_cidr: str,
        *,
        gateway_id: str | None = None,
        nat_gateway_id: str | None = None,
    ) -> None: ...

    @abstractmethod
    async def delete_route(self, route_table_id: str, destination_cidr: str) -> None: ...

    @abstractmethod
    async def describe_route_tables(self, filters: Filters) -> list[Descriptor]: ...

    @abstractmethod
    async def delete_route_table(self, route_table_id: str) -> None: ...

    # Internet gateways

    @abstractmethod
    async def create_internet_gateway(self, tags: Tags) -> Descriptor: ...

    @abstractmethod
    async def attach_internet_gateway(self, internet_gateway_id: str, vpc_id: str) -> None: ...

    @abstractmethod
    async def detach_internet_gateway(self, internet_gateway_id: str, vpc_id: str) -> None: ...

    @abstractmethod
    async def describe_internet_gateways(self, filters: Filters) -> list[Descriptor]: ...

    @abstractmethod
    async def delete_internet_gateway(self, internet_gateway_id: str) -> None: ...

    # Elastic IPs

    @abstractmethod
    async def allocate_address(self, tags: Tags) -> Descriptor:
        """Allocate a VPC Elastic IP; the descriptor carries ``AllocationId``."""

    @abstractmethod
    async def release_address(self, allocation_id: str) -> None: ...

    # NAT gateways

    @abstractmethod
    async def create_nat_gateway(self, subnet_id: str, allocation_id: str, tags: Tags) -> Descriptor: ...

    @abstractmethod
    async def describe_nat_gateways(
        self,
        filters: Filters | None = None,
        nat_gateway_ids: list[str] | None = None,
    ) -> list[Descriptor]: ...

    @abstractmethod
    async def delete_nat_gateway(self, nat_gateway_id: str) -> None: ...
