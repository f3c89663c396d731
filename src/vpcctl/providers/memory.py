"""
Dictionary-backed EC2 provider for local development and tests.

Mimics the parts of EC2 behaviour the orchestrators depend on: tag and
scope filters, dependency violations on delete, the main route table that
comes with every VPC, and NAT gateway state transitions.
"""

from __future__ import annotations

import copy
import ipaddress
import itertools
from dataclasses import dataclass
from typing import Any

from vpcctl.core.errors import ProviderRejectedError
from vpcctl.providers.base import BaseEC2Provider, Descriptor, Filters, Tags

LIVE_NAT_STATES = ("pending", "available", "deleting")


@dataclass
class _Failure:
    message: str
    code: str
    after: int


class InMemoryEC2Provider(BaseEC2Provider):
    """
    In-process stand-in for EC2.

    Args:
        region: Reported region
        nat_ready_after: Number of describe calls after which a pending NAT
            gateway becomes available; None keeps it pending forever
        nat_fails: Pending NAT gateways move to ``failed`` instead
    """

    def __init__(
        self,
        region: str = "us-west-2",
        nat_ready_after: int | None = 1,
        nat_fails: bool = False,
    ) -> None:
        self._region = region
        self.nat_ready_after = nat_ready_after
        self.nat_fails = nat_fails
        self.vpcs: dict[str, Descriptor] = {}
        self.subnets: dict[str, Descriptor] = {}
        self.route_tables: dict[str, Descriptor] = {}
        self.internet_gateways: dict[str, Descriptor] = {}
        self.addresses: dict[str, Descriptor] = {}
        self.nat_gateways: dict[str, Descriptor] = {}
        self.calls: list[str] = []
        self._failures: dict[str, _Failure] = {}
        self._nat_describes: dict[str, int] = {}
        self._counter = itertools.count(1)

    @property
    def region(self) -> str:
        return self._region

    # Test helpers

    def fail(
        self,
        operation: str,
        message: str = "injected failure",
        code: str = "InjectedFailure",
        after: int = 0,
    ) -> None:
        """Make ``operation`` fail once it has succeeded ``after`` times."""
        self._failures[operation] = _Failure(message=message, code=code, after=after)

    def recover(self, operation: str) -> None:
        self._failures.pop(operation, None)

    def calls_to(self, operation: str) -> int:
        return self.calls.count(operation)

    # Internals

    def _record(self, operation: str) -> None:
        failure = self._failures.get(operation)
        if failure is not None:
            if failure.after <= 0:
                self.calls.append(operation)
                raise ProviderRejectedError(
                    f"{operation} failed: {failure.message}",
                    {"operation": operation, "code": failure.code},
                )
            failure.after -= 1
        self.calls.append(operation)

    def _reject(self, operation: str, code: str, message: str) -> ProviderRejectedError:
        return ProviderRejectedError(f"{operation} failed: {message}", {"operation": operation, "code": code})

    def _new_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter):017x}"

    def _get(self, store: dict[str, Descriptor], key: str, operation: str, code: str) -> Descriptor:
        if key not in store:
            raise self._reject(operation, code, f"The ID '{key}' does not exist")
        return store[key]

    @staticmethod
    def _matches(descriptor: Descriptor, filters: Filters | None) -> bool:
        for flt in filters or []:
            name, values = flt["Name"], flt["Values"]
            tags = {t["Key"]: t["Value"] for t in descriptor.get("Tags", [])}
            if name.startswith("tag:"):
                if tags.get(name[4:]) not in values:
                    return False
            elif name == "tag-key":
                if not any(key in values for key in tags):
                    return False
            elif name == "vpc-id":
                if descriptor.get("VpcId") not in values:
                    return False
            elif name == "attachment.vpc-id":
                if not any(a.get("VpcId") in values for a in descriptor.get("Attachments", [])):
                    return False
            else:
                raise ProviderRejectedError(
                    f"describe failed: The filter '{name}' is invalid",
                    {"code": "InvalidParameterValue"},
                )
        return True

    def _select(self, store: dict[str, Descriptor], filters: Filters | None) -> list[Descriptor]:
        return [copy.deepcopy(d) for d in store.values() if self._matches(d, filters)]

    def _live_nats(self) -> list[Descriptor]:
        return [n for n in self.nat_gateways.values() if n["State"] in LIVE_NAT_STATES]

    # VPCs

    async def create_vpc(self, cidr: str, tags: Tags) -> Descriptor:
        self._record("create_vpc")
        vpc_id = self._new_id("vpc")
        vpc = {
            "VpcId": vpc_id,
            "CidrBlock": cidr,
            "State": "available",
            "IsDefault": False,
            "Tags": list(tags),
        }
        self.vpcs[vpc_id] = vpc
        main_id = self._new_id("rtb")
        self.route_tables[main_id] = {
            "RouteTableId": main_id,
            "VpcId": vpc_id,
            "Routes": [{"DestinationCidrBlock": cidr, "GatewayId": "local", "State": "active"}],
            "Associations": [
                {
                    "Main": True,
                    "RouteTableAssociationId": self._new_id("rtbassoc"),
                    "RouteTableId": main_id,
                }
            ],
            "Tags": [],
        }
        return copy.deepcopy(vpc)

    async def describe_vpcs(self, filters: Filters) -> list[Descriptor]:
        self._record("describe_vpcs")
        return self._select(self.vpcs, filters)

    async def delete_vpc(self, vpc_id: str) -> None:
        self._record("delete_vpc")
        self._get(self.vpcs, vpc_id, "delete_vpc", "InvalidVpcID.NotFound")
        blocking = [s for s in self.subnets.values() if s["VpcId"] == vpc_id]
        blocking += [
            igw
            for igw in self.internet_gateways.values()
            if any(a["VpcId"] == vpc_id for a in igw["Attachments"])
        ]
        blocking += [
            rt
            for rt in self.route_tables.values()
            if rt["VpcId"] == vpc_id and not any(a.get("Main") for a in rt["Associations"])
        ]
        if blocking:
            raise self._reject(
                "delete_vpc",
                "DependencyViolation",
                f"The vpc '{vpc_id}' has dependencies and cannot be deleted.",
            )
        for rt_id in [k for k, rt in self.route_tables.items() if rt["VpcId"] == vpc_id]:
            del self.route_tables[rt_id]
        del self.vpcs[vpc_id]

    # Subnets

    async def create_subnet(self, vpc_id: str, az: str, cidr: str, tags: Tags) -> Descriptor:
        self._record("create_subnet")
        vpc = self._get(self.vpcs, vpc_id, "create_subnet", "InvalidVpcID.NotFound")
        block = ipaddress.ip_network(cidr)
        if not block.subnet_of(ipaddress.ip_network(vpc["CidrBlock"])):  # type: ignore[arg-type]
            raise self._reject("create_subnet", "InvalidSubnet.Range", f"The CIDR '{cidr}' is invalid.")
        for other in self.subnets.values():
            if other["VpcId"] == vpc_id and ipaddress.ip_network(other["CidrBlock"]).overlaps(block):
                raise self._reject("create_subnet", "InvalidSubnet.Conflict", f"The CIDR '{cidr}' conflicts with another subnet")
        subnet_id = self._new_id("subnet")
        subnet = {
            "SubnetId": subnet_id,
            "VpcId": vpc_id,
            "AvailabilityZone": az,
            "CidrBlock": cidr,
            "MapPublicIpOnLaunch": False,
            "State": "available",
            "Tags": list(tags),
        }
        self.subnets[subnet_id] = subnet
        return copy.deepcopy(subnet)

    async def modify_subnet_attribute(self, subnet_id: str, map_public_ip_on_launch: bool) -> None:
        self._record("modify_subnet_attribute")
        subnet = self._get(self.subnets, subnet_id, "modify_subnet_attribute", "InvalidSubnetID.NotFound")
        subnet["MapPublicIpOnLaunch"] = map_public_ip_on_launch

    async def describe_subnets(self, filters: Filters) -> list[Descriptor]:
        self._record("describe_subnets")
        return self._select(self.subnets, filters)

    async def delete_subnet(self, subnet_id: str) -> None:
        self._record("delete_subnet")
        self._get(self.subnets, subnet_id, "delete_subnet", "InvalidSubnetID.NotFound")
        if any(n["SubnetId"] == subnet_id for n in self._live_nats()):
            raise self._reject(
                "delete_subnet",
                "DependencyViolation",
                f"The subnet '{subnet_id}' has dependencies and cannot be deleted.",
            )
        for rt in self.route_tables.values():
            rt["Associations"] = [a for a in rt["Associations"] if a.get("SubnetId") != subnet_id]
        del self.subnets[subnet_id]

    # Route tables

    async def create_route_table(self, vpc_id: str, tags: Tags) -> Descriptor:
        self._record("create_route_table")
        vpc = self._get(self.vpcs, vpc_id, "create_route_table", "InvalidVpcID.NotFound")
        rt_id = self._new_id("rtb")
        route_table = {
            "RouteTableId": rt_id,
            "VpcId": vpc_id,
            "Routes": [{"DestinationCidrBlock": vpc["CidrBlock"], "GatewayId": "local", "State": "active"}],
            "Associations": [],
            "Tags": list(tags),
        }
        self.route_tables[rt_id] = route_table
        return copy.deepcopy(route_table)

    async def associate_route_table(self, route_table_id: str, subnet_id: str) -> str:
        self._record("associate_route_table")
        route_table = self._get(
            self.route_tables, route_table_id, "associate_route_table", "InvalidRouteTableID.NotFound"
        )
        self._get(self.subnets, subnet_id, "associate_route_table", "InvalidSubnetID.NotFound")
        for rt in self.route_tables.values():
            if any(a.get("SubnetId") == subnet_id for a in rt["Associations"]):
                raise self._reject(
                    "associate_route_table",
                    "Resource.AlreadyAssociated",
                    f"the specified association for route table {rt['RouteTableId']} conflicts",
                )
        association_id = self._new_id("rtbassoc")
        route_table["Associations"].append(
            {
                "Main": False,
                "RouteTableAssociationId": association_id,
                "RouteTableId": route_table_id,
                "SubnetId": subnet_id,
            }
        )
        return association_id

    async def disassociate_route_table(self, association_id: str) -> None:
        self._record("disassociate_route_table")
        for rt in self.route_tables.values():
            for association in rt["Associations"]:
                if association["RouteTableAssociationId"] == association_id:
                    if association.get("Main"):
                        raise self._reject(
                            "disassociate_route_table",
                            "InvalidParameterValue",
                            "cannot disassociate the main route table association",
                        )
                    rt["Associations"].remove(association)
                    return
        raise self._reject(
            "disassociate_route_table",
            "InvalidAssociationID.NotFound",
            f"The association ID '{association_id}' does not exist",
        )

    async def create_route(
        self,
        route_table_id: str,
        destination_cidr: str,
        *,
        gateway_id: str | None = None,
        nat_gateway_id: str | None = None,
    ) -> None:
        self._record("create_route")
        route_table = self._get(self.route_tables, route_table_id, "create_route", "InvalidRouteTableID.NotFound")
        if any(r["DestinationCidrBlock"] == destination_cidr for r in route_table["Routes"]):
            raise self._reject(
                "create_route",
                "RouteAlreadyExists",
                f"The route identified by {destination_cidr} already exists.",
            )
        route: dict[str, Any] = {"DestinationCidrBlock": destination_cidr, "State": "active"}
        if gateway_id:
            self._get(self.internet_gateways, gateway_id, "create_route", "InvalidGatewayID.NotFound")
            route["GatewayId"] = gateway_id
        if nat_gateway_id:
            self._get(self.nat_gateways, nat_gateway_id, "create_route", "InvalidNatGatewayID.NotFound")
            route["NatGatewayId"] = nat_gateway_id
        route_table["Routes"].append(route)

    async def delete_route(self, route_table_id: str, destination_cidr: str) -> None:
        self._record("delete_route")
        route_table = self._get(self.route_tables, route_table_id, "delete_route", "InvalidRouteTableID.NotFound")
        remaining = [r for r in route_table["Routes"] if r["DestinationCidrBlock"] != destination_cidr]
        if len(remaining) == len(route_table["Routes"]):
            raise self._reject(
                "delete_route",
                "InvalidRoute.NotFound",
                f"no route with destination-cidr-block {destination_cidr} in route table {route_table_id}",
            )
        route_table["Routes"] = remaining

    async def describe_route_tables(self, filters: Filters) -> list[Descriptor]:
        self._record("describe_route_tables")
        return self._select(self.route_tables, filters)

    async def delete_route_table(self, route_table_id: str) -> None:
        self._record("delete_route_table")
        route_table = self._get(
            self.route_tables, route_table_id, "delete_route_table", "InvalidRouteTableID.NotFound"
        )
        if route_table["Associations"]:
            raise self._reject(
                "delete_route_table",
                "DependencyViolation",
                f"The routeTable '{route_table_id}' has dependencies and cannot be deleted.",
            )
        del self.route_tables[route_table_id]

    # Internet gateways

    async def create_internet_gateway(self, tags: Tags) -> Descriptor:
        self._record("create_internet_gateway")
        igw_id = self._new_id("igw")
        igw = {"InternetGatewayId": igw_id, "Attachments": [], "Tags": list(tags)}
        self.internet_gateways[igw_id] = igw
        return copy.deepcopy(igw)

    async def attach_internet_gateway(self, internet_gateway_id: str, vpc_id: str) -> None:
        self._record("attach_internet_gateway")
        igw = self._get(
            self.internet_gateways, internet_gateway_id, "attach_internet_gateway", "InvalidInternetGatewayID.NotFound"
        )
        self._get(self.vpcs, vpc_id, "attach_internet_gateway", "InvalidVpcID.NotFound")
        if igw["Attachments"]:
            raise self._reject("attach_internet_gateway", "Resource.AlreadyAssociated", "already attached")
        igw["Attachments"] = [{"VpcId": vpc_id, "State": "available"}]

    async def detach_internet_gateway(self, internet_gateway_id: str, vpc_id: str) -> None:
        self._record("detach_internet_gateway")
        igw = self._get(
            self.internet_gateways, internet_gateway_id, "detach_internet_gateway", "InvalidInternetGatewayID.NotFound"
        )
        if not any(a["VpcId"] == vpc_id for a in igw["Attachments"]):
            raise self._reject(
                "detach_internet_gateway",
                "Gateway.NotAttached",
                f"resource {internet_gateway_id} is not attached to network {vpc_id}",
            )
        igw["Attachments"] = []

    async def describe_internet_gateways(self, filters: Filters) -> list[Descriptor]:
        self._record("describe_internet_gateways")
        return self._select(self.internet_gateways, filters)

    async def delete_internet_gateway(self, internet_gateway_id: str) -> None:
        self._record("delete_internet_gateway")
        igw = self._get(
            self.internet_gateways, internet_gateway_id, "delete_internet_gateway", "InvalidInternetGatewayID.NotFound"
        )
        if igw["Attachments"]:
            raise self._reject(
                "delete_internet_gateway",
                "DependencyViolation",
                f"The internetGateway '{internet_gateway_id}' has dependencies and cannot be deleted.",
            )
        del self.internet_gateways[internet_gateway_id]

    # Elastic IPs

    async def allocate_address(self, tags: Tags) -> Descriptor:
        self._record("allocate_address")
        allocation_id = self._new_id("eipalloc")
        address = {
            "AllocationId": allocation_id,
            "PublicIp": f"203.0.113.{len(self.addresses) + 1}",
            "Domain": "vpc",
            "Tags": list(tags),
        }
        self.addresses[allocation_id] = address
        return copy.deepcopy(address)

    async def release_address(self, allocation_id: str) -> None:
        self._record("release_address")
        self._get(self.addresses, allocation_id, "release_address", "InvalidAllocationID.NotFound")
        for nat in self._live_nats():
            if any(a["AllocationId"] == allocation_id for a in nat["NatGatewayAddresses"]):
                raise self._reject(
                    "release_address",
                    "InvalidIPAddress.InUse",
                    f"Address {allocation_id} is in use by {nat['NatGatewayId']}",
                )
        del self.addresses[allocation_id]

    # NAT gateways

    async def create_nat_gateway(self, subnet_id: str, allocation_id: str, tags: Tags) -> Descriptor:
        self._record("create_nat_gateway")
        subnet = self._get(self.subnets, subnet_id, "create_nat_gateway", "InvalidSubnetID.NotFound")
        address = self._get(self.addresses, allocation_id, "create_nat_gateway", "InvalidAllocationID.NotFound")
        nat_id = self._new_id("nat")
        nat = {
            "NatGatewayId": nat_id,
            "SubnetId": subnet_id,
            "VpcId": subnet["VpcId"],
            "State": "pending",
            "NatGatewayAddresses": [
                {"AllocationId": allocation_id, "PublicIp": address["PublicIp"]},
            ],
            "Tags": list(tags),
        }
        self.nat_gateways[nat_id] = nat
        self._nat_describes[nat_id] = 0
        return copy.deepcopy(nat)

    def _advance_nat(self, nat: Descriptor) -> None:
        nat_id = nat["NatGatewayId"]
        self._nat_describes[nat_id] = self._nat_describes.get(nat_id, 0) + 1
        if nat["State"] == "pending":
            if self.nat_fails:
                nat["State"] = "failed"
                nat["FailureCode"] = "InsufficientFreeAddressesInSubnet"
                nat["FailureMessage"] = "Subnet has insufficient free addresses to create this NAT gateway"
            elif self.nat_ready_after is not None and self._nat_describes[nat_id] >= self.nat_ready_after:
                nat["State"] = "available"
        elif nat["State"] == "deleting":
            nat["State"] = "deleted"

    async def describe_nat_gateways(
        self,
        filters: Filters | None = None,
        nat_gateway_ids: list[str] | None = None,
    ) -> list[Descriptor]:
        self._record("describe_nat_gateways")
        if nat_gateway_ids:
            for nat_id in nat_gateway_ids:
                self._get(self.nat_gateways, nat_id, "describe_nat_gateways", "NatGatewayNotFound")
        candidates = [
            nat
            for nat in self.nat_gateways.values()
            if not nat_gateway_ids or nat["NatGatewayId"] in nat_gateway_ids
        ]
        for nat in candidates:
            self._advance_nat(nat)
        return [copy.deepcopy(nat) for nat in candidates if self._matches(nat, filters)]

    async def delete_nat_gateway(self, nat_gateway_id: str) -> None:
        self._record("delete_nat_gateway")
        nat = self._get(self.nat_gateways, nat_gateway_id, "delete_nat_gateway", "NatGatewayNotFound")
        if nat["State"] in ("available", "pending", "failed"):
            nat["State"] = "deleting"
