"""
Data model shared by the create, get and delete orchestrators.

Resources are carried as the provider's own descriptors (the boto3 EC2
response dicts), so callers see every attribute the provider reports.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any

import structlog
import yaml

from vpcctl.core.errors import ValidationError, VpcctlError

logger = structlog.get_logger()

DEFAULT_CIDR = "10.0.0.0/16"


def _parse_network(cidr: str, what: str) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
    try:
        return ipaddress.ip_network(cidr, strict=True)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{what} is not a valid CIDR block: {cidr!r}", {"cidr": cidr}) from exc


@dataclass
class SubnetSpec:
    """Desired subnet: zone, address block and public/private flag."""

    az: str
    cidr: str
    public: bool = False


@dataclass
class NetworkSpec:
    """Desired state of one logical VPC."""

    name: str
    cidr: str = DEFAULT_CIDR
    subnets: list[SubnetSpec] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """
        Check the spec before any provider call is made.

        Raises:
            ValidationError: empty name, malformed CIDR or duplicate subnet CIDR
        """
        if not self.name or not self.name.strip():
            raise ValidationError("VPC name must not be empty")

        network = _parse_network(self.cidr, "VPC CIDR")

        seen: set[str] = set()
        for subnet in self.subnets:
            block = _parse_network(subnet.cidr, f"Subnet CIDR ({subnet.az})")
            if subnet.cidr in seen:
                raise ValidationError(
                    f"Duplicate subnet CIDR {subnet.cidr}",
                    {"cidr": subnet.cidr},
                )
            seen.add(subnet.cidr)
            if block.version != network.version or not block.subnet_of(network):  # type: ignore[arg-type]
                logger.warning(
                    "subnet_outside_vpc_cidr",
                    vpc_name=self.name,
                    vpc_cidr=self.cidr,
                    subnet_cidr=subnet.cidr,
                )

    @property
    def has_public_subnet(self) -> bool:
        return any(subnet.public for subnet in self.subnets)


@dataclass
class ManagedResourceSet:
    """
    Resources belonging to one logical VPC.

    Built incrementally by every operation, so any field may be empty when
    an operation stopped part way through.
    """

    network: dict[str, Any] | None = None
    subnets: list[dict[str, Any]] = field(default_factory=list)
    route_tables: list[dict[str, Any]] = field(default_factory=list)
    internet_gateway: dict[str, Any] | None = None
    nat_gateway: dict[str, Any] | None = None

    @property
    def network_id(self) -> str | None:
        return self.network.get("VpcId") if self.network else None

    @property
    def subnet_ids(self) -> list[str]:
        return [subnet["SubnetId"] for subnet in self.subnets]

    @property
    def route_table_ids(self) -> list[str]:
        return [rt["RouteTableId"] for rt in self.route_tables]

    @property
    def internet_gateway_id(self) -> str | None:
        return self.internet_gateway.get("InternetGatewayId") if self.internet_gateway else None

    @property
    def nat_gateway_id(self) -> str | None:
        return self.nat_gateway.get("NatGatewayId") if self.nat_gateway else None

    def public_subnets(self) -> list[dict[str, Any]]:
        return [s for s in self.subnets if s.get("MapPublicIpOnLaunch")]

    def private_subnets(self) -> list[dict[str, Any]]:
        return [s for s in self.subnets if not s.get("MapPublicIpOnLaunch")]

    def to_dict(self) -> dict[str, Any]:
        return {
            "VPC": self.network,
            "Subnets": self.subnets,
            "RouteTables": self.route_tables,
            "InternetGateway": self.internet_gateway,
            "NATGateway": self.nat_gateway,
        }

    def to_eksctl(self) -> str:
        """
        Render the ``vpc`` section of an eksctl ClusterConfig.

        Subnets are keyed by availability zone; a second subnet of the same
        type in one zone is keyed by its subnet id instead.
        """
        subnets: dict[str, dict[str, Any]] = {"private": {}, "public": {}}
        for subnet in self.subnets:
            group = subnets["public" if subnet.get("MapPublicIpOnLaunch") else "private"]
            az = subnet.get("AvailabilityZone", "")
            key = az if az and az not in group else subnet["SubnetId"]
            group[key] = {"id": subnet["SubnetId"], "az": az, "cidr": subnet.get("CidrBlock")}

        vpc: dict[str, Any] = {
            "id": self.network_id,
            "cidr": self.network.get("CidrBlock") if self.network else None,
            "subnets": {kind: entries for kind, entries in subnets.items() if entries},
        }
        return yaml.safe_dump({"vpc": vpc}, default_flow_style=False, sort_keys=False)


@dataclass
class OperationResult:
    """Outcome of create/get/delete: what exists so far plus the failure, if any."""

    details: ManagedResourceSet = field(default_factory=ManagedResourceSet)
    error: VpcctlError | None = None

    @property
    def success(self) -> bool:
        return self.error is None
