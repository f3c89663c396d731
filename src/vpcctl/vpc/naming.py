"""
Naming conventions for VPC resources.

Every resource is named after the logical VPC name so the console view
groups them together.
"""

from __future__ import annotations

from enum import StrEnum


class SubnetType(StrEnum):
    """Public/private classification of subnets and route tables."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


def subnet_type(public: bool) -> SubnetType:
    return SubnetType.PUBLIC if public else SubnetType.PRIVATE


def get_subnet_name(name: str, az: str, kind: SubnetType) -> str:
    """
    Get subnet name.

    Pattern: {name}-{az}-{type}
    Example: my-vpc-us-west-2a-PUBLIC
    """
    return f"{name}-{az}-{kind}"


def get_route_table_name(name: str, kind: SubnetType) -> str:
    """
    Get route table name.

    Pattern: {name}-{type}
    Example: my-vpc-PRIVATE
    """
    return f"{name}-{kind}"
