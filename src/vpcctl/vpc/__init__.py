"""VPC lifecycle: specs, tag-based discovery and the create/delete orchestrators."""

from vpcctl.vpc.defaults import default_subnets
from vpcctl.vpc.manager import VPCManager
from vpcctl.vpc.models import (
    DEFAULT_CIDR,
    ManagedResourceSet,
    NetworkSpec,
    OperationResult,
    SubnetSpec,
)
from vpcctl.vpc.naming import SubnetType

__all__ = [
    "DEFAULT_CIDR",
    "ManagedResourceSet",
    "NetworkSpec",
    "OperationResult",
    "SubnetSpec",
    "SubnetType",
    "VPCManager",
    "default_subnets",
]
