"""EC2 provider capabilities consumed by the orchestrators."""

from vpcctl.providers.base import BaseEC2Provider
from vpcctl.providers.ec2 import EC2Provider
from vpcctl.providers.memory import InMemoryEC2Provider

__all__ = [
    "BaseEC2Provider",
    "EC2Provider",
    "InMemoryEC2Provider",
]
