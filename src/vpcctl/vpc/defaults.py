"""
Default subnet layout used when a create request names no subnets.
"""

from __future__ import annotations

import ipaddress

from vpcctl.core.errors import ValidationError
from vpcctl.vpc.models import DEFAULT_CIDR, SubnetSpec

DEFAULT_ZONE_SUFFIXES = ("a", "b", "c")


def default_subnets(region: str, cidr: str = DEFAULT_CIDR) -> list[SubnetSpec]:
    """
    Lay out three private and three public subnets across the first three zones.

    For a /16 block the private subnets are /18s (16,382 IPs) and the public
    subnets are /20s (4,094 IPs) carved out of the fourth /18:

        10.0.0.0/18    {region}a  private
        10.0.64.0/18   {region}b  private
        10.0.128.0/18  {region}c  private
        10.0.192.0/20  {region}a  public
        10.0.208.0/20  {region}b  public
        10.0.224.0/20  {region}c  public

    Other block sizes keep the same shape (prefix + 2 and prefix + 4).

    Args:
        region: AWS region, used as the zone prefix
        cidr: VPC block to partition

    Returns:
        Six subnet specs, private ones first
    """
    try:
        network = ipaddress.ip_network(cidr, strict=True)
    except ValueError as exc:
        raise ValidationError(f"VPC CIDR is not a valid CIDR block: {cidr!r}", {"cidr": cidr}) from exc
    if network.prefixlen + 4 > network.max_prefixlen:
        raise ValidationError(f"VPC CIDR {cidr} is too small for the default subnet layout")

    quarters = list(network.subnets(prefixlen_diff=2))
    public_blocks = list(quarters[3].subnets(prefixlen_diff=2))

    zones = [f"{region}{suffix}" for suffix in DEFAULT_ZONE_SUFFIXES]
    private = [SubnetSpec(az=az, cidr=str(block), public=False) for az, block in zip(zones, quarters)]
    public = [SubnetSpec(az=az, cidr=str(block), public=True) for az, block in zip(zones, public_blocks)]
    return private + public
