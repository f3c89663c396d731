"""
Tag-based ownership for VPC resources.

The managed-by tag plus the ``Name`` tag on the live resources are the only
record of what vpcctl owns. There is no local state: discovery queries the
provider with the filters built here.
"""

from __future__ import annotations

from typing import Any

from vpcctl.vpc.naming import SubnetType

MANAGED_BY_TAG_KEY = "CreatedBy"
MANAGED_BY_TAG_VALUE = "vpcctl"
NAME_TAG_KEY = "Name"
TYPE_TAG_KEY = "Type"


def build_tags(
    name: str,
    user_tags: dict[str, str] | None = None,
    kind: SubnetType | None = None,
) -> list[dict[str, str]]:
    """
    Build the tag list for a managed resource.

    User tags come first and are overridden by the ownership tags, so a user
    tag can never hide a resource from discovery.

    Args:
        name: Value of the ``Name`` tag
        user_tags: Additional user-supplied tags
        kind: Subnet/route table classification for the ``Type`` tag

    Returns:
        EC2-style list of ``{"Key": ..., "Value": ...}`` dicts
    """
    merged: dict[str, str] = dict(user_tags or {})
    merged[MANAGED_BY_TAG_KEY] = MANAGED_BY_TAG_VALUE
    merged[NAME_TAG_KEY] = name
    if kind is not None:
        merged[TYPE_TAG_KEY] = str(kind)
    return [{"Key": key, "Value": value} for key, value in merged.items()]


def tag_value(descriptor: dict[str, Any] | None, key: str) -> str | None:
    """Return the value of tag ``key`` on a provider descriptor, if any."""
    if not descriptor:
        return None
    for tag in descriptor.get("Tags") or []:
        if tag.get("Key") == key:
            return tag.get("Value")
    return None


def managed_filters() -> list[dict[str, Any]]:
    return [{"Name": f"tag:{MANAGED_BY_TAG_KEY}", "Values": [MANAGED_BY_TAG_VALUE]}]


def name_filter(name: str) -> dict[str, Any]:
    return {"Name": f"tag:{NAME_TAG_KEY}", "Values": [name]}


def name_key_filter() -> dict[str, Any]:
    return {"Name": "tag-key", "Values": [NAME_TAG_KEY]}


def vpc_filter(vpc_id: str) -> dict[str, Any]:
    return {"Name": "vpc-id", "Values": [vpc_id]}


def attachment_filter(vpc_id: str) -> dict[str, Any]:
    return {"Name": "attachment.vpc-id", "Values": [vpc_id]}
