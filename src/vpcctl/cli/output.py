"""Rendering of resource sets for stdout."""

from __future__ import annotations

import json
from typing import Any

from vpcctl.core.errors import ValidationError
from vpcctl.vpc.models import ManagedResourceSet

OUTPUT_FORMATS = ("json", "eksctl")


def pretty_encode(data: Any) -> str:
    """JSON with 4-space indent; datetimes and other non-JSON values become strings."""
    return json.dumps(data, indent=4, default=str)


def render_details(details: ManagedResourceSet, fmt: str = "json") -> str:
    """
    Render a resource set as JSON or as an eksctl ``vpc`` stanza.

    Raises:
        ValidationError: unknown format
    """
    if fmt == "json":
        return pretty_encode(details.to_dict())
    if fmt == "eksctl":
        return details.to_eksctl()
    raise ValidationError(f"Unknown output format: {fmt}", {"format": fmt})
