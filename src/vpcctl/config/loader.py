"""
Configuration file loading and merging.

A config file is YAML with the same keys as the command-line options:

    name: my-vpc
    cidr: 10.1.0.0/16
    tags:
      team: platform
    subnets:
      - az: us-west-2a
        cidr: 10.1.0.0/20
        public: true

Values set in the file override the command line.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml

from vpcctl.core.errors import ConfigurationError, ValidationError
from vpcctl.vpc.models import DEFAULT_CIDR, NetworkSpec, SubnetSpec

logger = structlog.get_logger()


def load_config_file(path: str | Path) -> dict[str, Any]:
    """
    Read a YAML config file.

    Raises:
        ConfigurationError: file missing, unreadable, not YAML, or not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}", {"path": str(path)})

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}", {"path": str(path)}) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}", {"path": str(path)}) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping, got {type(data).__name__}",
            {"path": str(path)},
        )

    logger.debug("loaded_config_file", path=str(path), keys=sorted(data))
    return data


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, dict)) and not value)


def merge_options(cli_options: dict[str, Any], file_options: dict[str, Any] | None) -> dict[str, Any]:
    """Merge file options over CLI options; empty file values leave the CLI value in place."""
    merged = dict(cli_options)
    for key, value in (file_options or {}).items():
        if not _is_empty(value):
            merged[key] = value
    return merged


def parse_tags(value: str | None) -> dict[str, str]:
    """
    Parse ``k=v,k2=v2`` into a dict.

    Raises:
        ValidationError: a pair has no ``=`` or an empty key
    """
    tags: dict[str, str] = {}
    if not value:
        return tags
    for pair in value.split(","):
        pair = pair.strip()
        if not pair:
            continue
        key, sep, tag_value = pair.partition("=")
        if not sep or not key.strip():
            raise ValidationError(f"Invalid tag {pair!r}, expected key=value", {"tag": pair})
        tags[key.strip()] = tag_value.strip()
    return tags


def _to_subnet_spec(entry: Any, index: int) -> SubnetSpec:
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Subnet #{index} must be a mapping", {"index": index})
    missing = [key for key in ("az", "cidr") if not entry.get(key)]
    if missing:
        raise ConfigurationError(
            f"Subnet #{index} is missing {', '.join(missing)}",
            {"index": index},
        )
    return SubnetSpec(az=str(entry["az"]), cidr=str(entry["cidr"]), public=bool(entry.get("public", False)))


def to_network_spec(options: dict[str, Any]) -> NetworkSpec:
    """
    Build a NetworkSpec from merged options.

    Raises:
        ConfigurationError: ``tags`` or ``subnets`` has the wrong shape
    """
    tags = options.get("tags") or {}
    if not isinstance(tags, dict):
        raise ConfigurationError("tags must be a mapping of key to value")

    subnets = options.get("subnets") or []
    if not isinstance(subnets, list):
        raise ConfigurationError("subnets must be a list")

    return NetworkSpec(
        name=str(options.get("name") or ""),
        cidr=str(options.get("cidr") or DEFAULT_CIDR),
        subnets=[_to_subnet_spec(entry, i) for i, entry in enumerate(subnets)],
        tags={str(k): str(v) for k, v in tags.items()},
    )
