"""
vpcctl configuration.

- Pydantic-based settings (environment variables, .env files)
- YAML config files merged over command-line options
"""

from vpcctl.config.loader import load_config_file, merge_options, parse_tags, to_network_spec
from vpcctl.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "load_config_file",
    "merge_options",
    "parse_tags",
    "to_network_spec",
]
