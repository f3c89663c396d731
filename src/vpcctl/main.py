"""
vpcctl command-line entry point.

    vpcctl [--verbose] [--version] [-f FILE] create [-n NAME] [-c CIDR] [-t k=v,...]
    vpcctl [--verbose] [-f FILE] get -n NAME [-o json|eksctl]
    vpcctl [--verbose] [-f FILE] delete -n NAME
    vpcctl [--verbose] list
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from typing import Any, Callable, Sequence

from vpcctl import __version__
from vpcctl.cli.output import OUTPUT_FORMATS
from vpcctl.cli.vpc import create_command, delete_command, echo_options, get_command, list_command
from vpcctl.config import get_settings, load_config_file, merge_options, parse_tags
from vpcctl.core.errors import main_with_error_handling
from vpcctl.logging import configure_logging
from vpcctl.vpc.models import DEFAULT_CIDR

COMMANDS: dict[str, Callable[[dict[str, Any]], int]] = {
    "create": create_command,
    "get": get_command,
    "delete": delete_command,
    "list": list_command,
}


def generated_name() -> str:
    return f"vpcctl-generated-{random.randint(0, 2**31 - 1)}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vpcctl", description="Create, inspect and delete tagged AWS VPCs")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show progress logs and the merged options")
    parser.add_argument("-f", "--file", help="YAML config file; its values override command-line flags")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser("create", help="Create a VPC")
    create_parser.add_argument("-n", "--name", default=None, help="VPC name (default: vpcctl-generated-<random>)")
    create_parser.add_argument("-c", "--cidr", default=DEFAULT_CIDR, help=f"VPC CIDR block (default: {DEFAULT_CIDR})")
    create_parser.add_argument("-t", "--tags", default="", help="Extra tags as key=value,key2=value2")

    get_parser = subparsers.add_parser("get", help="Show the resources of a VPC")
    get_parser.add_argument("-n", "--name", help="VPC name")
    get_parser.add_argument("-o", "--output", choices=OUTPUT_FORMATS, default="json", help="Output format")

    delete_parser = subparsers.add_parser("delete", help="Delete a VPC and everything in it")
    delete_parser.add_argument("-n", "--name", help="VPC name")

    subparsers.add_parser("list", help="List VPCs created by vpcctl")

    return parser


def build_options(args: argparse.Namespace) -> dict[str, Any]:
    """Collect command-line options and merge the config file over them."""
    options: dict[str, Any] = {}
    if args.command == "create":
        options = {
            "name": args.name or generated_name(),
            "cidr": args.cidr,
            "tags": parse_tags(args.tags),
            "subnets": [],
        }
    elif args.command == "get":
        options = {"name": args.name, "output": args.output}
    elif args.command == "delete":
        options = {"name": args.name}

    if args.file:
        options = merge_options(options, load_config_file(args.file))
    return options


@main_with_error_handling()
def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    configure_logging(settings.log_level if args.verbose else logging.WARNING)

    options = build_options(args)
    if args.verbose:
        echo_options(options)
    return COMMANDS[args.command](options)


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
