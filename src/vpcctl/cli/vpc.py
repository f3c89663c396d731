"""
VPC commands: create, get, delete, list.

Each command takes the merged option mapping (command line overridden by
the config file) and returns an exit code.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from rich.markup import escape

from vpcctl.cli.output import pretty_encode, render_details
from vpcctl.cli.ux import console, error, info, success
from vpcctl.config import get_settings, to_network_spec
from vpcctl.config.settings import Settings
from vpcctl.core.errors import ExitCode, ValidationError, format_error_message, main_with_error_handling
from vpcctl.providers import BaseEC2Provider, EC2Provider
from vpcctl.vpc.manager import VPCManager
from vpcctl.vpc.models import OperationResult

T = TypeVar("T")


def run_async(coro: Awaitable[T]) -> T:
    """Run an async operation from a sync CLI command."""
    return asyncio.run(coro)  # type: ignore[arg-type]


def build_provider(settings: Settings) -> BaseEC2Provider:
    return EC2Provider(region=settings.aws_region, profile=settings.aws_profile)


async def _with_manager(operation: Callable[[VPCManager], Awaitable[T]]) -> T:
    settings = get_settings()
    async with build_provider(settings) as provider:
        manager = VPCManager(
            provider,
            wait_timeout=settings.nat_gateway_timeout,
            poll_interval=settings.nat_gateway_poll_interval,
        )
        return await operation(manager)


def _require_name(options: dict[str, Any]) -> str:
    name = options.get("name")
    if not name:
        raise ValidationError("A VPC name is required (-n/--name or 'name' in the config file)")
    return str(name)


def _report_failure(result: OperationResult) -> int:
    err = result.error
    if err is None:
        return ExitCode.SUCCESS
    print(render_details(result.details))
    error(escape(format_error_message(err)))
    return err.exit_code


@main_with_error_handling()
def create_command(options: dict[str, Any]) -> int:
    """Create a VPC and print its resources as JSON."""
    spec = to_network_spec(options)
    info(f"Creating VPC {spec.name}")

    result = run_async(_with_manager(lambda manager: manager.create(spec)))
    if not result.success:
        return _report_failure(result)

    print(render_details(result.details))
    success(f"Created VPC {spec.name}")
    return ExitCode.SUCCESS


@main_with_error_handling()
def get_command(options: dict[str, Any]) -> int:
    """Print the resources of a VPC as JSON or an eksctl stanza."""
    name = _require_name(options)
    fmt = str(options.get("output") or "json")

    result = run_async(_with_manager(lambda manager: manager.get(name)))
    if not result.success:
        return _report_failure(result)

    print(render_details(result.details, fmt))
    return ExitCode.SUCCESS


@main_with_error_handling()
def delete_command(options: dict[str, Any]) -> int:
    """Delete every resource of a VPC."""
    name = _require_name(options)
    info(f"Deleting VPC {name}")

    result = run_async(_with_manager(lambda manager: manager.delete(name)))
    if not result.success:
        return _report_failure(result)

    print(f"Deleted VPC {name}")
    return ExitCode.SUCCESS


@main_with_error_handling()
def list_command(options: dict[str, Any]) -> int:
    """Print the name of every managed VPC, one per line."""
    names = run_async(_with_manager(lambda manager: manager.list()))
    for name in names:
        print(name)
    return ExitCode.SUCCESS


def echo_options(options: dict[str, Any]) -> None:
    """Show the merged options on the status console."""
    info("Options:")
    console.print(pretty_encode(options), markup=False, highlight=False)
