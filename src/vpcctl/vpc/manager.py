"""
Entry point tying a provider to the create/get/delete/list operations.
"""

from __future__ import annotations

from vpcctl.providers.base import BaseEC2Provider
from vpcctl.vpc import create as create_ops
from vpcctl.vpc import delete as delete_ops
from vpcctl.vpc import discovery
from vpcctl.vpc.models import NetworkSpec, OperationResult
from vpcctl.vpc.waiters import DEFAULT_POLL_INTERVAL, DEFAULT_WAIT_TIMEOUT


class VPCManager:
    """
    Manages VPCs owned by vpcctl.

    Holds no state beyond the provider and wait settings; every operation
    rediscovers resources by tag.
    """

    def __init__(
        self,
        provider: BaseEC2Provider,
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.provider = provider
        self.wait_timeout = wait_timeout
        self.poll_interval = poll_interval

    async def create(self, spec: NetworkSpec) -> OperationResult:
        return await create_ops.create(
            self.provider,
            spec,
            wait_timeout=self.wait_timeout,
            poll_interval=self.poll_interval,
        )

    async def get(self, name: str) -> OperationResult:
        return await discovery.get(self.provider, name)

    async def delete(self, name: str) -> OperationResult:
        return await delete_ops.delete(
            self.provider,
            name,
            wait_timeout=self.wait_timeout,
            poll_interval=self.poll_interval,
        )

    async def list(self) -> list[str]:
        return await discovery.list_names(self.provider)
