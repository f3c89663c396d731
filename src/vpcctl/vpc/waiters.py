"""
Bounded polling for NAT gateway state transitions.

NAT gateways are the only resource whose creation and deletion complete
asynchronously. Waits poll the provider on a fixed interval up to a ceiling;
cancelling the surrounding task stops the poll immediately. No sleep is
started that would end past the ceiling.
"""

from __future__ import annotations

from typing import Any

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_before_delay,
    wait_fixed,
)

from vpcctl.core.errors import ProviderRejectedError, WaitTimeoutError
from vpcctl.providers.base import BaseEC2Provider

logger = structlog.get_logger()

DEFAULT_WAIT_TIMEOUT = 300.0
DEFAULT_POLL_INTERVAL = 15.0

NAT_AVAILABLE = "available"
NAT_DELETED = "deleted"

# States from which a NAT gateway can no longer reach "available"
_UNREACHABLE_FROM = {NAT_AVAILABLE: {"failed", "deleting", "deleted"}}


class _NotReady(Exception):
    def __init__(self, state: str | None):
        super().__init__(state)
        self.state = state


def _log_poll(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.debug(
        "waiting_for_nat_gateway",
        attempt=retry_state.attempt_number,
        state=getattr(exc, "state", None),
    )


async def wait_for_nat_gateway(
    provider: BaseEC2Provider,
    nat_gateway_id: str,
    target_state: str,
    *,
    timeout: float = DEFAULT_WAIT_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> dict[str, Any] | None:
    """
    Poll a NAT gateway until it reaches ``target_state``.

    Args:
        provider: EC2 provider
        nat_gateway_id: NAT gateway to watch
        target_state: "available" or "deleted"
        timeout: Ceiling in seconds
        poll_interval: Seconds between describes

    Returns:
        The last descriptor seen, or None if the gateway vanished while
        waiting for deletion

    Raises:
        WaitTimeoutError: the state was not reached within ``timeout``
        ProviderRejectedError: a describe failed, or the gateway moved to a
            state from which the target is unreachable
    """
    last_seen: dict[str, Any] | None = None
    unreachable = _UNREACHABLE_FROM.get(target_state, set())

    try:
        async for attempt in AsyncRetrying(
            stop=stop_before_delay(timeout),
            wait=wait_fixed(poll_interval),
            retry=retry_if_exception_type(_NotReady),
            before_sleep=_log_poll,
        ):
            with attempt:
                try:
                    gateways = await provider.describe_nat_gateways(nat_gateway_ids=[nat_gateway_id])
                except ProviderRejectedError as exc:
                    if target_state == NAT_DELETED and exc.details.get("code") == "NatGatewayNotFound":
                        return last_seen
                    raise

                if not gateways:
                    if target_state == NAT_DELETED:
                        return last_seen
                    raise _NotReady(None)

                last_seen = gateways[0]
                state = last_seen.get("State")
                if state == target_state:
                    return last_seen
                if state in unreachable:
                    raise ProviderRejectedError(
                        f"NAT gateway {nat_gateway_id} entered state {state}: "
                        f"{last_seen.get('FailureMessage', 'no failure message')}",
                        {
                            "nat_gateway_id": nat_gateway_id,
                            "state": state,
                            "code": last_seen.get("FailureCode", "Unknown"),
                        },
                    )
                raise _NotReady(state)
    except RetryError as exc:
        raise WaitTimeoutError(
            f"Timed out after {timeout:g}s waiting for NAT gateway {nat_gateway_id} to become {target_state}",
            {
                "nat_gateway_id": nat_gateway_id,
                "state": last_seen.get("State") if last_seen else None,
            },
        ) from exc
    return last_seen
