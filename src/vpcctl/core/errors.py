"""
Unified error handling for vpcctl.

Every failure the orchestrators report is a ``VpcctlError`` subclass. The
orchestrators return these alongside the partially built resource set rather
than raising them; the CLI maps them onto exit codes.

Exit Codes:
- 0: Success
- 10: Configuration error
- 11: Provider rejected a call
- 12: Validation error (bad input spec)
- 13: Resource not found
- 14: Precondition failed
- 15: Timed out waiting for a resource state
- 16: Ambiguous discovery result
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    VALIDATION_ERROR = 12
    NOT_FOUND = 13
    PRECONDITION_FAILED = 14
    TIMEOUT = 15
    AMBIGUOUS = 16
    UNKNOWN_ERROR = 127


class VpcctlError(Exception):
    """Base exception for vpcctl errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(VpcctlError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class ValidationError(VpcctlError):
    """Raised when a network spec is malformed."""

    exit_code = ExitCode.VALIDATION_ERROR


class NotFoundError(VpcctlError):
    """Discovery found no match for a required resource."""

    exit_code = ExitCode.NOT_FOUND


class AmbiguousError(VpcctlError):
    """Discovery found more than one network for a single name."""

    exit_code = ExitCode.AMBIGUOUS


class PreconditionError(VpcctlError):
    """A structural requirement of a step is unmet."""

    exit_code = ExitCode.PRECONDITION_FAILED


class ProviderRejectedError(VpcctlError):
    """The provider call itself failed (invalid parameters, quota, permission)."""

    exit_code = ExitCode.PROVIDER_ERROR


class WaitTimeoutError(VpcctlError):
    """A bounded wait for a resource state did not complete in time."""

    exit_code = ExitCode.TIMEOUT


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI command functions that provides unified error handling.

    Catches exceptions and converts them to appropriate exit codes with
    consistent error reporting.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - VpcctlError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except VpcctlError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130  # Standard exit code for SIGINT
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: VpcctlError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
