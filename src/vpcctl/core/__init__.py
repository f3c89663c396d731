"""Core modules for vpcctl - centralized error definitions."""

from vpcctl.core.errors import (
    AmbiguousError,
    ConfigurationError,
    ExitCode,
    NotFoundError,
    PreconditionError,
    ProviderRejectedError,
    ValidationError,
    VpcctlError,
    WaitTimeoutError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "VpcctlError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "AmbiguousError",
    "PreconditionError",
    "ProviderRejectedError",
    "WaitTimeoutError",
    "main_with_error_handling",
    "format_error_message",
]
