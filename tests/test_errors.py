"""Tests for the error taxonomy and CLI error handling."""

import pytest
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


@pytest.mark.parametrize(
    "error_cls,code",
    [
        (ConfigurationError, 10),
        (ProviderRejectedError, 11),
        (ValidationError, 12),
        (NotFoundError, 13),
        (PreconditionError, 14),
        (WaitTimeoutError, 15),
        (AmbiguousError, 16),
        (VpcctlError, 127),
    ],
)
def test_exit_codes(error_cls, code):
    assert error_cls("boom").exit_code == code


def test_error_details_default_to_empty():
    error = NotFoundError("VPC x not found")

    assert error.message == "VPC x not found"
    assert error.details == {}
    assert str(error) == "VPC x not found"


def test_format_error_message():
    error = ProviderRejectedError("create_vpc failed", {"operation": "create_vpc", "code": "VpcLimitExceeded"})

    assert format_error_message(error) == "create_vpc failed (operation=create_vpc, code=VpcLimitExceeded)"
    assert format_error_message(NotFoundError("gone")) == "gone"


def test_main_with_error_handling_passes_through_exit_code():
    @main_with_error_handling(log_errors=False)
    def command() -> int:
        return 0

    assert command() == 0


def test_main_with_error_handling_maps_vpcctl_errors():
    @main_with_error_handling(log_errors=False)
    def command() -> int:
        raise PreconditionError("no public subnet")

    assert command() == ExitCode.PRECONDITION_FAILED


def test_main_with_error_handling_maps_keyboard_interrupt():
    @main_with_error_handling(log_errors=False)
    def command() -> int:
        raise KeyboardInterrupt

    assert command() == 130


def test_main_with_error_handling_maps_unexpected_errors():
    @main_with_error_handling()
    def command() -> int:
        raise RuntimeError("unexpected")

    assert command() == ExitCode.UNKNOWN_ERROR
