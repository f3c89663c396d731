"""Root test configuration."""

import logging

import pytest
import structlog
from vpcctl.config.settings import get_settings
from vpcctl.providers.memory import InMemoryEC2Provider
from vpcctl.vpc.models import NetworkSpec, SubnetSpec


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def provider():
    return InMemoryEC2Provider(region="us-west-2")


@pytest.fixture
def two_zone_spec():
    """One public and one private subnet in each of two zones."""
    return NetworkSpec(
        name="test-vpc",
        cidr="10.0.0.0/16",
        subnets=[
            SubnetSpec(az="us-west-2a", cidr="10.0.0.0/24", public=True),
            SubnetSpec(az="us-west-2b", cidr="10.0.1.0/24", public=True),
            SubnetSpec(az="us-west-2a", cidr="10.0.10.0/24"),
            SubnetSpec(az="us-west-2b", cidr="10.0.11.0/24"),
        ],
        tags={"team": "platform"},
    )
