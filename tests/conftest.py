from collections.abc import Generator

import pytest

from querydispatch.core.models import EndpointSet, RetryPolicy
from querydispatch.core.pool import register_driver, unregister_driver
from tests.utils.drivers import FakeDriver

FAKE_DRIVER = "fake"


@pytest.fixture
def fake_driver() -> Generator[FakeDriver, None, None]:
    """A FakeDriver registered under the driver name "fake"."""
    driver = FakeDriver()
    register_driver(FAKE_DRIVER, driver)
    yield driver
    unregister_driver(FAKE_DRIVER)


@pytest.fixture
def endpoints() -> EndpointSet:
    """Three fake endpoints that differ only in database: db1, db2, db3."""
    return EndpointSet.build(FAKE_DRIVER, host="localhost", database=["db1", "db2", "db3"])


@pytest.fixture
def no_sleep_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, sleep_seconds=0)
