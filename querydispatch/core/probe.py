"""
Connectivity probe: preflight diagnostics for endpoints.

Not part of the dispatch path; reports reachability through the logger and
never raises for connection problems.
"""

import logging
from typing import Any

from querydispatch.core.models import Endpoint, EndpointSet
from querydispatch.core.pool import DBAPIDriver, get_driver, health_check

_log = logging.getLogger(__name__)


def check_connection(endpoint: Endpoint, logger: Any = None) -> bool:
    """
    Connect, run a health check (built-in drivers) and disconnect.

    Returns True when the endpoint is reachable. Logs INFO on success and
    ERROR with the cause on failure.
    """
    log = logger or _log
    conn = None
    try:
        driver = get_driver(endpoint.driver)
        conn = driver.connect(endpoint)
        if isinstance(driver, DBAPIDriver) and not health_check(conn, driver.product_type):
            log.error("Connection check failed for %s: SELECT 1 did not succeed", endpoint)
            return False
    except Exception as e:
        log.error("Connection check failed for %s: %s: %s", endpoint, type(e).__name__, e)
        return False
    finally:
        if conn is not None:
            driver.disconnect(conn)
    log.info("Connection check succeeded for %s", endpoint)
    return True


def check_endpoints(endpoints: EndpointSet | Endpoint, logger: Any = None) -> list[bool]:
    """Probe every endpoint in order; one bool per endpoint."""
    return [check_connection(e, logger) for e in EndpointSet.coerce(endpoints)]
