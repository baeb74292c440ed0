"""
querydispatch: render SQL templates and fan them out across database endpoints.

    from querydispatch import EndpointSet, RetryPolicy, build_query, send_query

    dbs = EndpointSet.build("postgres", host="db", username="app", database=["eu", "us"])
    q = build_query("SELECT * FROM users WHERE id = {{ id }};", {"id": [1, 2]})
    send_query(dbs, q, retry_policy=RetryPolicy(max_attempts=3, sleep_seconds=2))
"""

from querydispatch.core.config import configure_logging, settings
from querydispatch.core.exceptions import (
    DBConnectionError,
    DispatchError,
    EmptyQueryError,
    ExecutionError,
    MalformedEndpointError,
    MalformedQueryError,
    QueryDispatchError,
    QueryError,
    RetryExhaustedError,
    UnresolvedTemplateError,
    UnsupportedDriverError,
)
from querydispatch.core.models import Endpoint, EndpointSet, ProductTypeEnum, RetryPolicy
from querydispatch.core.pool import Driver, get_driver, register_driver
from querydispatch.core.probe import check_connection, check_endpoints
from querydispatch.core.retry import with_retry
from querydispatch.engines import (
    QueryList,
    SingleQuery,
    build_query,
    send_data,
    send_query,
    sequential_map,
    thread_map,
)

__all__ = [
    "settings",
    "configure_logging",
    "Endpoint",
    "EndpointSet",
    "ProductTypeEnum",
    "RetryPolicy",
    "Driver",
    "get_driver",
    "register_driver",
    "with_retry",
    "check_connection",
    "check_endpoints",
    "build_query",
    "SingleQuery",
    "QueryList",
    "send_query",
    "send_data",
    "sequential_map",
    "thread_map",
    "QueryDispatchError",
    "QueryError",
    "EmptyQueryError",
    "MalformedQueryError",
    "UnresolvedTemplateError",
    "DBConnectionError",
    "ExecutionError",
    "RetryExhaustedError",
    "DispatchError",
    "UnsupportedDriverError",
    "MalformedEndpointError",
]
