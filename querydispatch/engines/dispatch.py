"""
Fan-out dispatcher: run queries (send_query) or writes (send_data) on every
endpoint of an EndpointSet and reassemble the results.

Each endpoint gets its own connection for exactly one pass over the
statements, opened and closed here, never pooled or shared. Statements run in
order on that connection; endpoints are mapped with a pluggable strategy
(sequential_map by default, thread_map for parallel fan-out) whose output is
always aligned to the input order.

Result shape, before simplification: ``nested[i][j]`` is the result of
statement j on endpoint i. A leaf is a list of row dicts, a row count, or the
exception that ended the attempt (normally RetryExhaustedError), so one failing
endpoint never hides the results of the others.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from querydispatch.core.config import settings
from querydispatch.core.exceptions import DispatchError, RetryExhaustedError
from querydispatch.core.models import Endpoint, EndpointSet, RetryPolicy
from querydispatch.core.pool import Driver, get_driver
from querydispatch.core.retry import with_retry
from querydispatch.core.rows import columns_to_records, is_records
from querydispatch.engines.sql.query import Query, SingleQuery, as_query

T = TypeVar("T")
R = TypeVar("R")

MapFn = Callable[[Callable[[T], R], Sequence[T]], list[R]]
Table = list[dict[str, Any]]

_log = logging.getLogger(__name__)


def sequential_map(fn: Callable[[T], R], items: Sequence[T]) -> list[R]:
    """Default strategy: one item after another, in order."""
    return [fn(item) for item in items]


def thread_map(max_workers: int | None = None) -> MapFn:
    """
    Strategy running items on a thread pool (``DISPATCH_MAX_WORKERS`` by default).

    Results come back in input order whatever the completion order.
    """
    workers = max_workers or settings.DISPATCH_MAX_WORKERS

    def _map(fn: Callable[[T], R], items: Sequence[T]) -> list[R]:
        items = list(items)
        if not items:
            return []
        with ThreadPoolExecutor(
            max_workers=min(workers, len(items)), thread_name_prefix="querydispatch"
        ) as pool:
            return list(pool.map(fn, items))

    return _map


def _is_failure(leaf: Any) -> bool:
    return isinstance(leaf, BaseException)


def _run_endpoint(
    endpoint: Endpoint,
    statements: Sequence[SingleQuery],
    run: Callable[[Driver, Any, SingleQuery], Any],
    policy: RetryPolicy,
    log: Any,
) -> list[Any]:
    """Connect, run every statement in order, disconnect. One leaf per statement."""
    try:
        driver = get_driver(endpoint.driver)
        conn = with_retry(
            lambda: driver.connect(endpoint), policy, log, description=f"connect to {endpoint}"
        )
    except Exception as e:
        log.error("Endpoint %s unavailable: %s", endpoint, e)
        return [e] * len(statements)

    try:
        leaves: list[Any] = []
        for stmt in statements:
            try:
                leaves.append(
                    with_retry(
                        lambda stmt=stmt: run(driver, conn, stmt),
                        policy,
                        log,
                        description=f"{stmt.text!r} on {endpoint}",
                    )
                )
            except RetryExhaustedError as e:
                leaves.append(e)
        return leaves
    finally:
        driver.disconnect(conn)


def _fan_out(
    endpoints: EndpointSet | Endpoint,
    query: Query,
    run: Callable[[Driver, Any, SingleQuery], Any],
    map_fn: MapFn,
    retry_policy: RetryPolicy | None,
    logger: Any,
) -> list[list[Any]]:
    endpoint_set = EndpointSet.coerce(endpoints)
    statements = query.statements
    policy = retry_policy or RetryPolicy.from_settings()
    log = logger or _log
    _log.debug(
        "Dispatching %d statement(s) to %d endpoint(s)", len(statements), len(endpoint_set)
    )

    nested = map_fn(
        lambda endpoint: _run_endpoint(endpoint, statements, run, policy, log),
        list(endpoint_set),
    )
    nested = list(nested)

    failed = [leaves for leaves in nested if all(_is_failure(leaf) for leaf in leaves)]
    if len(failed) == len(nested):
        raise DispatchError([leaves[0] for leaves in failed])
    for endpoint, leaves in zip(endpoint_set, nested):
        if any(_is_failure(leaf) for leaf in leaves):
            log.warning("Partial failure on %s", endpoint)
    return nested


def _is_table(leaf: Any) -> bool:
    return isinstance(leaf, list) and all(isinstance(row, Mapping) for row in leaf)


def bind_rows(tables: Sequence[Any]) -> Table | None:
    """
    Concatenate tables row-wise, or None when any leaf is not a table or the
    column sets differ. Empty tables fit with anything.
    """
    columns: set[str] | None = None
    combined: Table = []
    for table in tables:
        if not _is_table(table):
            return None
        for row in table:
            keys = set(row)
            if columns is None:
                columns = keys
            elif keys != columns:
                return None
        combined.extend(table)
    return combined


def simplify_result(nested: list[list[Any]]) -> Any:
    """
    Flatten trivial dimensions of ``nested[endpoint][statement]``.

    - 1 endpoint, 1 statement: the leaf itself.
    - 1 endpoint, N statements: the list of N leaves.
    - M endpoints: per statement, the M tables bound row-wise; a single table
      when there is one statement. Any position that cannot be bound keeps
      the whole structure nested.
    """
    if len(nested) == 1:
        leaves = nested[0]
        return leaves[0] if len(leaves) == 1 else leaves
    n_statements = len(nested[0])
    combined = [bind_rows([leaves[j] for leaves in nested]) for j in range(n_statements)]
    if any(table is None for table in combined):
        return nested
    return combined[0] if n_statements == 1 else combined


def send_query(
    endpoints: EndpointSet | Endpoint,
    query: Query | str,
    *,
    map_fn: MapFn = sequential_map,
    retry_policy: RetryPolicy | None = None,
    simplify: bool = True,
    logger: Any = None,
) -> Any:
    """
    Run ``query`` on every endpoint and collect the results.

    - query: SingleQuery / QueryList, or text passed through build_query
      (template errors are raised before any connection is made).
    - map_fn: strategy over endpoints; sequential_map or thread_map(...).
    - retry_policy: applies to connecting and to every statement.
    - simplify: flatten trivial dimensions (see simplify_result); False
      always returns ``nested[endpoint][statement]``.
    - logger: anything with ``info``, ``warning`` and ``error``; receives retry
      attempts and partial failures (module logger by default).

    Raises DispatchError when every endpoint failed.
    """
    query = as_query(query)

    def run(driver: Driver, conn: Any, stmt: SingleQuery) -> Any:
        return driver.execute_query(conn, stmt.text)

    nested = _fan_out(endpoints, query, run, map_fn, retry_policy, logger)
    return simplify_result(nested) if simplify else nested


def _as_rows(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, Mapping):
        return columns_to_records(data)
    if is_records(data):
        return [dict(row) for row in data]
    if isinstance(data, Sequence) and not isinstance(data, str) and len(data) == 0:
        return []
    raise TypeError(
        f"data must be a mapping of columns or a sequence of mappings, got {type(data).__name__}"
    )


def send_data(
    endpoints: EndpointSet | Endpoint,
    statement: Query | str,
    data: Mapping[str, Any] | Sequence[Mapping[str, Any]],
    *,
    map_fn: MapFn = sequential_map,
    retry_policy: RetryPolicy | None = None,
    simplify: bool = True,
    logger: Any = None,
) -> Any:
    """
    Write ``data`` on every endpoint with ``executemany(statement, rows)``.

    ``statement`` uses the driver's placeholder style, e.g.
    ``INSERT INTO t (id, name) VALUES (%(id)s, %(name)s);`` for postgres/mysql
    or ``... VALUES (:id, :name);`` for sqlite. Leaves are written row counts;
    everything else (retries, connection handling, result shape) is as in
    send_query.
    """
    query = as_query(statement)
    rows = _as_rows(data)

    def run(driver: Driver, conn: Any, stmt: SingleQuery) -> int:
        return driver.execute_write(conn, stmt.text, rows)

    nested = _fan_out(endpoints, query, run, map_fn, retry_policy, logger)
    return simplify_result(nested) if simplify else nested
