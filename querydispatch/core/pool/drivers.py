"""
Driver capability used by the dispatcher, and the registry of drivers by name.

A driver opens and closes connections for an Endpoint and runs statements on
them. DBAPIDriver covers the built-in products; tests and callers can register
their own implementation under any name.
"""

import logging
import threading
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from querydispatch.core.exceptions import (
    DBConnectionError,
    ExecutionError,
    UnsupportedDriverError,
)
from querydispatch.core.models import Endpoint, ProductTypeEnum

from .connect import connect, cursor_to_dicts, execute

_log = logging.getLogger(__name__)


class Driver(Protocol):
    def connect(self, endpoint: Endpoint) -> Any: ...

    def disconnect(self, conn: Any) -> None: ...

    def execute_query(self, conn: Any, statement: str) -> list[dict[str, Any]] | int: ...

    def execute_write(
        self, conn: Any, statement: str, rows: Sequence[Mapping[str, Any]]
    ) -> int: ...


def _rollback_quiet(conn: Any) -> None:
    try:
        conn.rollback()
    except Exception:
        pass


class DBAPIDriver:
    """Driver for psycopg / pymysql / trino / sqlite3 connections."""

    def __init__(self, product_type: ProductTypeEnum) -> None:
        self.product_type = product_type

    def connect(self, endpoint: Endpoint) -> Any:
        """Open a connection; driver errors become DBConnectionError, bad parameters stay ValueError."""
        try:
            return connect(endpoint, product_type=self.product_type)
        except ValueError:
            raise
        except Exception as e:
            raise DBConnectionError(
                f"Cannot connect to {endpoint}: {type(e).__name__}: {e}"
            ) from e

    def disconnect(self, conn: Any) -> None:
        try:
            conn.close()
        except Exception as e:
            _log.debug("Ignoring error while closing connection: %s", e)

    def execute_query(self, conn: Any, statement: str) -> list[dict[str, Any]] | int:
        """
        Run one statement and commit.

        Returns the rows when the cursor carries a result set
        (``cursor.description`` is set), the rowcount otherwise. Rows are
        fetched before the commit.
        """
        cur = None
        try:
            cur = execute(conn, statement, product_type=self.product_type)
            if cur.description is not None:
                rows = cursor_to_dicts(cur)
                conn.commit()
                return rows
            conn.commit()
            return cur.rowcount if cur.rowcount is not None else 0
        except Exception as e:
            _rollback_quiet(conn)
            raise ExecutionError(
                f"SQL execution failed: {type(e).__name__}: {e}", statement=statement
            ) from e
        finally:
            if cur is not None:
                try:
                    cur.close()
                except Exception:
                    pass

    def execute_write(
        self, conn: Any, statement: str, rows: Sequence[Mapping[str, Any]]
    ) -> int:
        """executemany(statement, rows) and commit; returns the written row count."""
        cur = None
        try:
            cur = execute(
                conn, statement, [dict(r) for r in rows], product_type=self.product_type, many=True
            )
            conn.commit()
            rowcount = cur.rowcount
            return rowcount if rowcount is not None and rowcount >= 0 else len(rows)
        except Exception as e:
            _rollback_quiet(conn)
            raise ExecutionError(
                f"SQL write failed: {type(e).__name__}: {e}", statement=statement
            ) from e
        finally:
            if cur is not None:
                try:
                    cur.close()
                except Exception:
                    pass


_drivers: dict[str, Driver] = {}
_drivers_lock = threading.Lock()


def register_driver(name: str, driver: Driver) -> None:
    """Register (or replace) the driver used for endpoints whose driver is ``name``."""
    with _drivers_lock:
        _drivers[name] = driver


def unregister_driver(name: str) -> None:
    with _drivers_lock:
        _drivers.pop(name, None)


def get_driver(name: str) -> Driver:
    with _drivers_lock:
        driver = _drivers.get(name)
    if driver is None:
        raise UnsupportedDriverError(
            f"Unsupported driver: {name!r}. Registered: {sorted(_drivers)}"
        )
    return driver


for _pt in ProductTypeEnum:
    register_driver(_pt.value, DBAPIDriver(_pt))
