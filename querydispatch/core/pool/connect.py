"""
DB connection helpers for endpoints.

Uses psycopg (PostgreSQL), pymysql (MySQL), trino (Trino) or sqlite3 based on
the endpoint's driver. Connections are opened per call and never pooled.
"""

import sqlite3
from typing import Any

import psycopg
import pymysql
from trino.auth import BasicAuthentication
from trino.dbapi import connect as trino_connect

from querydispatch.core.config import settings
from querydispatch.core.models import Endpoint, ProductTypeEnum

_DEFAULT_PORTS = {
    ProductTypeEnum.POSTGRES: 5432,
    ProductTypeEnum.MYSQL: 3306,
    ProductTypeEnum.TRINO: 8080,
}


def _get(endpoint: Endpoint | dict, *keys: str) -> Any:
    """First non-None value among ``keys`` (aliases like database/dbname)."""
    params = endpoint.params if isinstance(endpoint, Endpoint) else endpoint
    for key in keys:
        val = params.get(key)
        if val is not None:
            return val
    return None


def _resolve_product_type(
    endpoint: Endpoint | dict, product_type: ProductTypeEnum | None
) -> ProductTypeEnum:
    pt = product_type
    if pt is None:
        pt = endpoint.driver if isinstance(endpoint, Endpoint) else endpoint.get("driver")
    if pt is None:
        raise ValueError("driver is required (from endpoint or argument)")
    if isinstance(pt, str):
        return ProductTypeEnum(pt)
    return pt


def connect(
    endpoint: Endpoint | dict,
    *,
    product_type: ProductTypeEnum | None = None,
) -> Any:
    """
    Open a DB-API connection for an Endpoint (or a plain parameter dict).

    - Network drivers need host, database (or dbname) and username (or user);
      port defaults per product, password to "".
    - sqlite needs path (or database); ":memory:" works.
    """
    pt = _resolve_product_type(endpoint, product_type)
    timeout = settings.EXTERNAL_DB_CONNECT_TIMEOUT

    if pt == ProductTypeEnum.SQLITE:
        path = _get(endpoint, "path", "database", "dbname")
        if path is None:
            raise ValueError("sqlite endpoint must provide path")
        return sqlite3.connect(str(path), timeout=timeout)

    host = _get(endpoint, "host")
    port = _get(endpoint, "port") or _DEFAULT_PORTS[pt]
    database = _get(endpoint, "database", "dbname")
    username = _get(endpoint, "username", "user")
    password = _get(endpoint, "password")

    for name, val in [
        ("host", host),
        ("database", database),
        ("username", username),
    ]:
        if val is None:
            raise ValueError(f"endpoint must provide {name}")
    password = password if password is not None else ""

    if pt == ProductTypeEnum.POSTGRES:
        return psycopg.connect(
            host=host,
            port=int(port),
            dbname=database,
            user=username,
            password=password,
            connect_timeout=timeout,
        )
    if pt == ProductTypeEnum.MYSQL:
        return pymysql.connect(
            host=host,
            port=int(port),
            database=database,
            user=username,
            password=password,
            connect_timeout=timeout,
        )
    if pt == ProductTypeEnum.TRINO:
        use_ssl = _get(endpoint, "use_ssl") in (True, "true", "1")
        if use_ssl and not (password and password.strip()):
            raise ValueError("Password is required for Trino when using SSL/HTTPS.")
        return trino_connect(
            host=host,
            port=int(port),
            user=username,
            auth=BasicAuthentication(username, password) if password else None,
            catalog=database,
            schema=_get(endpoint, "schema") or "default",
            source="querydispatch",
            http_scheme="https" if use_ssl else "http",
            request_timeout=timeout,
        )
    raise ValueError(f"Unsupported driver: {pt}")


def _set_statement_timeout(
    conn: Any, product_type: ProductTypeEnum, timeout_sec: float | None
) -> None:
    """Apply (timeout_sec > 0) or reset (None) the per-statement timeout."""
    cur = conn.cursor()
    try:
        if product_type == ProductTypeEnum.POSTGRES:
            if timeout_sec:
                cur.execute("SET statement_timeout = %s", (str(int(timeout_sec * 1000)),))
            else:
                cur.execute("SET statement_timeout = 0")
        elif product_type == ProductTypeEnum.MYSQL:
            if timeout_sec:
                cur.execute("SET SESSION max_execution_time = %s", (int(timeout_sec * 1000),))
            else:
                cur.execute("SET SESSION max_execution_time = 0")
        elif product_type == ProductTypeEnum.TRINO:
            cur.execute(
                "SET SESSION query_max_execution_time = '%ss'" % int(timeout_sec or 0)
            )
    finally:
        try:
            cur.close()
        except Exception:
            pass


def execute(
    conn: Any,
    sql: str,
    params: dict | list | tuple | None = None,
    *,
    product_type: ProductTypeEnum | None = None,
    many: bool = False,
) -> Any:
    """
    Execute SQL and return the cursor. Caller uses cursor_to_dicts(cursor) or cursor.rowcount.

    - many: run ``executemany(sql, params)`` (params is a list of rows).
    - product_type: used for EXTERNAL_DB_STATEMENT_TIMEOUT (Postgres: statement_timeout,
      MySQL: max_execution_time, Trino: query_max_execution_time). When set, applies
      the timeout before the statement and resets it after. sqlite has no such setting.
    """
    timeout_sec = settings.EXTERNAL_DB_STATEMENT_TIMEOUT
    use_timeout = (
        timeout_sec is not None
        and timeout_sec > 0
        and product_type is not None
        and product_type != ProductTypeEnum.SQLITE
    )

    if use_timeout:
        _set_statement_timeout(conn, product_type, timeout_sec)

    cur = conn.cursor()
    try:
        if many:
            cur.executemany(sql, params or [])
        elif params is not None:
            cur.execute(sql, params)
        else:
            cur.execute(sql)
    finally:
        if use_timeout:
            try:
                _set_statement_timeout(conn, product_type, None)
            except Exception:
                pass

    return cur


def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor result to list of dicts. Works for psycopg, pymysql, trino and sqlite3."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]
