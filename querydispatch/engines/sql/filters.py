"""
Jinja2 filters and finalize callbacks for SQL templates.

Placeholders are substituted verbatim by default (``raw_finalize``), so
``FROM {{ table }}`` renders the table name as written. Templates built with
``escape=True`` use ``sql_finalize`` instead, which turns every unfiltered
value into a safe SQL literal. Explicit filters return ``SqlSafe`` and are
never escaped twice.
"""

import re
from datetime import date, datetime
from typing import Any

_SQL_QUOTE_ESCAPE = str.maketrans({"'": "''"})
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)*$")


class SqlSafe(str):
    """String already rendered as SQL; finalize callbacks pass it through."""


def _literal(value: Any) -> str:
    """SQL literal for a scalar: NULL, TRUE/FALSE, bare numbers, quoted everything else."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, datetime):
        return f"'{value.isoformat()}'"
    if isinstance(value, date):
        return f"'{value.isoformat()}'"
    return "'" + str(value).translate(_SQL_QUOTE_ESCAPE) + "'"


def sql_string(value: Any) -> SqlSafe:
    """Quoted string with ``'`` doubled. None -> NULL."""
    if value is None:
        return SqlSafe("NULL")
    return SqlSafe("'" + str(value).translate(_SQL_QUOTE_ESCAPE) + "'")


def sql_int(value: Any) -> SqlSafe:
    """Integer literal; None or non-numeric -> NULL."""
    try:
        return SqlSafe(str(int(value)))
    except (TypeError, ValueError):
        return SqlSafe("NULL")


def sql_float(value: Any) -> SqlSafe:
    """Float literal; None or non-numeric -> NULL."""
    try:
        return SqlSafe(str(float(value)))
    except (TypeError, ValueError):
        return SqlSafe("NULL")


def sql_bool(value: Any) -> SqlSafe:
    if value is None:
        return SqlSafe("NULL")
    return SqlSafe("TRUE" if bool(value) else "FALSE")


def sql_date(value: Any) -> SqlSafe:
    """ISO date 'YYYY-MM-DD'. Strings must start with that shape; anything else -> NULL."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return SqlSafe(f"'{value.isoformat()}'")
    if isinstance(value, str) and re.match(r"^\d{4}-\d{2}-\d{2}", value):
        return SqlSafe(f"'{value[:10]}'")
    return SqlSafe("NULL")


def in_list(value: Any) -> SqlSafe:
    """
    ``(1, 'a', NULL)`` for an IN clause. Empty or None -> (SELECT 1 WHERE 1=0),
    which matches nothing.
    """
    if value is None:
        return SqlSafe("(SELECT 1 WHERE 1=0)")
    try:
        items = list(value)
    except TypeError:
        return SqlSafe("(SELECT 1 WHERE 1=0)")
    if not items:
        return SqlSafe("(SELECT 1 WHERE 1=0)")
    return SqlSafe("(" + ", ".join(_literal(v) for v in items) + ")")


def sql_identifier(value: Any) -> SqlSafe:
    """Table/column name (optionally schema-qualified); anything else raises ValueError."""
    s = str(value)
    if not _IDENTIFIER.match(s):
        raise ValueError(f"Not a valid SQL identifier: {s!r}")
    return SqlSafe(s)


def sql_raw(value: Any) -> SqlSafe:
    """Insert the value as written. Only for trusted input."""
    if value is None:
        return SqlSafe("NULL")
    return SqlSafe(str(value))


def raw_finalize(value: Any) -> str:
    """Verbatim substitution: ``str(value)``; None -> NULL."""
    if value is None:
        return "NULL"
    return str(value)


def sql_finalize(value: Any) -> str:
    """Auto-escape unfiltered output: lists and tuples -> in_list, scalars -> SQL literal."""
    if isinstance(value, SqlSafe):
        return str(value)
    if isinstance(value, (list, tuple)):
        return in_list(value)
    return _literal(value)


SQL_FILTERS: dict[str, Any] = {
    "sql_string": sql_string,
    "sql_int": sql_int,
    "sql_float": sql_float,
    "sql_bool": sql_bool,
    "sql_date": sql_date,
    "in_list": in_list,
    "sql_identifier": sql_identifier,
    "sql_raw": sql_raw,
    "safe": sql_raw,
}
