"""
Engines: SQL query building (Jinja2) and the fan-out dispatcher.
"""

from querydispatch.engines.dispatch import (
    bind_rows,
    send_data,
    send_query,
    sequential_map,
    simplify_result,
    thread_map,
)
from querydispatch.engines.sql import (
    QueryList,
    SingleQuery,
    SQLTemplateEngine,
    build_query,
    parse_parameters,
)

__all__ = [
    "send_query",
    "send_data",
    "sequential_map",
    "thread_map",
    "simplify_result",
    "bind_rows",
    "build_query",
    "SingleQuery",
    "QueryList",
    "SQLTemplateEngine",
    "parse_parameters",
]
