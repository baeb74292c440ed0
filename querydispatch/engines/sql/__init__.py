"""
SQL query building: Jinja2 templates, comment stripping, statement splitting.

Exports: build_query, SingleQuery, QueryList, SQLTemplateEngine, parse_parameters.
"""

from querydispatch.engines.sql.parser import split_statements, strip_comments
from querydispatch.engines.sql.query import (
    DataKind,
    Query,
    QueryList,
    SingleQuery,
    SourceKind,
    as_query,
    build_query,
)
from querydispatch.engines.sql.template_engine import SQLTemplateEngine


def parse_parameters(template: str) -> list[str]:
    """
    Extract variable names used in {{ ... }} and {% ... %} (undeclared in template).

    These are the names build_query needs from data or keyword params.
    """
    return SQLTemplateEngine().parse_parameters(template)


__all__ = [
    "Query",
    "SingleQuery",
    "QueryList",
    "SourceKind",
    "DataKind",
    "build_query",
    "as_query",
    "split_statements",
    "strip_comments",
    "SQLTemplateEngine",
    "parse_parameters",
]
