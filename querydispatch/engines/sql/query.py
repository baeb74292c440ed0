"""
Query objects and the query builder.

``build_query`` turns text (a string, an open file or a path) plus substitution
data into validated statements:

    build_query("SELECT {{ a }}, {{ b }};", {"a": [1, 2], "b": [3, 4]})
    # QueryList(['SELECT 1, 3;', 'SELECT 2, 4;'])

    build_query(open("report.sql"), table="events")
    # comments stripped, one SingleQuery per statement in the file

The source and the data are classified once (SourceKind, DataKind) and handled
through the _READERS and _EXPANDERS tables.
"""

import logging
import os
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from enum import Enum
from typing import Any

from querydispatch.core.exceptions import EmptyQueryError, MalformedQueryError
from querydispatch.core.rows import columns_to_records, is_records, is_scalar
from querydispatch.engines.sql.parser import split_statements, strip_comments
from querydispatch.engines.sql.template_engine import SQLTemplateEngine

_log = logging.getLogger(__name__)

TERMINATOR = ";"


class SingleQuery:
    """
    Exactly one SQL statement: non-empty and ending with ``;``.

    With ``check_semicolon`` (the default) the text must contain no other
    ``;``. Set it to False only for statements that legitimately carry a
    semicolon inside, e.g. a string literal or a procedure body.
    """

    __slots__ = ("_text", "_check_semicolon")

    def __init__(self, text: str, check_semicolon: bool = True) -> None:
        if isinstance(text, SingleQuery):
            text = text.text
        if not isinstance(text, str):
            raise MalformedQueryError(f"Query must be a string, got {type(text).__name__}")
        text = text.strip()
        if not text.rstrip(TERMINATOR).strip():
            raise MalformedQueryError("Query is empty", fragment=text)
        if not text.endswith(TERMINATOR):
            raise MalformedQueryError(
                f"Query must end with '{TERMINATOR}': {text!r}", fragment=text
            )
        if check_semicolon and text.count(TERMINATOR) != 1:
            raise MalformedQueryError(
                f"Query must contain exactly one '{TERMINATOR}' "
                f"(pass check_semicolon=False to allow more): {text!r}",
                fragment=text,
            )
        object.__setattr__(self, "_text", text)
        object.__setattr__(self, "_check_semicolon", check_semicolon)

    @property
    def text(self) -> str:
        return self._text

    @property
    def check_semicolon(self) -> bool:
        return self._check_semicolon

    @property
    def statements(self) -> tuple["SingleQuery", ...]:
        return (self,)

    def __iter__(self) -> Iterator["SingleQuery"]:
        return iter(self.statements)

    def __len__(self) -> int:
        return 1

    def show(self) -> "SingleQuery":
        print(f"Query:\n{self._text}\n")
        return self

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"SingleQuery({self._text!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SingleQuery):
            return self._text == other._text
        if isinstance(other, str):
            return self._text == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._text)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("SingleQuery is immutable")


class QueryList:
    """Ordered, non-empty sequence of SingleQuery run one after another on one connection."""

    __slots__ = ("_queries", "_check_semicolon")

    def __init__(
        self, queries: Iterable["SingleQuery | str"], check_semicolon: bool = True
    ) -> None:
        if isinstance(queries, (str, SingleQuery)):
            queries = [queries]
        items = tuple(SingleQuery(q, check_semicolon=check_semicolon) for q in queries)
        if not items:
            raise EmptyQueryError("QueryList needs at least one query")
        object.__setattr__(self, "_queries", items)
        object.__setattr__(self, "_check_semicolon", check_semicolon)

    @property
    def statements(self) -> tuple[SingleQuery, ...]:
        return self._queries

    @property
    def check_semicolon(self) -> bool:
        return self._check_semicolon

    def __iter__(self) -> Iterator[SingleQuery]:
        return iter(self._queries)

    def __len__(self) -> int:
        return len(self._queries)

    def __getitem__(self, index: int) -> SingleQuery:
        return self._queries[index]

    def show(self) -> "QueryList":
        for q in self._queries:
            q.show()
        return self

    def __str__(self) -> str:
        return "\n".join(q.text for q in self._queries)

    def __repr__(self) -> str:
        return f"QueryList({[q.text for q in self._queries]!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, QueryList):
            return self._queries == other._queries
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._queries)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("QueryList is immutable")


Query = SingleQuery | QueryList


# ---------------------------------------------------------------------------
# Source: what the text comes from
# ---------------------------------------------------------------------------


class SourceKind(Enum):
    TEXT = "text"  # str, used as is
    STREAM = "stream"  # object with read(); closed after reading
    PATH = "path"  # os.PathLike, opened as UTF-8 text


def source_kind(source: Any) -> SourceKind:
    if isinstance(source, str):
        return SourceKind.TEXT
    if isinstance(source, os.PathLike):
        return SourceKind.PATH
    if callable(getattr(source, "read", None)):
        return SourceKind.STREAM
    raise TypeError(
        f"Query source must be a string, a path or a readable object, got {type(source).__name__}"
    )


def _read_text(source: str, keep_comments: bool) -> str:
    return source


def _read_stream(source: Any, keep_comments: bool) -> str:
    try:
        text = source.read()
    finally:
        source.close()
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    return text if keep_comments else strip_comments(text)


def _read_path(source: os.PathLike, keep_comments: bool) -> str:
    return _read_stream(open(source, encoding="utf-8"), keep_comments)


_READERS: dict[SourceKind, Callable[[Any, bool], str]] = {
    SourceKind.TEXT: _read_text,
    SourceKind.STREAM: _read_stream,
    SourceKind.PATH: _read_path,
}


# ---------------------------------------------------------------------------
# Data: how many expansions each fragment gets
# ---------------------------------------------------------------------------


class DataKind(Enum):
    NONE = "none"  # keyword params only
    SCALAR = "scalar"  # {"id": 1}: one expansion
    COLUMNS = "columns"  # {"id": [1, 2]}: one expansion per position
    RECORDS = "records"  # [{"id": 1}, {"id": 2}]: one expansion per record


def data_kind(data: Any) -> DataKind:
    if data is None:
        return DataKind.NONE
    if isinstance(data, Mapping):
        if all(is_scalar(v) for v in data.values()):
            return DataKind.SCALAR
        return DataKind.COLUMNS
    if not is_scalar(data) and (len(data) == 0 or is_records(data)):
        return DataKind.RECORDS
    raise TypeError(
        "Substitution data must be None, a mapping or a sequence of mappings, "
        f"got {type(data).__name__}"
    )


def _zip_columns(data: Mapping[str, Any]) -> list[dict[str, Any]]:
    try:
        return columns_to_records(data)
    except ValueError as e:
        raise MalformedQueryError(f"Cannot expand substitution data: {e}") from e


_EXPANDERS: dict[DataKind, Callable[[Any], list[dict[str, Any]]]] = {
    DataKind.NONE: lambda data: [{}],
    DataKind.SCALAR: lambda data: [dict(data)],
    DataKind.COLUMNS: _zip_columns,
    DataKind.RECORDS: lambda data: [dict(r) for r in data],
}


def build_query(
    source: Any,
    data: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None = None,
    *,
    check_semicolon: bool = True,
    keep_comments: bool = False,
    escape: bool = False,
    **params: Any,
) -> Query:
    """
    Read, split, expand and validate SQL.

    - source: SQL text, an open file-like object (closed afterwards) or a path.
      Comments are stripped from files unless ``keep_comments``.
    - data: substitution values; a mapping of sequences or a sequence of
      mappings yields one expansion of every statement per row.
    - params: scalar values shared by every row (row values win on clashes).
    - escape: render unfiltered values as SQL literals instead of verbatim.

    Returns a SingleQuery when exactly one statement results, else a QueryList
    in row-major order (each row, then each statement of the source).
    """
    text = _READERS[source_kind(source)](source, keep_comments)
    fragments = split_statements(text)
    if not fragments:
        raise EmptyQueryError("Query source contains no statement")

    rows = _EXPANDERS[data_kind(data)](data)
    engine = SQLTemplateEngine(escape=escape)
    rendered = [
        engine.render(fragment, {**params, **row}) for row in rows for fragment in fragments
    ]
    if not rendered:
        raise EmptyQueryError("Substitution data has no rows; no statement was produced")
    _log.debug("Rendered SQL: %s", rendered)

    if len(rendered) == 1:
        return SingleQuery(rendered[0], check_semicolon=check_semicolon)
    return QueryList(rendered, check_semicolon=check_semicolon)


def as_query(query: "Query | str", **kwargs: Any) -> Query:
    """Pass SingleQuery / QueryList through; build anything else with build_query."""
    if isinstance(query, (SingleQuery, QueryList)):
        return query
    return build_query(query, **kwargs)
