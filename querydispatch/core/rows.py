"""
Helpers for the row-wise expansion shared by query templates and endpoint sets.

A "columns" mapping holds sequence values ({"id": [1, 2], "name": ["a", "b"]});
row i pairs the i-th element of every sequence. Scalar values are repeated on
every row. Strings and bytes are scalars.
"""

from collections.abc import Mapping, Sequence
from typing import Any


def is_scalar(value: Any) -> bool:
    """True unless value is a non-string sequence (list, tuple, range, ...)."""
    if isinstance(value, (str, bytes, bytearray)):
        return True
    return not isinstance(value, Sequence)


def is_records(value: Any) -> bool:
    """True for a non-empty sequence whose elements are all mappings."""
    if is_scalar(value) or not value:
        return False
    return all(isinstance(v, Mapping) for v in value)


def columns_to_records(columns: Mapping[str, Any]) -> list[dict[str, Any]]:
    """
    Zip sequence-valued keys positionally into one dict per row.

    Raises ValueError when the sequences differ in length. A mapping without
    any sequence value gives a single row.
    """
    lengths = {len(v) for v in columns.values() if not is_scalar(v)}
    if not lengths:
        return [dict(columns)]
    if len(lengths) > 1:
        sizes = {k: len(v) for k, v in columns.items() if not is_scalar(v)}
        raise ValueError(f"Sequences must have the same length, got {sizes}")
    n = lengths.pop()
    return [
        {k: (v if is_scalar(v) else v[i]) for k, v in columns.items()}
        for i in range(n)
    ]
