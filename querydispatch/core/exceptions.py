"""Exceptions raised while building, retrying and dispatching queries."""

from typing import Any


class QueryDispatchError(Exception):
    """Base exception for querydispatch."""


class QueryError(QueryDispatchError):
    """Raised when a query cannot be built from its source or template."""


class EmptyQueryError(QueryError):
    """Raised when a source yields no statement after comments are stripped."""


class MalformedQueryError(QueryError):
    """Raised when a fragment is not exactly one ``;``-terminated statement."""

    def __init__(self, message: str, fragment: str | None = None) -> None:
        super().__init__(message)
        self.fragment = fragment


class UnresolvedTemplateError(QueryError):
    """Raised when a template placeholder has no substitution value."""

    def __init__(self, missing: list[str], template: str | None = None) -> None:
        self.missing = sorted(missing)
        self.template = template
        super().__init__(
            f"SQL template variable(s) not provided: {', '.join(self.missing)}"
        )


class DBConnectionError(QueryDispatchError):
    """Raised when the driver cannot open a connection to an endpoint."""


class ExecutionError(QueryDispatchError):
    """Raised when a statement fails on an open connection."""

    def __init__(self, message: str, statement: str | None = None) -> None:
        super().__init__(message)
        self.statement = statement


class RetryExhaustedError(QueryDispatchError):
    """Raised when every attempt of a retried operation failed.

    ``last_error`` is the exception of the final attempt.
    """

    def __init__(self, last_error: BaseException, attempts: int) -> None:
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"Failed after {attempts} attempt(s): {last_error}")


class DispatchError(QueryDispatchError):
    """Raised when no endpoint of a dispatch produced a usable result."""

    def __init__(self, errors: list[Any]) -> None:
        self.errors = errors
        details = "; ".join(str(e) for e in errors)
        super().__init__(f"All {len(errors)} endpoint(s) failed: {details}")


class UnsupportedDriverError(QueryDispatchError, ValueError):
    """Raised when no driver is registered under the requested name."""


class MalformedEndpointError(QueryDispatchError, ValueError):
    """Raised when an endpoint set is empty or mixes drivers."""
