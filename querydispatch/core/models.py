"""
Value objects: Endpoint, EndpointSet, RetryPolicy.

Endpoints only describe where to connect; they never hold a live connection.
"""

from collections.abc import Iterable, Iterator, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from querydispatch.core.config import settings
from querydispatch.core.exceptions import MalformedEndpointError
from querydispatch.core.rows import columns_to_records

_SECRET_KEYS = frozenset({"password", "passwd", "secret", "token"})


class ProductTypeEnum(str, Enum):
    """Database products with a built-in driver."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    TRINO = "trino"
    SQLITE = "sqlite"


class Endpoint(BaseModel):
    """
    One connection target: a driver name plus its connection parameters.

    Immutable once built: ``params`` is a read-only mapping.
    """

    model_config = ConfigDict(frozen=True)

    driver: str = Field(..., min_length=1)
    params: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)

    @field_validator("driver", mode="before")
    @classmethod
    def _driver_name(cls, v: Any) -> Any:
        return v.value if isinstance(v, Enum) else v

    @field_validator("params")
    @classmethod
    def _freeze_params(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(v))

    def get(self, key: str, default: Any = None) -> Any:
        return self.params.get(key, default)

    def describe(self) -> dict[str, Any]:
        """Driver and parameters with secrets removed (safe for logs)."""
        out = {"driver": self.driver}
        out.update({k: v for k, v in self.params.items() if k not in _SECRET_KEYS})
        return out

    def __repr_args__(self) -> Iterable[tuple[str, Any]]:
        masked = {k: ("***" if k in _SECRET_KEYS else v) for k, v in self.params.items()}
        return [("driver", self.driver), ("params", masked)]

    def __str__(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.describe().items())


class EndpointSet:
    """
    Ordered, non-empty, read-only collection of endpoints sharing one driver.

    Models "the same logical query against N physical databases".
    """

    __slots__ = ("_endpoints",)

    def __init__(self, endpoints: Iterable[Endpoint]) -> None:
        items = tuple(endpoints)
        if not items:
            raise MalformedEndpointError("EndpointSet needs at least one endpoint")
        for e in items:
            if not isinstance(e, Endpoint):
                raise MalformedEndpointError(f"Not an Endpoint: {e!r}")
        drivers = {e.driver for e in items}
        if len(drivers) > 1:
            raise MalformedEndpointError(
                f"All endpoints must share one driver, got {sorted(drivers)}"
            )
        self._endpoints = items

    @classmethod
    def build(cls, driver: str | ProductTypeEnum, **params: Any) -> "EndpointSet":
        """
        Build one endpoint per row of ``params``: sequence values are zipped
        positionally, scalar values are shared.

        ``EndpointSet.build("postgres", host="db", database=["a", "b"])`` gives
        two endpoints that differ only in ``database``.
        """
        try:
            rows = columns_to_records(params)
        except ValueError as e:
            raise MalformedEndpointError(str(e)) from e
        return cls(Endpoint(driver=driver, params=row) for row in rows)

    @classmethod
    def coerce(cls, value: "EndpointSet | Endpoint | Iterable[Endpoint]") -> "EndpointSet":
        """Accept a set, a single endpoint (set of one) or an iterable of endpoints."""
        if isinstance(value, EndpointSet):
            return value
        if isinstance(value, Endpoint):
            return cls([value])
        return cls(value)

    @property
    def driver(self) -> str:
        return self._endpoints[0].driver

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def __getitem__(self, index: int) -> Endpoint:
        return self._endpoints[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EndpointSet):
            return NotImplemented
        return self._endpoints == other._endpoints

    def __repr__(self) -> str:
        return f"EndpointSet({list(self._endpoints)!r})"


class RetryPolicy(BaseModel):
    """Bound on attempts (including the first) and the pause between them."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1)
    sleep_seconds: float = Field(default=1.0, ge=0)

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.DISPATCH_MAX_ATTEMPTS,
            sleep_seconds=settings.DISPATCH_RETRY_SLEEP_SECONDS,
        )
