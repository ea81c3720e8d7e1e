"""Registry of the remote API operations this client knows how to call.

Each `Operation` maps to exactly one `Endpoint`. Supporting a new remote
capability means adding an enum member and a registry entry below; the
registry is checked for completeness at import time. Custom-built extraction
APIs, whose names are chosen by the account owner, are addressed with
`CustomApi` instead.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Union

from diffbot.errors import InvalidInputError

__all__ = [
    "Api",
    "BULK_PARAMS",
    "CONTENT_PARAMS",
    "CRAWL_PARAMS",
    "CustomApi",
    "Endpoint",
    "Operation",
    "SEARCH_PARAMS",
    "content_operations",
    "endpoint_for",
    "job_operations",
    "path_for",
]

CONTENT_PARAMS: tuple[str, ...] = ("url",)
SEARCH_PARAMS: tuple[str, ...] = ("col", "query")
CRAWL_PARAMS: tuple[str, ...] = ("name", "apiUrl", "seeds")
BULK_PARAMS: tuple[str, ...] = ("name", "apiUrl", "urls")

_CUSTOM_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class Operation(str, enum.Enum):
    """A supported remote capability; the value is its path segment."""

    ANALYZE = "analyze"
    ARTICLE = "article"
    PRODUCT = "product"
    IMAGE = "image"
    VIDEO = "video"
    DISCUSSION = "discussion"
    EVENT = "event"
    LIST = "list"
    SEARCH = "search"
    CRAWL = "crawl"
    BULK = "bulk"


@dataclass(frozen=True, slots=True)
class CustomApi:
    """A custom-built extraction API, called by its name like a content operation."""

    name: str

    def __post_init__(self) -> None:
        name = str(self.name or "").strip()
        if not _CUSTOM_NAME_RE.match(name):
            raise InvalidInputError(f"Invalid custom API name: {self.name!r}")
        if name in {op.value for op in Operation}:
            raise InvalidInputError(f"Custom API name {name!r} collides with a built-in operation.")
        object.__setattr__(self, "name", name)


Api = Union[Operation, CustomApi]


@dataclass(frozen=True, slots=True)
class Endpoint:
    """Path segment and required query parameters of one operation."""

    operation: Operation | CustomApi
    path: str
    required: tuple[str, ...]

    @property
    def reserved(self) -> frozenset[str]:
        """Parameter names callers may not override."""
        return frozenset(("token", *self.required))

    @property
    def takes_url(self) -> bool:
        return self.required == CONTENT_PARAMS


def _content(operation: Operation) -> Endpoint:
    return Endpoint(operation=operation, path=operation.value, required=CONTENT_PARAMS)


_REGISTRY: Mapping[Operation, Endpoint] = MappingProxyType(
    {
        Operation.ANALYZE: _content(Operation.ANALYZE),
        Operation.ARTICLE: _content(Operation.ARTICLE),
        Operation.PRODUCT: _content(Operation.PRODUCT),
        Operation.IMAGE: _content(Operation.IMAGE),
        Operation.VIDEO: _content(Operation.VIDEO),
        Operation.DISCUSSION: _content(Operation.DISCUSSION),
        Operation.EVENT: _content(Operation.EVENT),
        Operation.LIST: _content(Operation.LIST),
        Operation.SEARCH: Endpoint(operation=Operation.SEARCH, path="search", required=SEARCH_PARAMS),
        Operation.CRAWL: Endpoint(operation=Operation.CRAWL, path="crawl", required=CRAWL_PARAMS),
        Operation.BULK: Endpoint(operation=Operation.BULK, path="bulk", required=BULK_PARAMS),
    }
)


def _verify_registry() -> None:
    missing = [op.name for op in Operation if op not in _REGISTRY]
    if missing:
        raise RuntimeError(f"Endpoint registry is missing operations: {', '.join(missing)}")


_verify_registry()


def endpoint_for(operation: Operation | CustomApi | str) -> Endpoint:
    """Return the endpoint for an operation, its path value, or a `CustomApi`."""
    if isinstance(operation, CustomApi):
        return Endpoint(operation=operation, path=operation.name, required=CONTENT_PARAMS)
    try:
        op = Operation(operation)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown operation: {operation!r}") from exc
    return _REGISTRY[op]


def path_for(operation: Operation | CustomApi | str) -> str:
    """Return the path segment of `operation` under the versioned API root."""
    return endpoint_for(operation).path


def content_operations() -> tuple[Operation, ...]:
    """Return every operation that extracts content from a target URL."""
    return tuple(op for op in Operation if _REGISTRY[op].takes_url)


def job_operations() -> tuple[Operation, ...]:
    """Return the operations that run as named crawl or bulk jobs."""
    return (Operation.CRAWL, Operation.BULK)
