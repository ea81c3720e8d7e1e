"""Schema-free response documents.

The remote API's response shape varies per operation and changes over time,
so successful results are kept as the parsed JSON tree. `ResponseDocument`
wraps the top-level object as a read-only mapping and adds projection helpers
that return `None` instead of raising when a field is missing or has an
unexpected type.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from typing import Any, Union

__all__ = ["JsonValue", "ResponseDocument"]

JsonValue = Union[None, bool, int, float, str, list["JsonValue"], dict[str, "JsonValue"]]

_MISSING = object()


class ResponseDocument(Mapping[str, Any]):
    """Read-only, key-ordered view of a JSON object returned by the API."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ResponseDocument):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ResponseDocument({self._data!r})"

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the underlying JSON object."""
        return copy.deepcopy(self._data)

    def get_str(self, key: str) -> str | None:
        value = self._data.get(key)
        return value if isinstance(value, str) else None

    def get_int(self, key: str) -> int | None:
        value = self._data.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    def get_float(self, key: str) -> float | None:
        """Return a numeric field as float (integers are widened)."""
        value = self._data.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)

    def get_bool(self, key: str) -> bool | None:
        value = self._data.get(key)
        return value if isinstance(value, bool) else None

    def get_list(self, key: str) -> list[Any] | None:
        value = self._data.get(key)
        return value if isinstance(value, list) else None

    def get_document(self, key: str) -> "ResponseDocument | None":
        value = self._data.get(key)
        return ResponseDocument(value) if isinstance(value, dict) else None

    def documents(self, key: str) -> list["ResponseDocument"]:
        """Return the JSON objects in list field `key`, skipping other items."""
        items = self.get_list(key) or []
        return [ResponseDocument(item) for item in items if isinstance(item, dict)]

    def find(self, path: str, default: Any = None) -> Any:
        """Look up a dotted path such as ``"objects.0.title"``.

        Numeric segments index into lists. Returns `default` when any segment
        does not resolve.
        """
        node: Any = self._data
        for segment in (path or "").split("."):
            if not segment:
                return default
            if isinstance(node, dict):
                node = node.get(segment, _MISSING)
            elif isinstance(node, list):
                try:
                    index = int(segment)
                except ValueError:
                    return default
                if not -len(node) <= index < len(node):
                    return default
                node = node[index]
            else:
                return default
            if node is _MISSING:
                return default
        return node
