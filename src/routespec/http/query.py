"""Query string parameters.

Implements ``MutableMapping[str, Any]``. A key given once maps to its
string value; a repeated key (``?tag=a&tag=b``) maps to a list.
"""

from collections.abc import Iterator, MutableMapping
from typing import Any
from urllib.parse import parse_qs


class QueryParams(MutableMapping[str, Any]):
    """Parsed query string.

    Attributes:
        _data: Field name -> value (``str``, or ``list[str]`` when repeated).
        _raw: Raw query string bytes.

    Values written after parsing (e.g. coerced by validation) are stored
    as given.
    """

    __slots__ = ("_data", "_raw")

    def __init__(self, query_string: bytes = b"") -> None:
        self._raw = query_string
        parsed = parse_qs(query_string.decode("latin-1"), keep_blank_values=True)
        self._data: dict[str, Any] = {
            key: values[0] if len(values) == 1 else values for key, values in parsed.items()
        }

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"QueryParams({{{items}}})"

    @property
    def raw(self) -> bytes:
        """The query string exactly as received."""
        return self._raw

    def get_list(self, key: str) -> list[Any]:
        """Return all values for *key* as a list."""
        value = self._data.get(key)
        if value is None:
            return []
        if isinstance(value, list):
            return list(value)
        return [value]

    def to_dict(self) -> dict[str, Any]:
        """Plain dict copy of the current values."""
        return dict(self._data)
