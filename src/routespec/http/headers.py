"""Case-insensitive HTTP headers.

Implements ``MutableMapping[str, Any]``. Built from the raw byte pairs of
the ASGI scope; names are stored lower-cased.

Headers are writable key by key so validation can store coerced values
(``headers["x-page"] = 2``) on the same object handlers already hold.
The object itself is never swapped out on the request.
"""

from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from typing import Any


class Headers(MutableMapping[str, Any]):
    """Case-insensitive HTTP headers.

    ``__getitem__`` returns the first value for a header.
    ``get_list`` returns all values (e.g. multiple ``Cookie`` lines).
    Assigning a key replaces every value for that header.
    """

    __slots__ = ("_data",)

    def __init__(
        self,
        raw: tuple[tuple[bytes, bytes], ...] | list[tuple[bytes, bytes]] = (),
    ) -> None:
        data: dict[str, list[Any]] = {}
        for name, value in raw:
            key = name.decode("latin-1").lower()
            data.setdefault(key, []).append(value.decode("latin-1"))
        self._data = data

    @classmethod
    def from_dict(cls, headers: dict[str, str]) -> Headers:
        """Build headers from a plain ``{name: value}`` dict."""
        raw = tuple(
            (name.encode("latin-1"), str(value).encode("latin-1"))
            for name, value in headers.items()
        )
        return cls(raw)

    def __getitem__(self, key: str) -> Any:
        return self._data[key.lower()][0]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key.lower()] = [value]

    def __delitem__(self, key: str) -> None:
        del self._data[key.lower()]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return key.lower() in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Headers({{{items}}})"

    def get_list(self, key: str) -> list[Any]:
        """Return all values for *key*."""
        return list(self._data.get(key.lower(), []))

    def to_dict(self) -> dict[str, Any]:
        """Plain dict of first values, keyed by lower-cased name."""
        return {key: values[0] for key, values in self._data.items()}
