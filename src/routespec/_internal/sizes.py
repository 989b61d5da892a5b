"""Byte-size parsing for body limits (``"64kb"``, ``"1mb"``, ``1024``)."""

import re

_UNITS: dict[str, int] = {
    "b": 1,
    "kb": 1024,
    "mb": 1024**2,
    "gb": 1024**3,
}

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmg]?b)?\s*$", re.IGNORECASE)


def parse_size(value: int | str) -> int:
    """Convert a size limit to a number of bytes.

    Integers are taken as bytes. Strings take an optional unit suffix
    (``b``, ``kb``, ``mb``, ``gb``), case-insensitive, base 1024.

    Raises ``ValueError`` for negative or unparseable values.
    """
    if isinstance(value, bool):
        msg = f"Invalid size: {value!r}"
        raise ValueError(msg)
    if isinstance(value, int):
        if value < 0:
            msg = f"Size must not be negative: {value!r}"
            raise ValueError(msg)
        return value
    if not isinstance(value, str):
        msg = f"Invalid size: {value!r}"
        raise ValueError(msg)
    match = _SIZE_RE.match(value)
    if match is None:
        msg = f"Invalid size: {value!r}"
        raise ValueError(msg)
    number, unit = match.groups()
    return int(float(number) * _UNITS[(unit or "b").lower()])
