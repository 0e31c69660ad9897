"""Key canonicalisation and the carrier enumeration order.

Carrier keys are strings on disk (they are JSON object member names), so an
`int` key `7` and the string `"7"` address the same entry.

Enumeration order:
- "Array index" keys come first, in ascending numeric order. An array index is
  a plain decimal integer string (no sign, no leading zeros) whose value is
  strictly below `ARRAY_INDEX_LIMIT`.
- Every other key follows, in first-insertion order. Overwriting a key keeps
  its position; deleting and re-inserting it moves it to the end.

`OrderedKeyMap` keeps the two groups in separate structures (a sorted list of
index values plus an insertion-ordered dict) instead of relying on any single
container's iteration order.
"""

from __future__ import annotations

import bisect
import re
from collections.abc import Iterator, Mapping, MutableMapping

from pydantic import JsonValue

type CarrierKey = str | int

ARRAY_INDEX_LIMIT = 2**31 - 1

_ARRAY_INDEX_DIGITS = len(str(ARRAY_INDEX_LIMIT))
_ARRAY_INDEX_RE = re.compile(r"0|[1-9][0-9]*")
_INTEGER_RE = re.compile(r"-?[0-9]+")


def canonical_key(key: CarrierKey) -> str:
    """Return the string form `key` is stored under.

    Raises:
        TypeError: If `key` is not a `str` or `int` (`bool` is rejected too).
    """

    if isinstance(key, bool):
        raise TypeError(f"Carrier keys must be str or int; got bool {key!r}")
    if isinstance(key, int):
        return str(key)
    if isinstance(key, str):
        return key
    raise TypeError(f"Carrier keys must be str or int; got {type(key).__name__}")


def array_index(key: str) -> int | None:
    """Return the numeric value of `key` if it is an array index, else `None`."""

    if len(key) > _ARRAY_INDEX_DIGITS or _ARRAY_INDEX_RE.fullmatch(key) is None:
        return None
    value = int(key)
    return value if value < ARRAY_INDEX_LIMIT else None


def integer_key(key: str) -> int | None:
    """Return `key` as an `int` if it is a signed decimal integer string."""

    if _INTEGER_RE.fullmatch(key) is None:
        return None
    try:
        return int(key)
    except ValueError:
        # Longer than the interpreter's int conversion digit limit.
        return None


class OrderedKeyMap(MutableMapping[str, JsonValue]):
    """Mapping of carrier keys to JSON values, iterated in enumeration order."""

    _indexes: list[int]
    _indexed: dict[int, JsonValue]
    _named: dict[str, JsonValue]

    def __init__(self, items: Mapping[str, JsonValue] | None = None) -> None:
        self._indexes = []
        self._indexed = {}
        self._named = {}
        if items is not None:
            self.update(items)

    def __getitem__(self, key: CarrierKey) -> JsonValue:
        name = canonical_key(key)
        index = array_index(name)
        if index is None:
            return self._named[name]
        try:
            return self._indexed[index]
        except KeyError:
            raise KeyError(name) from None

    def __setitem__(self, key: CarrierKey, value: JsonValue) -> None:
        name = canonical_key(key)
        index = array_index(name)
        if index is None:
            self._named[name] = value
            return
        if index not in self._indexed:
            bisect.insort(self._indexes, index)
        self._indexed[index] = value

    def __delitem__(self, key: CarrierKey) -> None:
        name = canonical_key(key)
        index = array_index(name)
        if index is None:
            del self._named[name]
            return
        if index not in self._indexed:
            raise KeyError(name)
        del self._indexed[index]
        del self._indexes[bisect.bisect_left(self._indexes, index)]

    def __iter__(self) -> Iterator[str]:
        for index in self._indexes:
            yield str(index)
        yield from self._named

    def __len__(self) -> int:
        return len(self._indexes) + len(self._named)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, bool) or not isinstance(key, (str, int)):
            return False
        name = canonical_key(key)
        index = array_index(name)
        if index is None:
            return name in self._named
        return index in self._indexed

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_dict()!r})"

    def clear(self) -> None:
        self._indexes.clear()
        self._indexed.clear()
        self._named.clear()

    def first_key(self) -> str | None:
        """Return the first key in enumeration order, or `None` if empty."""

        if self._indexes:
            return str(self._indexes[0])
        return next(iter(self._named), None)

    def last_key(self) -> str | None:
        """Return the last key in enumeration order, or `None` if empty."""

        if self._named:
            return next(reversed(self._named))
        if self._indexes:
            return str(self._indexes[-1])
        return None

    def to_dict(self) -> dict[str, JsonValue]:
        """Return a plain dict whose insertion order is the enumeration order."""

        return {key: self[key] for key in self}
