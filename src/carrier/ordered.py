"""Ordered, size-bounded key-value carrier persisted as one JSON blob.

An :class:`OrderedCarrier` owns one named mapping, loads it from a
:class:`carrier.backend.Backend` at construction time, and writes the whole
mapping back after every mutation.

Design notes / invariants:
- "First" and "last" follow the enumeration order of
  :class:`carrier.keys.OrderedKeyMap`: array-index keys ascending, then every
  other key in first-insertion order. Queue/stack operations, eviction,
  `reverse()` and all searches use this order. Small integer keys therefore
  always sort before string keys, whatever their insertion time: `push()` of
  an index key does not land last, and eviction drops index keys first.
- Write-through: every mutating call persists before it returns. If the
  backend write fails, the in-memory state is reloaded from the backend (the
  last persisted state) and the error propagates.
- Missing entries are reported as `None`. `None` is never stored: `set()`,
  `push()` and `unshift()` with a `None` value do nothing.
- An undecodable blob, or one that is not a JSON object, loads as an empty
  carrier (with a logged warning) and is replaced on the next write.
- No concurrency control. Two instances sharing a name overwrite each other;
  callers must keep a single logical owner per name.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from logging import getLogger

from pydantic import JsonValue

from carrier import codec
from carrier.backend import Backend
from carrier.errors import PersistenceError
from carrier.keys import CarrierKey, OrderedKeyMap, canonical_key, integer_key

logger = getLogger(__name__)

type Predicate = Callable[[JsonValue, str], object]
type KeyComparator = Callable[[str, str], int]
type ValueComparator = Callable[[JsonValue, JsonValue], int]


def where(prop: str, value: JsonValue) -> Predicate:
    """Return a predicate matching mapping values whose `prop` field equals `value`.

    Equality is strict: `True` does not match `1` and `"1"` does not match `1`,
    while `1` and `1.0` are the same number. Values that are not mappings, or
    lack `prop`, never match.
    """

    def predicate(item: JsonValue, key: str) -> bool:
        _ = key
        if not isinstance(item, Mapping) or prop not in item:
            return False
        return _strict_equal(item[prop], value)

    return predicate


def _strict_equal(left: object, right: object) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return left is right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    return type(left) is type(right) and left == right


def _member_field(member: Mapping[str, JsonValue]) -> CarrierKey | None:
    if not isinstance(member, Mapping):
        raise TypeError(f"Member objects must be mappings; got {type(member).__name__}")
    key = member.get("k")
    if key is None:
        return None
    if isinstance(key, bool) or not isinstance(key, (str, int)):
        raise TypeError(f"Member field 'k' must be str or int; got {key!r}")
    return key


def _flatten(keys: Iterable[object]) -> Iterator[object]:
    for key in keys:
        if isinstance(key, (list, tuple)):
            yield from key
        else:
            yield key


class OrderedCarrier:
    """A named, persisted mapping with map, queue/stack and search operations.

    Args:
        name: Backend name the carrier is stored under.
        backend: Blob store used for loading and persisting.
        limit: Maximum entry count; `0` means unlimited. When exceeded, the
            earliest entries in enumeration order are evicted on save.
        based_on_second: Generate timestamp keys in seconds instead of
            milliseconds. Second-based keys stay below the array-index limit,
            so they enumerate numerically (oldest first).
        clock: Source of the current POSIX time in seconds.
    """

    name: str
    limit: int
    based_on_second: bool

    _backend: Backend
    _clock: Callable[[], float]
    _map: OrderedKeyMap

    def __init__(
        self,
        name: str,
        backend: Backend,
        *,
        limit: int = 0,
        based_on_second: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if limit < 0:
            raise ValueError(f"limit must be >= 0; got {limit}")
        self.name = name
        self.limit = limit
        self.based_on_second = based_on_second
        self._backend = backend
        self._clock = clock
        self._map = OrderedKeyMap()
        self._reload()

    def __len__(self) -> int:
        return len(self._map)

    def __contains__(self, key: object) -> bool:
        return key in self._map

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __str__(self) -> str:
        return self.to_json()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, limit={self.limit}, "
            f"based_on_second={self.based_on_second}, size={len(self._map)})"
        )

    # Key resolution

    def timestamp(self) -> int:
        """Return the current time as an integer key (seconds or milliseconds)."""

        now = self._clock()
        return int(now) if self.based_on_second else int(now * 1000)

    def member_key(self, member: Mapping[str, JsonValue]) -> str:
        """Return the key `member` is stored under: its `k` field, else a new timestamp."""

        key = _member_field(member)
        if key is None:
            return str(self.timestamp())
        return canonical_key(key)

    # Map access

    def set(self, key: CarrierKey, value: JsonValue) -> None:
        """Insert or overwrite the entry at `key` (overwrites keep their position)."""

        if value is None:
            return
        self._map[key] = value
        self.save()

    def set_member(self, member: dict[str, JsonValue]) -> None:
        """Store `member` under its `k` field, or under a new timestamp key."""

        self.set(self.member_key(member), member)

    def get(self, key: CarrierKey) -> JsonValue:
        return self._map.get(key)

    def get_member(self, member: Mapping[str, JsonValue]) -> JsonValue:
        """Return the entry stored under `member["k"]`, or `None`."""

        key = _member_field(member)
        if key is None:
            return None
        return self._map.get(key)

    def get_first(self) -> JsonValue:
        key = self._map.first_key()
        return None if key is None else self._map[key]

    def get_last(self) -> JsonValue:
        key = self._map.last_key()
        return None if key is None else self._map[key]

    def remove(self, *keys: CarrierKey | list[CarrierKey] | tuple[CarrierKey, ...]) -> None:
        """Delete entries by key. Lists/tuples are flattened; missing keys are ignored."""

        for key in _flatten(keys):
            self._map.pop(canonical_key(key), None)  # type: ignore[arg-type]
        self.save()

    def remove_members(self, *members: Mapping[str, JsonValue]) -> None:
        """Delete the entries stored under each member's `k` field.

        Members without `k` have no stored key and are skipped.
        """

        for member in _flatten(members):
            key = _member_field(member)  # type: ignore[arg-type]
            if key is not None:
                self._map.pop(canonical_key(key), None)
        self.save()

    def remove_first(self, n: int = 1) -> None:
        """Delete the first `n` entries (all of them when fewer exist)."""

        self._drop(self._slice_first(n))
        self.save()

    def remove_last(self, n: int = 1) -> None:
        """Delete the last `n` entries (all of them when fewer exist)."""

        self._drop(self._slice_last(n))
        self.save()

    # Queue / stack

    def push(self, key: CarrierKey, value: JsonValue) -> None:
        """Delete then re-insert `key`, moving a non-index key to the end."""

        if value is None:
            return
        self._map.pop(canonical_key(key), None)
        self._map[key] = value
        self.save()

    def push_member(self, member: dict[str, JsonValue]) -> None:
        self.push(self.member_key(member), member)

    def pop(self) -> JsonValue:
        """Remove and return the last entry, or `None` when empty."""

        key = self._map.last_key()
        if key is None:
            return None
        value = self._map.pop(key)
        self.save()
        return value

    def shift(self) -> JsonValue:
        """Remove and return the first entry, or `None` when empty."""

        key = self._map.first_key()
        if key is None:
            return None
        value = self._map.pop(key)
        self.save()
        return value

    def unshift(self, key: CarrierKey, value: JsonValue) -> None:
        """Delete then re-insert `key`.

        The entry only lands first when `key` is an array index smaller than
        every existing index key.
        """

        if value is None:
            return
        self._map.pop(canonical_key(key), None)
        self._map[key] = value
        self.save()

    def unshift_member(self, member: dict[str, JsonValue]) -> None:
        """Store `member` at the front.

        Without a `k` field the key is the current first key minus one (when
        that key is an integer), else a new timestamp. Keep such keys below
        `carrier.keys.ARRAY_INDEX_LIMIT` or the entry will not enumerate first.
        """

        key = _member_field(member)
        if key is None:
            key = self._front_key()
        self.unshift(key, member)

    def _front_key(self) -> str:
        first = self._map.first_key()
        if first is not None:
            number = integer_key(first)
            if number is not None:
                return str(number - 1)
        return str(self.timestamp())

    # Enumeration

    def keys(self) -> list[str]:
        return list(self._map)

    def sort(self, compare: KeyComparator | None = None) -> list[str]:
        """Return the keys sorted by `compare` (default: ascending string order).

        `compare(a, b)` returns a negative, zero or positive number. The carrier
        itself is not reordered.
        """

        if compare is None:
            return sorted(self._map)
        return sorted(self._map, key=functools.cmp_to_key(compare))

    def reverse(self) -> list[str]:
        return self.keys()[::-1]

    def value(self) -> OrderedKeyMap:
        """Return the live mapping. Later operations mutate it in place."""

        return self._map

    # Search

    def has(self, predicate: Predicate) -> bool:
        return any(predicate(value, key) for key, value in self._entries())

    def lookup(self, predicate: Predicate) -> JsonValue:
        """Return the first value matching `predicate`, or `None`."""

        for key, value in self._entries():
            if predicate(value, key):
                return value
        return None

    def find(self, predicate: Predicate) -> list[JsonValue]:
        """Return every value matching `predicate`, in enumeration order."""

        return [value for key, value in self._entries() if predicate(value, key)]

    def filter(self, predicate: Predicate) -> list[str]:
        """Return the keys (not values) whose entries match `predicate`."""

        return [key for key, value in self._entries() if predicate(value, key)]

    def list(
        self,
        select: Predicate | None = None,
        compare: ValueComparator | None = None,
    ) -> list[JsonValue]:
        """Return values, filtered by `select` and then sorted by `compare`."""

        values = [
            value
            for key, value in self._entries()
            if select is None or select(value, key)
        ]
        if compare is not None:
            values.sort(key=functools.cmp_to_key(compare))
        return values

    def for_each(self, callback: Callable[[JsonValue, str, OrderedKeyMap], object]) -> None:
        """Call `callback(value, key, mapping)` for every entry.

        Entries deleted by an earlier callback are skipped.
        """

        for key in self.keys():
            if key in self._map:
                callback(self._map[key], key, self._map)

    def _entries(self) -> list[tuple[str, JsonValue]]:
        return list(self._map.items())

    # Persistence

    def save(self) -> None:
        """Evict entries beyond `limit` (earliest first), then persist."""

        if self.limit > 0:
            excess = len(self._map) - self.limit
            if excess > 0:
                evicted = self._slice_first(excess)
                self._drop(evicted)
                logger.debug(f"Evicted {len(evicted)} entries from carrier {self.name!r}")
        self._persist()

    def clear(self) -> None:
        self._map.clear()
        self.save()

    def flush(self) -> None:
        """Discard in-memory state and reload it from the backend (no write)."""

        self._reload()

    def to_json(self) -> str:
        return codec.encode(self._map.to_dict())

    def _slice_first(self, n: int) -> list[str]:
        if n < 1:
            raise ValueError(f"n must be >= 1; got {n}")
        return self.keys()[:n]

    def _slice_last(self, n: int) -> list[str]:
        if n < 1:
            raise ValueError(f"n must be >= 1; got {n}")
        return self.keys()[-n:]

    def _drop(self, keys: list[str]) -> None:
        for key in keys:
            del self._map[key]

    def _persist(self) -> None:
        try:
            self._backend.set(self.name, self.to_json())
        except OSError as e:
            self._reload()
            raise PersistenceError(f"Failed to persist carrier {self.name!r}: {e}") from e
        except (PersistenceError, TypeError, ValueError):
            self._reload()
            raise

    def _reload(self) -> None:
        self._map.clear()
        self._map.update(self._load_entries())

    def _load_entries(self) -> dict[str, JsonValue]:
        try:
            raw = self._backend.get(self.name)
        except UnicodeDecodeError as e:
            logger.warning(f"Discarding undecodable carrier {self.name!r}: {e}")
            return {}
        if raw is None:
            return {}

        try:
            decoded = codec.decode(raw)
        except ValueError as e:
            logger.warning(f"Discarding undecodable carrier {self.name!r}: {e}")
            return {}

        if not isinstance(decoded, dict):
            logger.warning(
                f"Discarding carrier {self.name!r}: expected a JSON object, "
                f"got {type(decoded).__name__}"
            )
            return {}

        return {key: value for key, value in decoded.items() if value is not None}
