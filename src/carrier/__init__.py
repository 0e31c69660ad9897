"""Ordered key-value carriers persisted as one JSON blob per name.

Public entrypoints:
- `OrderedCarrier`: map, queue/stack and search operations over one carrier.
- `where`: build an equality predicate for `has`/`lookup`/`find`.
- `MemoryBackend` / `FileBackend`: blob stores implementing `Backend`.
- `CarrierSettings`: `CARRIER_*` environment configuration.
"""

from carrier.backend import Backend, FileBackend, MemoryBackend
from carrier.config import CarrierSettings
from carrier.errors import CarrierError, PersistenceError, QuotaExceededError
from carrier.keys import ARRAY_INDEX_LIMIT, CarrierKey, OrderedKeyMap
from carrier.ordered import OrderedCarrier, where

__all__ = [
    "ARRAY_INDEX_LIMIT",
    "Backend",
    "CarrierError",
    "CarrierKey",
    "CarrierSettings",
    "FileBackend",
    "MemoryBackend",
    "OrderedCarrier",
    "OrderedKeyMap",
    "PersistenceError",
    "QuotaExceededError",
    "where",
]
