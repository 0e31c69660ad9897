"""Carrier errors.

Lookups never raise for missing entries (they return `None`); only backend
write failures surface as exceptions from this module.
"""

from __future__ import annotations


class CarrierError(Exception):
    """Base class for carrier failures."""


class PersistenceError(CarrierError):
    """Raised when the backend fails to store a carrier blob."""


class QuotaExceededError(PersistenceError):
    """Raised when a backend refuses a write because its storage quota is full."""
