"""Blob backends for :class:`carrier.ordered.OrderedCarrier`.

A backend stores one serialized string per carrier name. It knows nothing
about JSON or ordering; the carrier encodes the whole mapping and hands the
resulting string over on every write.

Design notes / invariants:
- All calls are synchronous and complete before returning.
- `get()` returns `None` for a name that was never stored (or was removed).
- `remove()` of a missing name is a no-op.
- There is no locking or versioning. Two writers sharing a name overwrite each
  other; the last write wins.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from carrier.config import CarrierSettings
from carrier.errors import QuotaExceededError


@runtime_checkable
class Backend(Protocol):
    """Protocol for storing carrier blobs by name."""

    def get(self, name: str) -> str | None:
        """Return the blob stored under `name`, or `None` if absent."""

    def set(self, name: str, serialized: str) -> None:
        """Store `serialized` under `name`, replacing any previous blob."""

    def remove(self, name: str) -> None:
        """Delete the blob stored under `name` (no-op when absent)."""


class MemoryBackend(Backend):
    """Process-local backend keeping blobs in a dict.

    Args:
        quota: Optional capacity in characters, counted over every stored name
            plus its blob (like a browser `localStorage` quota). A write that
            would exceed it raises `QuotaExceededError` and stores nothing.
    """

    quota: int | None

    _blobs: dict[str, str]

    def __init__(self, *, quota: int | None = None) -> None:
        if quota is not None and quota < 0:
            raise ValueError(f"quota must be >= 0 or None; got {quota}")
        self.quota = quota
        self._blobs = {}

    def get(self, name: str) -> str | None:
        return self._blobs.get(name)

    def set(self, name: str, serialized: str) -> None:
        if self.quota is not None:
            used = self.used()
            previous = self._blobs.get(name)
            if previous is not None:
                used -= len(name) + len(previous)
            needed = used + len(name) + len(serialized)
            if needed > self.quota:
                raise QuotaExceededError(
                    f"Storing {name!r} needs {needed} characters; quota is {self.quota}"
                )
        self._blobs[name] = serialized

    def remove(self, name: str) -> None:
        self._blobs.pop(name, None)

    def used(self) -> int:
        """Return the number of characters currently counted against the quota."""

        return sum(len(name) + len(blob) for name, blob in self._blobs.items())


class FileBackend(Backend):
    """Backend storing each blob as `<root>/<name>.json`.

    Args:
        root: Directory holding the blobs. Created on first write.
        encoding: File encoding used for reading/writing.

    Writes go to a temporary file in `root` that then replaces the target, so a
    reader never observes a half-written blob. `OSError` from the filesystem
    (for example a full disk) propagates to the caller.
    """

    root: Path
    encoding: str

    def __init__(self, root: str | Path, *, encoding: str = "utf-8") -> None:
        self.root = Path(root)
        self.encoding = encoding

    @classmethod
    def from_settings(cls, settings: CarrierSettings) -> FileBackend:
        return cls(settings.storage_dir, encoding=settings.encoding)

    def path_for(self, name: str) -> Path:
        """Return the blob path for `name`.

        Raises:
            ValueError: If `name` is empty, starts with `.`, or contains a path
                separator or NUL character.
        """

        if not name or name.startswith("."):
            raise ValueError(f"Invalid carrier name: {name!r}")
        if any(ch in name for ch in ("/", "\\", "\0")):
            raise ValueError(f"Invalid carrier name: {name!r}")
        return self.root / f"{name}.json"

    def get(self, name: str) -> str | None:
        path = self.path_for(name)
        try:
            return path.read_text(encoding=self.encoding)
        except FileNotFoundError:
            return None

    def set(self, name: str, serialized: str) -> None:
        path = self.path_for(name)
        self.root.mkdir(parents=True, exist_ok=True)
        tf = tempfile.NamedTemporaryFile(
            "w",
            encoding=self.encoding,
            dir=self.root,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = Path(tf.name)
        try:
            with tf:
                tf.write(serialized)
            tmp_path.replace(path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    def remove(self, name: str) -> None:
        self.path_for(name).unlink(missing_ok=True)
