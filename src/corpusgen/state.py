"""Per-generator mutable state.

One ``GenState`` belongs to one caller. Concurrent workers sharing a compiled
generator each need their own state (and their own ``ValueProviders``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass
class ScalarEntry:
    """Last value emitted for a field (fuzziness walk, constant keyword)."""

    value: int | float | str


@dataclass
class PoolEntry:
    """Distinct rendered fragments collected for a cardinality-bound field."""

    fragments: list[bytes] = field(default_factory=list)


CacheEntry = Union[ScalarEntry, PoolEntry]


@dataclass
class GenState:
    counter: int = 0
    cache: dict[str, CacheEntry] = field(default_factory=dict)
    _buffers: list[bytearray] = field(default_factory=list, repr=False)

    def scalar(self, name: str) -> ScalarEntry | None:
        entry = self.cache.get(name)
        return entry if isinstance(entry, ScalarEntry) else None

    def pool(self, name: str) -> PoolEntry:
        entry = self.cache.get(name)
        if not isinstance(entry, PoolEntry):
            entry = PoolEntry()
            self.cache[name] = entry
        return entry

    def acquire(self) -> bytearray:
        """Borrow an empty scratch buffer; hand it back with ``release``."""
        if self._buffers:
            return self._buffers.pop()
        return bytearray()

    def release(self, buf: bytearray) -> None:
        buf.clear()
        self._buffers.append(buf)

    def reset(self) -> None:
        self.counter = 0
        self.cache.clear()
        self._buffers.clear()
