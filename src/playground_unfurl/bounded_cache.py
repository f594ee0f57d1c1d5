from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class BoundedCache(Generic[K, V]):
    """Mapping that holds at most ``max_entries`` keys.

    Eviction follows insertion order: once a new key pushes the size past the
    limit, the oldest inserted key is dropped. Reads and overwrites do not
    refresh a key's position.
    """

    def __init__(self, max_entries: int) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._max_entries = max_entries
        self._entries: dict[K, V] = {}

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def set(self, key: K, value: V) -> None:
        # dict assignment keeps an existing key in its original slot
        self._entries[key] = value
        if len(self._entries) > self._max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

    def get(self, key: K) -> V | None:
        return self._entries.get(key)

    def has(self, key: K) -> bool:
        return key in self._entries

    def delete(self, key: K) -> bool:
        if key not in self._entries:
            return False
        del self._entries[key]
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[K]:
        return iter(tuple(self._entries))
