from __future__ import annotations

import threading

from .errors import EmptyKey, KeyNotFound


class KeyStore:
    """Slot name -> Base32 key string, held in memory only."""

    def __init__(self) -> None:
        self._keys: dict[str, str] = {}
        self._lock = threading.Lock()

    def set_key(self, slot: str, key: str) -> None:
        if not key:
            raise EmptyKey(slot)
        with self._lock:
            self._keys[slot] = key

    def get_key(self, slot: str) -> str:
        with self._lock:
            key = self._keys.get(slot)
        if key is None:
            raise KeyNotFound(slot)
        return key

    def has_key(self, slot: str) -> bool:
        with self._lock:
            return slot in self._keys

    def remove_key(self, slot: str) -> None:
        with self._lock:
            self._keys.pop(slot, None)

    def slots(self) -> list[str]:
        with self._lock:
            return sorted(self._keys)

    def __contains__(self, slot: object) -> bool:
        with self._lock:
            return slot in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)
