"""Key-value storage backends that play the role of browser local storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional


class KeyValueStorage(ABC):
    """Minimal string-to-string storage with explicit get/set/remove."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage(KeyValueStorage):
    """Dictionary backed storage, mostly useful for tests and scripts."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)


class NamespacedStorage(KeyValueStorage):
    """Prefix every key so several clients can share one backend."""

    def __init__(self, backend: KeyValueStorage, namespace: str) -> None:
        if not namespace:
            raise ValueError("namespace must not be empty")
        self.backend = backend
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get_item(self, key: str) -> Optional[str]:
        return self.backend.get_item(self._key(key))

    def set_item(self, key: str, value: str) -> None:
        self.backend.set_item(self._key(key), value)

    def remove_item(self, key: str) -> None:
        self.backend.remove_item(self._key(key))


__all__ = ["KeyValueStorage", "MemoryStorage", "NamespacedStorage"]
