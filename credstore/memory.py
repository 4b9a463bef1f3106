"""Dictionary-backed storage backend."""

from typing import Dict, List, Optional

from credstore.backend import StorageBackend


class InMemoryStorage(StorageBackend):
    """Volatile backend for tests and development."""

    def __init__(self, max_value_size: Optional[int] = None):
        self.max_value_size = max_value_size
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.check_value_size(key, value)
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self) -> List[str]:
        return list(self._data.keys())

    async def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
