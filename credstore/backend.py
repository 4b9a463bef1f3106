"""Key-value storage backend interface consumed by the record store."""

from abc import ABC, abstractmethod
from typing import List, Optional

from common.exceptions import ValueTooLargeError
from common.utils import generate_uuid


class StorageBackend(ABC):
    """
    Async string key-value store with an optional per-value size cap.

    keys() and clear() are optional; backends that cannot enumerate or
    wipe leave them raising NotImplementedError.
    """

    max_value_size: Optional[int] = None

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        raise NotImplementedError

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove key; removing an absent key is a no-op."""
        raise NotImplementedError

    async def keys(self) -> List[str]:
        """List every stored key."""
        raise NotImplementedError(f"{type(self).__name__} does not support key enumeration")

    async def clear(self) -> None:
        """Remove every stored key."""
        raise NotImplementedError(f"{type(self).__name__} does not support clear")

    def generate_id(self) -> str:
        """Generate a unique record identifier."""
        return generate_uuid()

    def check_value_size(self, key: str, value: str) -> None:
        """
        Raises:
            ValueTooLargeError: If value exceeds max_value_size
        """
        if self.max_value_size is not None and len(value) > self.max_value_size:
            raise ValueTooLargeError(key, len(value), self.max_value_size)
