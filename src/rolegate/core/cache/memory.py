"""Process-local cache store."""

import copy
from typing import Any

from rolegate.core.errors import CacheConfigurationError


class MemoryCacheStore:
    """Dictionary-backed cache store.

    Values are deep-copied on the way in and out so callers can never
    mutate a cached entry in place.
    """

    def __init__(self, supports_tags: bool = True) -> None:
        """Initialize an empty store.

        Args:
            supports_tags: Whether ``flush`` is available. Disable it to
                exercise the iterative refresh path.
        """
        self.supports_tags = supports_tags
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def forever(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def forget(self, key: str) -> None:
        self._data.pop(key, None)

    def flush(self) -> None:
        if not self.supports_tags:
            raise CacheConfigurationError("This memory store was created without tag support")
        self._data.clear()

    def keys(self) -> list[str]:
        """List the keys currently held."""
        return list(self._data)

    def __len__(self) -> int:
        return len(self._data)
