"""Cache store contract used by the cached clipboard."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheStore(Protocol):
    """Key-value store holding clipboard entries.

    Entries never expire on their own; they are removed by ``forget`` or
    ``flush``.

    Attributes:
        supports_tags: Whether ``flush`` can drop every rolegate entry in
            one operation. Stores without it force the cached clipboard to
            refresh by visiting every known actor and role.
    """

    supports_tags: bool

    def get(self, key: str) -> Any | None:
        """Get a value, or None on a miss."""
        ...

    def forever(self, key: str, value: Any) -> None:
        """Store a value without expiry."""
        ...

    def forget(self, key: str) -> None:
        """Remove a single key."""
        ...

    def flush(self) -> None:
        """Remove every entry belonging to this store's tag."""
        ...
