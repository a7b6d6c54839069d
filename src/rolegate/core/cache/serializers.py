"""JSON encoding of clipboard cache entries.

Entries are lists: ability snapshots for the ``abilities`` kind and
``[role_id, name]`` pairs for the ``roles`` kind. Snapshots are written as
plain dicts and rebuilt with ``AbilityData.model_validate`` on read, so
nothing here needs to know the target type.
"""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel


class CacheEncoder(json.JSONEncoder):
    """Encode snapshots, enums and unordered collections."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=str)
        return super().default(obj)


def serialize(value: Any) -> str:
    """Serialize a cache entry.

    Args:
        value: Entry to store

    Returns:
        Compact JSON string
    """
    return json.dumps(value, cls=CacheEncoder, separators=(",", ":"))


def deserialize(data: str | bytes) -> Any:
    """Decode a stored cache entry back into lists and dicts."""
    return json.loads(data)
