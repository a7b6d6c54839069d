"""Shared state passed to every conductor."""

from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from rolegate.core.database.scope import Scope
from rolegate.modules.clipboard.base import BaseClipboard
from rolegate.modules.identity.registry import ModelRegistry


@dataclass
class ConductorContext:
    """Session, configuration and clipboard a write operation runs against.

    Conductors flush but never commit; the caller owns the transaction.
    """

    session: Session
    registry: ModelRegistry
    scope: Scope
    clipboard: BaseClipboard
    guard_name: str

    def morph_attributes(self, prefix: str, model: Any | None) -> dict[str, str | None]:
        """Build ``{prefix}_id`` / ``{prefix}_type`` column values for a model.

        Returns:
            An empty dict when no model is given
        """
        if model is None:
            return {}
        ref = self.registry.reference(model)
        return {f"{prefix}_id": ref.key, f"{prefix}_type": ref.type}
