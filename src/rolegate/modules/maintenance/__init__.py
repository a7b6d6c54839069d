"""Maintenance operations on the permission tables."""

from rolegate.modules.maintenance.cleanup import AbilityCleaner, CleanupResult


__all__ = ["AbilityCleaner", "CleanupResult"]
