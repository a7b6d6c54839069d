"""Importers from other permission-storage schemas."""

from rolegate.modules.migrators.base import BaseMigrator, MigrationResult
from rolegate.modules.migrators.bouncer import BouncerMigrator
from rolegate.modules.migrators.spatie import SpatieMigrator


__all__ = ["BaseMigrator", "BouncerMigrator", "MigrationResult", "SpatieMigrator"]
