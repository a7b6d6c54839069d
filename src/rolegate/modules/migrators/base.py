"""Shared machinery for importing permissions from other schemas.

A migrator reads rows from source tables (by default through the
Gatekeeper's own session) and replays them through the Gatekeeper's
conductors, so imported data obeys the same uniqueness and scoping rules
as data written by the application.

Rows whose user, role or ability cannot be found are skipped and logged;
the run carries on. With ``track_migrated_at`` enabled only source rows
with a NULL ``migrated_at`` column are read and each imported row is
stamped, so running a migrator twice imports nothing new.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar

import structlog
from sqlalchemy import Connection, DateTime, RowMapping, TableClause, column, select, table, update
from sqlalchemy.orm import Session

from rolegate.config import settings


if TYPE_CHECKING:
    from rolegate.gatekeeper import Gatekeeper


log = structlog.get_logger()


@dataclass
class MigrationResult:
    """Counts of imported and skipped source rows."""

    roles: int = 0
    abilities: int = 0
    assignments: int = 0
    permissions: int = 0
    skipped: int = 0


class BaseMigrator(ABC):
    """Base class for schema importers.

    Args:
        gate: Gatekeeper the imported data is written through
        user_model: Mapped class the source user ids belong to
        source: Session or connection to read source tables from
        tables: Overrides for the source table names
        entity_type: Type value the source uses for ``user_model`` rows
        track_migrated_at: Read only unmarked rows and mark imported ones
        migrated_at_column: Name of the marker column in every source table
        batch_size: Rows imported between flushes
    """

    source_name: ClassVar[str]
    default_tables: ClassVar[dict[str, str]]

    def __init__(
        self,
        gate: "Gatekeeper",
        user_model: type,
        source: Session | Connection | None = None,
        tables: dict[str, str] | None = None,
        entity_type: str | None = None,
        track_migrated_at: bool = False,
        migrated_at_column: str = "migrated_at",
        batch_size: int | None = None,
    ) -> None:
        self.gate = gate
        self.user_model = user_model
        self.source = source if source is not None else gate.session
        self.tables = {**self.default_tables, **(tables or {})}
        self.entity_type = entity_type or gate.registry.type_for(user_model)
        self.track_migrated_at = track_migrated_at
        self.migrated_at_column = migrated_at_column
        self.batch_size = batch_size or settings.migrator_batch_size
        self.result = MigrationResult()

    def migrate(self) -> MigrationResult:
        """Import everything; the caller commits."""
        self.result = MigrationResult()
        log.info("migration_started", source=self.source_name)

        self.run()
        self.gate.session.flush()

        log.info("migration_completed", source=self.source_name, **asdict(self.result))
        return self.result

    @abstractmethod
    def run(self) -> None:
        """Import every kind of source row, in dependency order."""

    # ============================================================
    # Source access
    # ============================================================

    def source_table(self, key: str, *columns: str) -> TableClause:
        clauses = [column(name) for name in columns]
        if self.track_migrated_at:
            clauses.append(column(self.migrated_at_column, DateTime()))
        return table(self.tables[key], *clauses)

    def pending(self, source: TableClause, *criteria: Any) -> Iterator[RowMapping]:
        """Yield the source rows still to import, flushing every batch."""
        stmt = select(source).where(*criteria)
        if self.track_migrated_at:
            stmt = stmt.where(source.c[self.migrated_at_column].is_(None))

        rows = self.source.execute(stmt).mappings().all()
        for index, row in enumerate(rows, start=1):
            yield row
            if index % self.batch_size == 0:
                self.gate.session.flush()

    def find_row(self, source: TableClause, row_id: Any) -> RowMapping | None:
        return self.source.execute(select(source).where(source.c.id == row_id)).mappings().first()

    def find_user(self, user_id: Any) -> Any | None:
        return self.gate.session.get(self.user_model, user_id)

    def mark(self, source: TableClause, **match: Any) -> None:
        """Stamp the source rows matching ``match`` as migrated."""
        if not self.track_migrated_at:
            return
        criteria = [
            source.c[name].is_(None) if value is None else source.c[name] == value
            for name, value in match.items()
        ]
        stmt = update(source).where(*criteria).values({self.migrated_at_column: datetime.now(UTC)})
        self.source.execute(stmt)

    def skip(self, event: str, **context: Any) -> None:
        self.result.skipped += 1
        log.info(event, source=self.source_name, **context)
