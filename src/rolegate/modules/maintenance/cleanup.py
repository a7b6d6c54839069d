"""Cleanup of abilities that no longer do anything.

Two independent passes:

- unassigned: abilities that no permission row references;
- orphaned: abilities bound to a subject instance whose row is gone.

Run periodically or after bulk deletes of subject rows.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy import String, cast, delete, select
from sqlalchemy.orm import Session

from rolegate.core.constants import WILDCARD
from rolegate.core.errors import UnknownModelTypeError
from rolegate.modules.identity.models import Ability, Permission
from rolegate.modules.identity.registry import ModelRegistry


log = structlog.get_logger()


@dataclass
class CleanupResult:
    unassigned_deleted: int = 0
    orphaned_deleted: int = 0

    @property
    def total(self) -> int:
        return self.unassigned_deleted + self.orphaned_deleted


class AbilityCleaner:
    """Deletes unassigned and orphaned abilities.

    The cleaner flushes on the given session; the caller commits.

    Example:
        with session_scope(factory) as session:
            result = AbilityCleaner(session, registry).clean(orphaned=False)
    """

    def __init__(self, session: Session, registry: ModelRegistry) -> None:
        self.session = session
        self.registry = registry

    def clean(self, unassigned: bool = True, orphaned: bool = True) -> CleanupResult:
        """Run the selected passes.

        Args:
            unassigned: Delete abilities not granted or forbidden to anyone
            orphaned: Delete abilities whose subject instance no longer exists

        Returns:
            Number of abilities deleted by each pass
        """
        result = CleanupResult()

        # Orphans first so abilities freed of their permissions are not counted twice
        if orphaned:
            result.orphaned_deleted = self.delete_orphaned()
        if unassigned:
            result.unassigned_deleted = self.delete_unassigned()

        self.session.flush()
        log.info(
            "abilities_cleaned",
            unassigned_deleted=result.unassigned_deleted,
            orphaned_deleted=result.orphaned_deleted,
        )
        return result

    def delete_unassigned(self) -> int:
        stmt = delete(Ability).where(Ability.id.not_in(select(Permission.ability_id)))
        return self.session.execute(stmt, execution_options={"synchronize_session": False}).rowcount

    def delete_orphaned(self) -> int:
        deleted = 0
        for subject_type in self._subject_types():
            try:
                model = self.registry.class_for(subject_type)
            except UnknownModelTypeError:
                log.warning("orphan_cleanup_type_skipped", subject_type=subject_type)
                continue

            key_column = cast(getattr(model, self.registry.key_name_for(model)), String)
            orphan_ids = select(Ability.id).where(
                Ability.subject_type == subject_type,
                Ability.subject_id.is_not(None),
                Ability.subject_id.not_in(select(key_column)),
            )
            ids = list(self.session.scalars(orphan_ids).all())
            if not ids:
                continue

            self.session.execute(
                delete(Permission).where(Permission.ability_id.in_(ids)),
                execution_options={"synchronize_session": False},
            )
            deleted += self.session.execute(
                delete(Ability).where(Ability.id.in_(ids)),
                execution_options={"synchronize_session": False},
            ).rowcount

        return deleted

    def _subject_types(self) -> list[str]:
        stmt = (
            select(Ability.subject_type)
            .where(
                Ability.subject_id.is_not(None),
                Ability.subject_type.is_not(None),
                Ability.subject_type != WILDCARD,
            )
            .distinct()
        )
        return list(self.session.scalars(stmt).all())
