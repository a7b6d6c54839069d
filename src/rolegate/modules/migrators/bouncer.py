"""Importer for Bouncer-shaped permission tables.

Source schema:

- ``roles(id, name, title)``
- ``abilities(id, name, title, entity_id, entity_type, only_owned, options)``
- ``assigned_roles(role_id, entity_id, entity_type)``
- ``permissions(ability_id, entity_id, entity_type, forbidden)``

A permission row whose ``entity_type`` is the user type belongs to a user,
one whose ``entity_type`` is NULL or the role type belongs to the role
with id ``entity_id``, and one with neither type nor id is granted to
everyone.
"""

import json
from typing import TYPE_CHECKING, Any

from sqlalchemy import RowMapping, or_

from rolegate.core.constants import WILDCARD
from rolegate.modules.conductors.lookups import AbilityLookup, find_or_create_role
from rolegate.modules.identity.models import Ability, Role
from rolegate.modules.matching.matcher import Subject, SubjectKind
from rolegate.modules.migrators.base import BaseMigrator


if TYPE_CHECKING:
    from rolegate.gatekeeper import Gatekeeper


class BouncerMigrator(BaseMigrator):
    """Imports roles, abilities, assignments and permissions into one guard.

    Example:
        migrator = BouncerMigrator(gate, User, guard_name="web", track_migrated_at=True)
        result = migrator.migrate()
        session.commit()
    """

    source_name = "bouncer"
    default_tables = {
        "roles": "bouncer_roles",
        "abilities": "bouncer_abilities",
        "assigned_roles": "bouncer_assigned_roles",
        "permissions": "bouncer_permissions",
    }

    def __init__(
        self,
        gate: "Gatekeeper",
        user_model: type,
        guard_name: str | None = None,
        role_entity_type: str = "roles",
        **kwargs: Any,
    ) -> None:
        super().__init__(gate, user_model, **kwargs)
        self.target = gate.guard(guard_name) if guard_name else gate
        self.role_entity_type = role_entity_type

        self.roles = self.source_table("roles", "id", "name", "title")
        self.abilities = self.source_table(
            "abilities", "id", "name", "title", "entity_id", "entity_type", "only_owned", "options"
        )
        self.assigned_roles = self.source_table("assigned_roles", "role_id", "entity_id", "entity_type")
        self.permissions = self.source_table("permissions", "ability_id", "entity_id", "entity_type", "forbidden")

    def run(self) -> None:
        self.migrate_roles()
        self.migrate_abilities()
        self.migrate_user_roles()
        self.migrate_user_permissions()
        self.migrate_role_permissions()

    def migrate_roles(self) -> None:
        for row in self.pending(self.roles):
            self._target_role(row)
            self.result.roles += 1
            self.mark(self.roles, id=row["id"])

    def migrate_abilities(self) -> None:
        for row in self.pending(self.abilities):
            self._target_ability(row)
            self.result.abilities += 1
            self.mark(self.abilities, id=row["id"])

    def migrate_user_roles(self) -> None:
        assigned = self.assigned_roles
        for row in self.pending(assigned, assigned.c.entity_type == self.entity_type):
            user = self.find_user(row["entity_id"])
            if user is None:
                self.skip("migration_user_missing", user_id=row["entity_id"])
                continue

            role_row = self.find_row(self.roles, row["role_id"])
            if role_row is None:
                self.skip("migration_role_missing", role_id=row["role_id"])
                continue

            self.target.assign(self._target_role(role_row)).to(user)
            self.result.assignments += 1
            self.mark(assigned, role_id=row["role_id"], entity_id=row["entity_id"], entity_type=self.entity_type)

    def migrate_user_permissions(self) -> None:
        permissions = self.permissions
        for row in self.pending(permissions, permissions.c.entity_type == self.entity_type):
            user = self.find_user(row["entity_id"])
            if user is None:
                self.skip("migration_user_missing", user_id=row["entity_id"])
                continue

            ability = self._ability_for_permission(row)
            if ability is None:
                continue

            conductor = self.target.forbid(user) if row["forbidden"] else self.target.allow(user)
            conductor.to(ability)
            self.result.permissions += 1
            self.mark(
                permissions,
                ability_id=row["ability_id"],
                entity_id=row["entity_id"],
                entity_type=self.entity_type,
            )

    def migrate_role_permissions(self) -> None:
        permissions = self.permissions
        role_rows = or_(
            permissions.c.entity_type.is_(None),
            permissions.c.entity_type == self.role_entity_type,
        )
        for row in self.pending(permissions, role_rows):
            ability = self._ability_for_permission(row)
            if ability is None:
                continue

            if row["entity_id"] is None:
                conductor = self.target.forbid_everyone() if row["forbidden"] else self.target.allow_everyone()
            else:
                role_row = self.find_row(self.roles, row["entity_id"])
                if role_row is None:
                    self.skip("migration_role_missing", role_id=row["entity_id"])
                    continue
                role = self._target_role(role_row)
                conductor = self.target.forbid(role) if row["forbidden"] else self.target.allow(role)

            conductor.to(ability)
            self.result.permissions += 1
            self.mark(
                permissions,
                ability_id=row["ability_id"],
                entity_id=row["entity_id"],
                entity_type=row["entity_type"],
            )

    def _ability_for_permission(self, row: RowMapping) -> Ability | None:
        ability_row = self.find_row(self.abilities, row["ability_id"])
        if ability_row is None:
            self.skip("migration_ability_missing", ability_id=row["ability_id"])
            return None
        return self._target_ability(ability_row)

    def _target_role(self, row: RowMapping) -> Role:
        return find_or_create_role(self.target.context(), row["name"], title=row["title"])

    def _target_ability(self, row: RowMapping) -> Ability:
        entity_type = row["entity_type"]
        entity_id = None if row["entity_id"] is None else str(row["entity_id"])

        if entity_type is None:
            subject = Subject(SubjectKind.NONE)
        elif entity_type == WILDCARD:
            subject = Subject(SubjectKind.WILDCARD, type=entity_type)
        elif entity_id is None:
            subject = Subject(SubjectKind.CLASS, type=entity_type)
        else:
            subject = Subject(SubjectKind.INSTANCE, type=entity_type, key=entity_id)

        options = row["options"]
        if isinstance(options, str):
            options = json.loads(options) if options else None

        attributes = {"title": row["title"], "only_owned": bool(row["only_owned"]), "options": options}
        return AbilityLookup(self.target.context()).ensure_ability(row["name"], subject, attributes)

