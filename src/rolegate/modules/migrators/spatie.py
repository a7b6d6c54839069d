"""Importer for Spatie-shaped permission tables.

Source schema:

- ``roles(id, name, guard_name)``
- ``permissions(id, name, guard_name)``
- ``model_has_roles(role_id, model_type, model_id)``
- ``model_has_permissions(permission_id, model_type, model_id)``
- ``role_has_permissions(permission_id, role_id)``

Every source role and permission keeps its own guard. Permissions become
simple abilities; the source has no forbids.
"""

from typing import TYPE_CHECKING, Any

from sqlalchemy import RowMapping

from rolegate.modules.conductors.lookups import find_or_create_role
from rolegate.modules.migrators.base import BaseMigrator


if TYPE_CHECKING:
    from rolegate.gatekeeper import Gatekeeper


class SpatieMigrator(BaseMigrator):
    """Imports roles, user roles, user permissions and role permissions.

    Example:
        result = SpatieMigrator(gate, User, entity_type="user").migrate()
        session.commit()
    """

    source_name = "spatie"
    default_tables = {
        "roles": "spatie_roles",
        "permissions": "spatie_permissions",
        "model_has_roles": "spatie_model_has_roles",
        "model_has_permissions": "spatie_model_has_permissions",
        "role_has_permissions": "spatie_role_has_permissions",
    }

    def __init__(self, gate: "Gatekeeper", user_model: type, **kwargs: Any) -> None:
        super().__init__(gate, user_model, **kwargs)

        self.roles = self.source_table("roles", "id", "name", "guard_name")
        self.permissions = self.source_table("permissions", "id", "name", "guard_name")
        self.model_has_roles = self.source_table("model_has_roles", "role_id", "model_type", "model_id")
        self.model_has_permissions = self.source_table(
            "model_has_permissions", "permission_id", "model_type", "model_id"
        )
        self.role_has_permissions = self.source_table("role_has_permissions", "permission_id", "role_id")

    def run(self) -> None:
        self.migrate_roles()
        self.migrate_user_roles()
        self.migrate_user_permissions()
        self.migrate_role_permissions()

    def migrate_roles(self) -> None:
        for row in self.pending(self.roles):
            find_or_create_role(self._gate_for(row).context(), row["name"])
            self.result.roles += 1
            self.mark(self.roles, id=row["id"])

    def migrate_user_roles(self) -> None:
        pivot = self.model_has_roles
        for row in self.pending(pivot, pivot.c.model_type == self.entity_type):
            user = self.find_user(row["model_id"])
            if user is None:
                self.skip("migration_user_missing", user_id=row["model_id"])
                continue

            role = self.find_row(self.roles, row["role_id"])
            if role is None:
                self.skip("migration_role_missing", role_id=row["role_id"])
                continue

            self._gate_for(role).assign(role["name"]).to(user)
            self.result.assignments += 1
            self.mark(pivot, role_id=row["role_id"], model_id=row["model_id"], model_type=self.entity_type)

    def migrate_user_permissions(self) -> None:
        pivot = self.model_has_permissions
        for row in self.pending(pivot, pivot.c.model_type == self.entity_type):
            user = self.find_user(row["model_id"])
            if user is None:
                self.skip("migration_user_missing", user_id=row["model_id"])
                continue

            permission = self.find_row(self.permissions, row["permission_id"])
            if permission is None:
                self.skip("migration_permission_missing", permission_id=row["permission_id"])
                continue

            self._gate_for(permission).allow(user).to(permission["name"])
            self.result.permissions += 1
            self.mark(
                pivot,
                permission_id=row["permission_id"],
                model_id=row["model_id"],
                model_type=self.entity_type,
            )

    def migrate_role_permissions(self) -> None:
        pivot = self.role_has_permissions
        for row in self.pending(pivot):
            role = self.find_row(self.roles, row["role_id"])
            if role is None:
                self.skip("migration_role_missing", role_id=row["role_id"])
                continue

            permission = self.find_row(self.permissions, row["permission_id"])
            if permission is None:
                self.skip("migration_permission_missing", permission_id=row["permission_id"])
                continue

            self._gate_for(permission).allow(role["name"]).to(permission["name"])
            self.result.permissions += 1
            self.mark(pivot, role_id=row["role_id"], permission_id=row["permission_id"])

    def _gate_for(self, row: RowMapping) -> "Gatekeeper":
        guard_name = row["guard_name"]
        if not guard_name or guard_name == self.gate.guard_name:
            return self.gate
        return self.gate.guard(guard_name)
