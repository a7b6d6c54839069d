"""Integration tests for guard isolation and tenancy scopes."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rolegate import Gatekeeper, Scope
from rolegate.modules.identity import Ability, Permission, Role
from tests.models import User


pytestmark = pytest.mark.integration


class TestGuards:
    """Each guard is a separate permission universe."""

    def test_abilities_are_per_guard(self, gate: Gatekeeper, user: User):
        gate.guard("api").allow(user).to("export")

        assert gate.cannot(user, "export")
        assert gate.guard("api").can(user, "export")

    def test_roles_are_per_guard(self, gate: Gatekeeper, db: Session, user: User):
        gate.guard("api").assign("admin").to(user)

        assert gate.is_(user).not_a("admin")
        assert gate.guard("api").is_(user).a("admin")

    def test_same_role_name_in_two_guards(self, gate: Gatekeeper, db: Session, user: User):
        gate.allow("admin").to("ban-users")
        gate.guard("api").allow("admin").to("export")
        gate.assign("admin").to(user)

        assert db.scalar(select(func.count()).select_from(Role)) == 2
        assert gate.can(user, "ban-users")
        assert gate.cannot(user, "export")

    def test_guard_shares_configuration(self, gate: Gatekeeper):
        api = gate.guard("api")

        assert api.session is gate.session
        assert api.registry is gate.registry
        assert api.scope is gate.scope
        assert api.guard_name == "api"
        assert api.clipboard.guard_name == "api"

    def test_guard_of_cached_gate_stays_cached(self, cached_gate: Gatekeeper):
        api = cached_gate.guard("api")

        assert api.uses_cached_clipboard
        assert api.store is cached_gate.store


class TestScopes:
    """Tenancy scope on roles, abilities and edges."""

    def test_scoped_grants_are_invisible_elsewhere(self, gate: Gatekeeper, scope: Scope, user: User):
        scope.to(1)
        gate.allow(user).to("edit")
        assert gate.can(user, "edit")

        scope.to(2)
        assert gate.cannot(user, "edit")

        scope.remove()
        assert gate.cannot(user, "edit")

    def test_unscoped_grants_are_visible_everywhere(self, gate: Gatekeeper, scope: Scope, user: User):
        gate.allow(user).to("edit")

        scope.to(1)

        assert gate.can(user, "edit")

    def test_scoped_rows_are_tagged(self, gate: Gatekeeper, db: Session, scope: Scope, user: User):
        scope.to("acme")
        gate.allow("admin").to("edit")

        assert db.scalar(select(Role.scope)) == "acme"
        assert db.scalar(select(Ability.scope)) == "acme"
        assert db.scalar(select(Permission.scope)) == "acme"

    def test_role_with_same_name_per_scope(self, gate: Gatekeeper, db: Session, scope: Scope, user: User):
        scope.to(1)
        gate.assign("admin").to(user)
        scope.to(2)
        gate.assign("admin").to(user)

        assert db.scalar(select(func.count()).select_from(Role)) == 2

    def test_once_to(self, gate: Gatekeeper, scope: Scope, user: User):
        scope.once_to(1, lambda: gate.allow(user).to("edit"))

        assert scope.get() is None
        assert gate.cannot(user, "edit")
        assert scope.once_to(1, lambda: gate.can(user, "edit"))

    def test_only_relations(self, gate: Gatekeeper, db: Session, scope: Scope, user: User):
        scope.only_relations().to(1)
        gate.allow(user).to("edit")

        scope.to(2)
        assert gate.cannot(user, "edit")
        gate.allow(user).to("edit")
        assert gate.can(user, "edit")

        assert db.scalar(select(func.count()).select_from(Ability)) == 1
        assert db.scalar(select(Ability.scope)) is None
        assert db.scalar(select(func.count()).select_from(Permission)) == 2

    def test_role_abilities_shared_across_scopes(
        self, gate: Gatekeeper, db: Session, scope: Scope, user: User, other_user: User
    ):
        scope.only_relations().dont_scope_role_abilities().to(1)
        gate.allow("admin").to("edit")
        gate.assign("admin").to(user)

        scope.to(2)
        gate.assign("admin").to(other_user)

        assert gate.can(other_user, "edit")
        assert gate.cannot(user, "edit")
        assert db.scalar(select(Permission.scope)) is None
