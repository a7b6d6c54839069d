"""Integration tests for the Bouncer and Spatie importers."""

import pytest
from sqlalchemy import select, text
from sqlalchemy.orm import Session

from rolegate import Decision, Gatekeeper
from rolegate.modules.identity import Ability, Role
from rolegate.modules.migrators import BouncerMigrator, SpatieMigrator
from tests.models import Post, User


pytestmark = pytest.mark.integration


def execute_all(db: Session, statements: list[str], **params) -> None:
    for statement in statements:
        db.execute(text(statement), params)


@pytest.fixture
def bouncer_tables(db: Session, user: User, other_user: User) -> None:
    """Create and fill Bouncer-shaped source tables."""
    execute_all(
        db,
        [
            "CREATE TABLE bouncer_roles (id INTEGER PRIMARY KEY, name VARCHAR, title VARCHAR, migrated_at DATETIME)",
            "CREATE TABLE bouncer_abilities (id INTEGER PRIMARY KEY, name VARCHAR, title VARCHAR, "
            "entity_id INTEGER, entity_type VARCHAR, only_owned BOOLEAN, options TEXT, migrated_at DATETIME)",
            "CREATE TABLE bouncer_assigned_roles (role_id INTEGER, entity_id INTEGER, entity_type VARCHAR, "
            "migrated_at DATETIME)",
            "CREATE TABLE bouncer_permissions (ability_id INTEGER, entity_id INTEGER, entity_type VARCHAR, "
            "forbidden BOOLEAN, migrated_at DATETIME)",
        ],
    )
    execute_all(
        db,
        [
            "INSERT INTO bouncer_roles (id, name, title) VALUES (1, 'admin', 'Administrator'), (2, 'editor', NULL)",
            "INSERT INTO bouncer_abilities (id, name, title, entity_id, entity_type, only_owned, options) VALUES "
            "(1, 'ban-users', NULL, NULL, NULL, 0, NULL), "
            "(2, 'edit', NULL, NULL, 'Post', 0, '{\"level\": 2}'), "
            "(3, 'view', NULL, NULL, NULL, 0, NULL)",
            "INSERT INTO bouncer_assigned_roles (role_id, entity_id, entity_type) VALUES "
            "(1, :user_id, 'User'), (1, 999, 'User')",
            "INSERT INTO bouncer_permissions (ability_id, entity_id, entity_type, forbidden) VALUES "
            "(1, 1, 'roles', 0), "
            "(3, NULL, NULL, 0), "
            "(2, :user_id, 'User', 0), "
            "(2, :other_id, 'User', 1), "
            "(99, :user_id, 'User', 0)",
        ],
        user_id=user.id,
        other_id=other_user.id,
    )


@pytest.fixture
def spatie_tables(db: Session, user: User, other_user: User) -> None:
    """Create and fill Spatie-shaped source tables."""
    execute_all(
        db,
        [
            "CREATE TABLE spatie_roles (id INTEGER PRIMARY KEY, name VARCHAR, guard_name VARCHAR)",
            "CREATE TABLE spatie_permissions (id INTEGER PRIMARY KEY, name VARCHAR, guard_name VARCHAR)",
            "CREATE TABLE spatie_model_has_roles (role_id INTEGER, model_type VARCHAR, model_id INTEGER)",
            "CREATE TABLE spatie_model_has_permissions (permission_id INTEGER, model_type VARCHAR, model_id INTEGER)",
            "CREATE TABLE spatie_role_has_permissions (permission_id INTEGER, role_id INTEGER)",
        ],
    )
    execute_all(
        db,
        [
            "INSERT INTO spatie_roles (id, name, guard_name) VALUES (1, 'admin', 'web'), (2, 'api-admin', 'api')",
            "INSERT INTO spatie_permissions (id, name, guard_name) VALUES (1, 'ban-users', 'web'), (2, 'export', 'api')",
            "INSERT INTO spatie_model_has_roles (role_id, model_type, model_id) VALUES "
            "(1, 'User', :user_id), (2, 'User', :user_id), (3, 'User', :user_id)",
            "INSERT INTO spatie_model_has_permissions (permission_id, model_type, model_id) VALUES "
            "(1, 'User', :other_id), (1, 'Team', :other_id)",
            "INSERT INTO spatie_role_has_permissions (permission_id, role_id) VALUES (1, 1), (2, 2)",
        ],
        user_id=user.id,
        other_id=other_user.id,
    )


@pytest.mark.usefixtures("bouncer_tables")
class TestBouncerMigrator:
    """Tests for BouncerMigrator."""

    def test_counts(self, gate: Gatekeeper):
        result = BouncerMigrator(gate, User).migrate()

        assert result.roles == 2
        assert result.abilities == 3
        assert result.assignments == 1
        assert result.permissions == 4
        assert result.skipped == 2

    def test_imported_access(self, gate: Gatekeeper, user: User, other_user: User, post: Post):
        BouncerMigrator(gate, User).migrate()

        assert gate.is_(user).a("admin")
        assert gate.can(user, "ban-users")
        assert gate.can(user, "edit", post)
        assert gate.decide(other_user, "edit", post) is Decision.DENY
        assert gate.can(other_user, "view")

    def test_titles_and_options(self, gate: Gatekeeper, db: Session):
        BouncerMigrator(gate, User).migrate()

        titles = {role.name: role.title for role in db.scalars(select(Role)).all()}
        assert titles == {"admin": "Administrator", "editor": "Editor"}

        ability = db.scalar(select(Ability).where(Ability.name == "edit"))
        assert ability.subject_type == "Post"
        assert ability.options == {"level": 2}
        assert ability.title == "Edit posts"

    def test_into_another_guard(self, gate: Gatekeeper, user: User):
        BouncerMigrator(gate, User, guard_name="api").migrate()

        assert gate.cannot(user, "ban-users")
        assert gate.guard("api").can(user, "ban-users")

    def test_rerun_is_idempotent(self, gate: Gatekeeper, db: Session):
        BouncerMigrator(gate, User).migrate()
        BouncerMigrator(gate, User).migrate()

        assert len(db.scalars(select(Role)).all()) == 2

    def test_tracks_migrated_rows(self, gate: Gatekeeper, db: Session):
        first = BouncerMigrator(gate, User, track_migrated_at=True).migrate()
        second = BouncerMigrator(gate, User, track_migrated_at=True).migrate()

        assert first.permissions == 4
        assert second.roles == 0
        assert second.abilities == 0
        assert second.assignments == 0
        assert second.permissions == 0
        assert second.skipped == 2
        assert db.scalar(text("SELECT COUNT(*) FROM bouncer_roles WHERE migrated_at IS NULL")) == 0

    def test_small_batches(self, gate: Gatekeeper):
        result = BouncerMigrator(gate, User, batch_size=1).migrate()

        assert result.permissions == 4


@pytest.mark.usefixtures("spatie_tables")
class TestSpatieMigrator:
    """Tests for SpatieMigrator."""

    def test_counts(self, gate: Gatekeeper):
        result = SpatieMigrator(gate, User).migrate()

        assert result.roles == 2
        assert result.assignments == 2
        assert result.permissions == 3
        assert result.skipped == 1

    def test_guards_are_kept(self, gate: Gatekeeper, user: User, other_user: User):
        SpatieMigrator(gate, User).migrate()

        assert gate.can(user, "ban-users")
        assert gate.cannot(user, "export")
        assert gate.guard("api").can(user, "export")
        assert gate.is_(user).not_a("api-admin")
        assert gate.guard("api").is_(user).a("api-admin")
        assert gate.can(other_user, "ban-users")

    def test_custom_tables_and_entity_type(self, gate: Gatekeeper, db: Session, user: User):
        db.execute(text("CREATE TABLE legacy_roles (id INTEGER PRIMARY KEY, name VARCHAR, guard_name VARCHAR)"))
        db.execute(text("INSERT INTO legacy_roles (id, name, guard_name) VALUES (1, 'owner', NULL)"))
        db.execute(
            text("INSERT INTO spatie_model_has_roles (role_id, model_type, model_id) VALUES (1, 'member', :id)"),
            {"id": user.id},
        )

        result = SpatieMigrator(gate, User, tables={"roles": "legacy_roles"}, entity_type="member").migrate()

        assert result.roles == 1
        assert result.assignments == 1
        assert gate.is_(user).a("owner")
