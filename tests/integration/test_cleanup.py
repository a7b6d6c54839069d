"""Integration tests for ability cleanup and actor deletion."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rolegate import Gatekeeper
from rolegate.modules.identity import Ability, AssignedRole, Permission, Role
from rolegate.modules.maintenance import AbilityCleaner
from tests.models import Post, User


pytestmark = pytest.mark.integration


def count(db: Session, model: type) -> int:
    return db.scalar(select(func.count()).select_from(model))


class TestAbilityCleanup:
    """Tests for removing unassigned and orphaned abilities."""

    def test_unassigned(self, gate: Gatekeeper, db: Session, user: User):
        gate.allow(user).to(["view", "edit"])
        gate.disallow(user).to("edit")

        result = gate.clean()

        assert result.unassigned_deleted == 1
        assert result.orphaned_deleted == 0
        assert db.scalars(select(Ability.name)).all() == ["view"]

    def test_orphaned(self, gate: Gatekeeper, db: Session, user: User, post: Post, other_post: Post):
        gate.allow(user).to("edit", post)
        gate.allow(user).to("edit", other_post)
        db.delete(other_post)
        db.flush()

        result = gate.clean(unassigned=False)

        assert result.orphaned_deleted == 1
        assert count(db, Ability) == 1
        assert count(db, Permission) == 1
        assert gate.can(user, "edit", post)

    def test_orphans_are_not_counted_twice(self, gate: Gatekeeper, db: Session, user: User, post: Post):
        gate.allow(user).to("edit", post)
        db.delete(post)
        db.flush()

        result = gate.clean()

        assert result.orphaned_deleted == 1
        assert result.unassigned_deleted == 0
        assert result.total == 1

    def test_class_and_wildcard_abilities_are_kept(self, gate: Gatekeeper, db: Session, user: User):
        gate.allow(user).to("edit", Post)
        gate.allow(user).everything()

        result = gate.clean()

        assert result.total == 0
        assert count(db, Ability) == 2

    def test_unknown_subject_type_is_skipped(self, gate: Gatekeeper, db: Session, user: User):
        ability = Ability(name="fly", guard_name="web", subject_type="Spaceship", subject_id="1")
        db.add(ability)
        db.flush()
        gate.allow(user).to(ability)

        result = AbilityCleaner(db, gate.registry).clean()

        assert result.total == 0
        assert count(db, Ability) == 1

    def test_unassigned_only(self, gate: Gatekeeper, db: Session, user: User, post: Post):
        gate.allow(user).to("edit", post)
        db.delete(post)
        db.flush()
        gate.allow(user).to("view")
        gate.disallow(user).to("view")

        result = gate.clean(orphaned=False)

        assert result.unassigned_deleted == 1
        assert result.orphaned_deleted == 0


class TestActorDeletion:
    """Deleting an actor row removes its edges."""

    def test_deleting_user(self, gate: Gatekeeper, db: Session, user: User, other_user: User):
        gate.allow(user).to("edit")
        gate.allow(other_user).to("edit")
        gate.assign("admin").to([user, other_user])

        db.delete(user)
        db.flush()

        assert count(db, Permission) == 1
        assert count(db, AssignedRole) == 1
        assert gate.can(other_user, "edit")
        assert gate.is_(other_user).a("admin")

    def test_deleting_role(self, gate: Gatekeeper, db: Session, user: User):
        gate.allow("admin").to("ban-users")
        gate.assign("admin").to(user)
        admin = db.scalar(select(Role).where(Role.name == "admin"))

        db.delete(admin)
        db.flush()

        assert count(db, Permission) == 0
        assert count(db, AssignedRole) == 0
        assert gate.cannot(user, "ban-users")
