"""SQL building blocks for reading abilities and roles.

Every function returns a SQLAlchemy ``Select`` so callers can add ordering,
limits or further filters before executing it on their session.
"""

from collections.abc import Sequence
from typing import Any

from sqlalchemy import ColumnElement, Select, String, and_, cast, false, func, or_, select

from rolegate.core.constants import ROLE_CHECK_ALL, ROLE_CHECK_NONE, WILDCARD
from rolegate.core.database.scope import Scope
from rolegate.modules.identity.models import Ability, AssignedRole, Permission, Role
from rolegate.modules.identity.registry import ModelRegistry
from rolegate.modules.matching.matcher import Subject, SubjectKind


def role_keys_for_actor(
    registry: ModelRegistry,
    scope: Scope,
    actor: Any,
    guard_name: str,
) -> Select[Any]:
    """Select the keys (as stored in ``actor_id``) of the roles an actor holds."""
    ref = registry.reference(actor)
    stmt = (
        select(cast(Role.id, String))
        .join(AssignedRole, AssignedRole.role_id == Role.id)
        .where(
            AssignedRole.actor_type == ref.type,
            AssignedRole.actor_id == ref.key,
            Role.guard_name == guard_name,
        )
    )
    stmt = scope.apply_to_model_query(stmt, Role)
    return scope.apply_to_relation_query(stmt, AssignedRole)


def abilities_for_actor(
    registry: ModelRegistry,
    scope: Scope,
    actor: Any,
    guard_name: str,
    allowed: bool = True,
) -> Select[tuple[Ability]]:
    """Select every ability granted (or forbidden) to an actor.

    Unions three sources: permissions held by the actor's roles, permissions
    held by the actor directly, and permissions granted to everyone.

    Args:
        registry: Registry resolving the actor's type tag and key
        scope: Current tenancy scope
        actor: The actor model instance
        guard_name: Guard whose abilities are visible
        allowed: True for grants, False for forbids

    Returns:
        Select over Ability rows
    """
    ref = registry.reference(actor)
    forbidden = not allowed

    via_roles = select(Permission.id).where(
        Permission.ability_id == Ability.id,
        Permission.forbidden == forbidden,
        Permission.actor_type == registry.type_for(Role),
        Permission.actor_id.in_(role_keys_for_actor(registry, scope, actor, guard_name)),
    )
    via_roles = scope.apply_to_relation_query(via_roles, Permission)

    direct = select(Permission.id).where(
        Permission.ability_id == Ability.id,
        Permission.forbidden == forbidden,
        Permission.actor_type == ref.type,
        Permission.actor_id == ref.key,
    )
    direct = scope.apply_to_relation_query(direct, Permission)

    everyone = select(Permission.id).where(
        Permission.ability_id == Ability.id,
        Permission.forbidden == forbidden,
        Permission.actor_id.is_(None),
    )
    everyone = scope.apply_to_relation_query(everyone, Permission)

    stmt = select(Ability).where(
        Ability.guard_name == guard_name,
        or_(via_roles.exists(), direct.exists(), everyone.exists()),
    )
    return scope.apply_to_model_query(stmt, Ability)


def simple_ability_constraint(name: str) -> ColumnElement[bool]:
    """Match a subject-less ability by name, ``*`` or ``*`` on ``*``."""
    return or_(
        and_(Ability.name == name, Ability.subject_type.is_(None)),
        and_(
            Ability.name == WILDCARD,
            or_(Ability.subject_type.is_(None), Ability.subject_type == WILDCARD),
        ),
    )


def subject_constraint(subject: Subject, strict: bool = False) -> ColumnElement[bool]:
    """Match abilities bound to a subject.

    In the default mode blanket rows and ``*`` subject rows also match. Strict
    mode matches only rows bound exactly to this subject, which is what
    conductors use to find an existing ability before creating one.

    Args:
        subject: A wildcard, class or instance subject
        strict: Only match the exact binding
    """
    if subject.kind is SubjectKind.WILDCARD:
        return Ability.subject_type == WILDCARD

    if subject.is_instance:
        if strict:
            id_clause: ColumnElement[bool] = Ability.subject_id == subject.key
        else:
            id_clause = or_(Ability.subject_id.is_(None), Ability.subject_id == subject.key)
    else:
        id_clause = Ability.subject_id.is_(None)

    typed = and_(Ability.subject_type == subject.type, id_clause)
    if strict:
        return typed
    return or_(Ability.subject_type == WILDCARD, typed)


def has_ability_query(
    registry: ModelRegistry,
    scope: Scope,
    actor: Any,
    guard_name: str,
    ability: str,
    subject: Subject,
    owned: bool,
    allowed: bool,
) -> Select[tuple[Ability]]:
    """Select the actor's abilities that would grant (or forbid) one request."""
    stmt = abilities_for_actor(registry, scope, actor, guard_name, allowed)
    if not owned:
        stmt = stmt.where(Ability.only_owned == false())
    if subject.kind is SubjectKind.NONE:
        return stmt.where(simple_ability_constraint(ability))
    return stmt.where(Ability.name.in_([ability, WILDCARD]), subject_constraint(subject))


def roles_for_actor(
    registry: ModelRegistry,
    scope: Scope,
    actor: Any,
    guard_name: str,
) -> Select[tuple[int, str]]:
    """Select ``(id, name)`` of every role held by an actor."""
    ref = registry.reference(actor)
    stmt = (
        select(Role.id, Role.name)
        .join(AssignedRole, AssignedRole.role_id == Role.id)
        .where(
            AssignedRole.actor_type == ref.type,
            AssignedRole.actor_id == ref.key,
            Role.guard_name == guard_name,
        )
    )
    stmt = scope.apply_to_model_query(stmt, Role)
    return scope.apply_to_relation_query(stmt, AssignedRole).distinct()


def actors_with_roles(
    registry: ModelRegistry,
    scope: Scope,
    model: type,
    roles: Sequence[str],
    mode: str,
    guard_name: str,
) -> Select[Any]:
    """Select instances of ``model`` by role membership.

    Args:
        registry: Registry resolving the model's type tag and key column
        scope: Current tenancy scope
        model: Actor class to select
        roles: Role names
        mode: ``"or"`` (any of the roles), ``"and"`` (all) or ``"not"`` (none)
        guard_name: Guard the roles belong to

    Returns:
        Select over ``model``
    """
    key_column = cast(getattr(model, registry.key_name_for(model)), String)
    holders = (
        select(AssignedRole.actor_id)
        .join(Role, Role.id == AssignedRole.role_id)
        .where(
            AssignedRole.actor_type == registry.type_for(model),
            Role.name.in_(list(roles)),
            Role.guard_name == guard_name,
        )
    )
    holders = scope.apply_to_model_query(holders, Role)
    holders = scope.apply_to_relation_query(holders, AssignedRole)

    if mode == ROLE_CHECK_NONE:
        return select(model).where(key_column.not_in(holders))
    if mode == ROLE_CHECK_ALL:
        holders = holders.group_by(AssignedRole.actor_id).having(
            func.count(func.distinct(Role.name)) == len(set(roles))
        )
    return select(model).where(key_column.in_(holders))
