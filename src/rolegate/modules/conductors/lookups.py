"""Finding and creating the roles and abilities that conductors write edges for."""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from sqlalchemy import select

from rolegate.core.constants import WILDCARD
from rolegate.core.errors import InvalidSubjectError, ModelNotPersistedError
from rolegate.modules.clipboard.queries import subject_constraint
from rolegate.modules.conductors.context import ConductorContext
from rolegate.modules.identity.models import Ability, Role
from rolegate.modules.matching.matcher import Subject, SubjectKind, normalize_ability_name


def as_list(value: Any) -> list[Any]:
    """Wrap a single value in a list; pass lists, tuples and sets through."""
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


# ============================================================
# Roles
# ============================================================


def find_role(ctx: ConductorContext, name: str) -> Role | None:
    stmt = select(Role).where(Role.name == name, Role.guard_name == ctx.guard_name)
    stmt = ctx.scope.apply_to_model_query(stmt, Role)
    return ctx.session.scalars(stmt.order_by(Role.id).limit(1)).first()


def find_or_create_role(ctx: ConductorContext, name: str, title: str | None = None) -> Role:
    role = find_role(ctx, name)
    if role is not None:
        return role
    role = ctx.scope.apply_to_model(Role(name=name, guard_name=ctx.guard_name, title=title))
    ctx.session.add(role)
    ctx.session.flush()
    return role


def find_or_create_roles(ctx: ConductorContext, roles: Any) -> list[Role]:
    """Resolve role arguments to Role rows, creating roles given by unknown names.

    Role instances pass through, ints are looked up as ids (missing ids are
    skipped), and strings or enum members are names found or created in the
    current guard.
    """
    result: list[Role] = []
    for role in as_list(roles):
        if isinstance(role, Enum):
            role = role.value
        if isinstance(role, Role):
            found: Role | None = role
        elif isinstance(role, int):
            found = ctx.session.get(Role, role)
        else:
            found = find_or_create_role(ctx, str(role))
        if found is not None and found not in result:
            result.append(found)
    return result


def find_role_ids(ctx: ConductorContext, roles: Any) -> list[int]:
    """Resolve role arguments to ids without creating anything.

    Unknown names contribute nothing.
    """
    ids: list[int] = []
    names: list[str] = []
    for role in as_list(roles):
        if isinstance(role, Enum):
            role = role.value
        if isinstance(role, Role):
            ids.append(role.id)
        elif isinstance(role, int):
            ids.append(role)
        else:
            names.append(str(role))

    if names:
        stmt = select(Role.id).where(Role.name.in_(names), Role.guard_name == ctx.guard_name)
        stmt = ctx.scope.apply_to_model_query(stmt, Role)
        ids.extend(ctx.session.scalars(stmt).all())

    return list(dict.fromkeys(ids))


# ============================================================
# Abilities
# ============================================================


class AbilityLookup:
    """Turns the many accepted ability arguments into ability ids.

    Accepted forms: a name, an enum member, an Ability, an ability id, a
    list of those, or a mapping of ``{name: subject}``. With ``create=False``
    nothing is written and abilities that do not exist are left out.
    """

    def __init__(self, ctx: ConductorContext, create: bool = True) -> None:
        self.ctx = ctx
        self.create = create

    def ability_ids(
        self,
        abilities: Any,
        subject: Any = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> list[int]:
        """Resolve ability arguments to ids.

        Args:
            abilities: Ability names, ids, models or a ``{name: subject}`` map
            subject: Model class, persisted instance, ``"*"`` or a list of them
            attributes: Extra columns for created abilities (``only_owned``, ``options``, ``title``)

        Returns:
            Ability ids, without duplicates

        Raises:
            ModelNotPersistedError: If a subject instance has not been saved
        """
        attributes = dict(attributes or {})

        if isinstance(abilities, Ability):
            return [abilities.id]
        if subject is not None:
            return self._subject_ability_ids(abilities, subject, attributes)
        if isinstance(abilities, Mapping):
            ids: list[int] = []
            for name, target in abilities.items():
                ids.extend(self.ability_ids(name, target, attributes))
            return list(dict.fromkeys(ids))
        return self._ids_from_list(as_list(abilities), attributes)

    def resolve_subject(self, subject: Any) -> Subject:
        """Normalize a subject for writing.

        Raises:
            ModelNotPersistedError: If an instance has not been saved. Granting
                against all instances requires passing the class instead.
        """
        registry = self.ctx.registry
        if isinstance(subject, str):
            if subject == WILDCARD:
                return Subject(SubjectKind.WILDCARD, type=WILDCARD)
            return Subject(SubjectKind.CLASS, type=registry.type_for(registry.class_for(subject)))
        if registry.is_model_class(subject):
            return Subject(SubjectKind.CLASS, type=registry.type_for(subject))
        if registry.is_model_instance(subject):
            if not registry.exists(subject):
                raise ModelNotPersistedError(subject)
            return Subject(
                SubjectKind.INSTANCE,
                type=registry.type_for(subject),
                key=registry.key_for(subject),
                instance=subject,
            )
        raise InvalidSubjectError(details={"subject": repr(subject)})

    def find_ability(self, name: str, subject: Subject, only_owned: bool = False) -> Ability | None:
        stmt = select(Ability).where(
            Ability.name == name,
            Ability.guard_name == self.ctx.guard_name,
            Ability.only_owned == only_owned,
            subject_constraint(subject, strict=True),
        )
        stmt = self.ctx.scope.apply_to_model_query(stmt, Ability)
        return self.ctx.session.scalars(stmt.order_by(Ability.id).limit(1)).first()

    def find_or_create_ability(
        self,
        name: str,
        subject: Subject,
        attributes: Mapping[str, Any] | None = None,
    ) -> Ability | None:
        """Find the ability bound exactly to ``subject``, creating it when allowed.

        Returns:
            The ability, or None when it is missing and ``create`` is off
        """
        if not self.create:
            attributes = dict(attributes or {})
            return self.find_ability(name, subject, bool(attributes.get("only_owned", False)))
        return self.ensure_ability(name, subject, attributes)

    def ensure_ability(
        self,
        name: str,
        subject: Subject,
        attributes: Mapping[str, Any] | None = None,
    ) -> Ability:
        """Find the ability bound exactly to ``subject``, creating it even when ``create`` is off."""
        attributes = dict(attributes or {})
        found = self.find_ability(name, subject, bool(attributes.get("only_owned", False)))
        if found is None:
            found = self._create_ability(name, subject, attributes)
        return found

    def _subject_ability_ids(self, abilities: Any, subject: Any, attributes: dict[str, Any]) -> list[int]:
        subjects = [self.resolve_subject(target) for target in as_list(subject)]
        ids: list[int] = []

        for ability in as_list(abilities):
            name = normalize_ability_name(ability)
            for resolved in subjects:
                found = self.find_or_create_ability(name, resolved, attributes)
                if found is not None:
                    ids.append(found.id)

        return list(dict.fromkeys(ids))

    def _ids_from_list(self, abilities: Iterable[Any], attributes: dict[str, Any]) -> list[int]:
        ids: list[int] = []
        names: list[str] = []
        for ability in abilities:
            if isinstance(ability, Ability):
                ids.append(ability.id)
            elif isinstance(ability, int) and not isinstance(ability, bool):
                ids.append(ability)
            else:
                names.append(normalize_ability_name(ability))

        ids.extend(ability.id for ability in self._abilities_by_name(names, attributes))
        return list(dict.fromkeys(ids))

    def _abilities_by_name(self, names: list[str], attributes: dict[str, Any]) -> list[Ability]:
        names = list(dict.fromkeys(names))
        if not names:
            return []

        stmt = select(Ability).where(
            Ability.subject_type.is_(None),
            Ability.guard_name == self.ctx.guard_name,
            Ability.name.in_(names),
        )
        stmt = self.ctx.scope.apply_to_model_query(stmt, Ability)
        existing = list(self.ctx.session.scalars(stmt.order_by(Ability.id)).all())

        if not self.create:
            return existing

        found = {ability.name for ability in existing}
        for name in names:
            if name not in found:
                existing.append(self._create_ability(name, Subject(SubjectKind.NONE), attributes))
        return existing

    def _create_ability(self, name: str, subject: Subject, attributes: dict[str, Any]) -> Ability:
        ability = Ability(
            name=name,
            guard_name=self.ctx.guard_name,
            subject_type=subject.type,
            subject_id=subject.key,
            only_owned=bool(attributes.get("only_owned", False)),
            options=attributes.get("options"),
            title=attributes.get("title"),
        )
        self.ctx.scope.apply_to_model(ability)
        self.ctx.session.add(ability)
        self.ctx.session.flush()
        return ability
