"""Ability matching.

A stored ability matches a request when its fields line up with it, the
same way the clipboard queries filter rows:

- a simple check accepts the named ability with no subject, ``*`` with no
  subject (all simple abilities) and ``*`` on ``*`` (everything);
- a class check accepts the ability or ``*`` on that type or on ``*``,
  never an instance-bound row;
- an instance check additionally accepts rows bound to that instance;
- owned-only rows count only when the actor owns the checked instance.

Names and type tags compare exactly, with no case folding.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from rolegate.core.constants import WILDCARD
from rolegate.core.errors import InvalidSubjectError
from rolegate.modules.identity.registry import ModelRegistry


class SubjectKind(Enum):
    NONE = "none"
    WILDCARD = "wildcard"
    CLASS = "class"
    INSTANCE = "instance"


@dataclass(frozen=True)
class Subject:
    """A normalized subject: nothing, every type, one type, or one row."""

    kind: SubjectKind
    type: str | None = None
    key: str | None = None
    instance: Any = None

    @property
    def is_instance(self) -> bool:
        return self.kind is SubjectKind.INSTANCE


@dataclass(frozen=True)
class AbilityRequest:
    """What is being asked: an ability name, a subject, and whether the actor owns it."""

    ability: str
    subject: Subject
    owned: bool = False


class MatchableAbility(Protocol):
    id: int
    name: str
    subject_type: str | None
    subject_id: str | None
    only_owned: bool


def normalize_ability_name(ability: Any) -> str:
    """Accept plain strings and enum members as ability or role names."""
    if isinstance(ability, Enum):
        return str(ability.value)
    return str(ability)


def resolve_subject(registry: ModelRegistry, subject: Any) -> Subject:
    """Normalize a subject argument.

    Unsaved instances are treated as their class, and other strings are
    read as type tags.

    Raises:
        InvalidSubjectError: If the value is not None, ``"*"``, a type tag or a mapped model
        UnknownModelTypeError: If a string is not a known type tag
    """
    if subject is None:
        return Subject(SubjectKind.NONE)
    if isinstance(subject, str):
        if subject == WILDCARD:
            return Subject(SubjectKind.WILDCARD, type=WILDCARD)
        return Subject(SubjectKind.CLASS, type=registry.type_for(registry.class_for(subject)))
    if registry.is_model_class(subject):
        return Subject(SubjectKind.CLASS, type=registry.type_for(subject))
    if registry.is_model_instance(subject):
        subject_type = registry.type_for(subject)
        if not registry.exists(subject):
            return Subject(SubjectKind.CLASS, type=subject_type)
        return Subject(
            SubjectKind.INSTANCE,
            type=subject_type,
            key=registry.key_for(subject),
            instance=subject,
        )
    raise InvalidSubjectError(details={"subject": repr(subject)})


def build_request(registry: ModelRegistry, actor: Any, ability: Any, subject: Any = None) -> AbilityRequest:
    resolved = resolve_subject(registry, subject)
    owned = resolved.is_instance and registry.is_owned_by(actor, resolved.instance)
    return AbilityRequest(normalize_ability_name(ability), resolved, owned)


def subject_matches(ability: MatchableAbility, subject: Subject) -> bool:
    """Decide whether a stored ability's binding covers a subject."""
    if subject.kind is SubjectKind.NONE:
        return ability.subject_type is None
    if ability.subject_type == WILDCARD:
        return True
    if subject.kind is SubjectKind.WILDCARD or ability.subject_type != subject.type:
        return False
    if ability.subject_id is None:
        return True
    return subject.is_instance and ability.subject_id == subject.key


def matches(ability: MatchableAbility, request: AbilityRequest, include_owned: bool = True) -> bool:
    """Decide whether one stored ability authorizes the request."""
    if ability.only_owned and not (include_owned and request.owned):
        return False

    if request.subject.kind is SubjectKind.NONE:
        if ability.name == request.ability:
            return ability.subject_type is None
        return ability.name == WILDCARD and ability.subject_type in (None, WILDCARD)

    if ability.name not in (request.ability, WILDCARD):
        return False
    return subject_matches(ability, request.subject)


def find_matching_ability(abilities: Iterable[MatchableAbility], request: AbilityRequest) -> int | None:
    """Find the id of the first stored ability matching the request.

    Non-owned grants are considered before owned-only ones.

    Returns:
        The matching ability id, or None when nothing matches
    """
    candidates = list(abilities)
    for ability in candidates:
        if matches(ability, request, include_owned=False):
            return ability.id
    if not request.owned:
        return None
    for ability in candidates:
        if matches(ability, request):
            return ability.id
    return None
