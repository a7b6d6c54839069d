"""Polymorphic model registry.

Maps mapped classes to the type tags stored in ``*_type`` columns, knows
which attribute each class exposes as its external key, decides ownership,
and keeps the edge tables clean when an actor row is deleted.
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any, NamedTuple

import structlog
from sqlalchemy import delete, event, inspect
from sqlalchemy.exc import NoInspectionAvailable

from rolegate.core.constants import (
    DEFAULT_OWNER_KEY_ATTRIBUTE,
    DEFAULT_OWNER_TYPE_ATTRIBUTE,
    WILDCARD,
)
from rolegate.core.database.base import Base
from rolegate.core.errors import (
    ConflictingKeyMapsError,
    MorphKeyViolationError,
    UnknownModelTypeError,
)
from rolegate.modules.identity.models import AssignedRole, Permission, Role


log = structlog.get_logger()

OwnershipRule = str | Callable[[Any, Any], bool]


class ModelRef(NamedTuple):
    """Discriminated reference to an actor, subject or boundary row."""

    type: str
    key: str | None


class ModelRegistry:
    """Type tags, external keys and ownership rules for mapped models.

    Example:
        registry = ModelRegistry()
        registry.morph_map({"user": User})
        registry.enforce_morph_key_map({User: "uuid"})
        registry.owned_via(Post, "author_id")
    """

    def __init__(self) -> None:
        self._types: dict[type, str] = {}
        self._classes: dict[str, type] = {}
        self._key_map: dict[type, str] = {}
        self._lenient_key_map = False
        self._enforce_key_map = False
        self._ownership: dict[type | str, OwnershipRule] = {}
        self._actor_classes: list[type] = []
        self._on_actor_delete = self._make_delete_listener()
        self.register_actor(Role)

    # ============================================================
    # Type tags
    # ============================================================

    def register(self, tag: str, model: type) -> None:
        """Store ``tag`` in type columns for ``model`` instead of its class name."""
        self._types[model] = tag
        self._classes[tag] = model

    def morph_map(self, mapping: Mapping[str, type]) -> None:
        for tag, model in mapping.items():
            self.register(tag, model)

    def type_for(self, target: Any) -> str:
        """Get the type tag of a mapped class or instance.

        Raises:
            UnknownModelTypeError: If the target is not a mapped model
        """
        model = target if isinstance(target, type) else type(target)
        if model in self._types:
            return self._types[model]
        if not self.is_model_class(model):
            raise UnknownModelTypeError(getattr(model, "__name__", repr(model)))
        return model.__name__

    def class_for(self, tag: str) -> type:
        """Resolve a type tag back to its mapped class.

        Raises:
            UnknownModelTypeError: If no mapped class carries that tag
        """
        if tag in self._classes:
            return self._classes[tag]
        for mapper in Base.registry.mappers:
            model = mapper.class_
            if model.__name__ == tag and model not in self._types:
                return model
        for model in self._actor_classes:
            if self.type_for(model) == tag:
                return model
        raise UnknownModelTypeError(tag)

    @staticmethod
    def is_model_class(target: Any) -> bool:
        if not isinstance(target, type):
            return False
        try:
            inspect(target)
        except NoInspectionAvailable:
            return False
        return True

    @staticmethod
    def is_model_instance(target: Any) -> bool:
        return not isinstance(target, type) and ModelRegistry.is_model_class(type(target))

    @staticmethod
    def exists(instance: Any) -> bool:
        """Check whether an instance has been persisted."""
        return inspect(instance).has_identity

    # ============================================================
    # External keys
    # ============================================================

    def morph_key_map(self, mapping: Mapping[type, str]) -> None:
        """Map classes to the attribute used as their external key.

        Unmapped classes keep using their primary key.

        Raises:
            ConflictingKeyMapsError: If an enforced key map is already configured
        """
        if self._enforce_key_map:
            raise ConflictingKeyMapsError()
        self._lenient_key_map = True
        self._key_map.update(mapping)

    def enforce_morph_key_map(self, mapping: Mapping[type, str]) -> None:
        """Map classes to external keys and reject any class left unmapped.

        Raises:
            ConflictingKeyMapsError: If a lenient key map is already configured
        """
        if self._lenient_key_map:
            raise ConflictingKeyMapsError()
        self._enforce_key_map = True
        self._key_map.update(mapping)

    def key_name_for(self, target: Any) -> str:
        """Get the attribute holding the external key of a class or instance.

        Raises:
            MorphKeyViolationError: If the key map is enforced and the class is unmapped
        """
        model = target if isinstance(target, type) else type(target)
        if model in self._key_map:
            return self._key_map[model]
        if self._enforce_key_map:
            raise MorphKeyViolationError(model.__name__)
        mapper = inspect(model)
        return mapper.get_property_by_column(mapper.primary_key[0]).key

    def key_for(self, instance: Any) -> str | None:
        """Get the external key of an instance as stored in ``*_id`` columns."""
        value = getattr(instance, self.key_name_for(instance))
        return None if value is None else str(value)

    def reference(self, instance: Any) -> ModelRef:
        return ModelRef(self.type_for(instance), self.key_for(instance))

    def group_by_type(self, instances: Iterable[Any]) -> dict[str, list[str]]:
        """Group instances into ``{type tag: [keys]}`` for batched writes."""
        grouped: dict[str, list[str]] = {}
        for instance in instances:
            ref = self.reference(instance)
            keys = grouped.setdefault(ref.type, [])
            if ref.key is not None and ref.key not in keys:
                keys.append(ref.key)
        return grouped

    # ============================================================
    # Ownership
    # ============================================================

    def owned_via(self, model: type | str | OwnershipRule, attribute: OwnershipRule | None = None) -> None:
        """Configure how ownership of a subject is decided.

        ``owned_via("author_id")`` or ``owned_via(callable)`` applies to every
        model; ``owned_via(Post, "author_id")`` applies to one class. A string
        rule compares that attribute of the subject to the actor's key; a
        callable receives ``(subject, actor)`` and must return True.
        """
        if attribute is None:
            self._ownership[WILDCARD] = model  # type: ignore[assignment]
        else:
            self._ownership[model] = attribute  # type: ignore[index]

    def is_owned_by(self, actor: Any, subject: Any) -> bool:
        """Decide whether ``actor`` owns the persisted model instance ``subject``."""
        if not self.is_model_instance(subject):
            return False

        rule = self._ownership.get(type(subject), self._ownership.get(WILDCARD))
        if rule is None:
            owner_type = getattr(subject, DEFAULT_OWNER_TYPE_ATTRIBUTE, None)
            owner_key = getattr(subject, DEFAULT_OWNER_KEY_ATTRIBUTE, None)
            if owner_type is None or owner_key is None:
                return False
            return owner_type == self.type_for(actor) and str(owner_key) == self.key_for(actor)

        if callable(rule):
            return rule(subject, actor) is True

        value = getattr(subject, rule, None)
        return value is not None and str(value) == self.key_for(actor)

    # ============================================================
    # Actor classes
    # ============================================================

    def register_actor(self, model: type) -> None:
        """Declare a class whose instances act as authorities.

        Registered classes are visited by an iterative cache refresh, and
        deleting one of their rows removes its assignments and permissions.
        """
        if model not in self._actor_classes:
            self._actor_classes.append(model)
        if not event.contains(model, "after_delete", self._on_actor_delete):
            event.listen(model, "after_delete", self._on_actor_delete)

    @property
    def actor_classes(self) -> list[type]:
        return list(self._actor_classes)

    def detach(self) -> None:
        """Remove the delete listeners installed on actor classes."""
        for model in self._actor_classes:
            if event.contains(model, "after_delete", self._on_actor_delete):
                event.remove(model, "after_delete", self._on_actor_delete)
        self._actor_classes = []

    def reset(self) -> None:
        """Forget all configuration; only Role stays registered as an actor."""
        self.detach()
        self.__init__()  # type: ignore[misc]

    def _make_delete_listener(self) -> Callable[[Any, Any, Any], None]:
        def on_actor_delete(mapper: Any, connection: Any, target: Any) -> None:
            ref = self.reference(target)
            connection.execute(
                delete(Permission).where(
                    Permission.actor_type == ref.type,
                    Permission.actor_id == ref.key,
                )
            )
            if not isinstance(target, Role):
                connection.execute(
                    delete(AssignedRole).where(
                        AssignedRole.actor_type == ref.type,
                        AssignedRole.actor_id == ref.key,
                    )
                )
            log.debug("actor_edges_deleted", actor_type=ref.type, actor_id=ref.key)

        return on_actor_delete
