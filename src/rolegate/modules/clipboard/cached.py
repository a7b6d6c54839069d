"""Clipboard that memoizes each actor's abilities and roles.

Cache entries never expire. Nothing here watches the database: whoever
writes permissions must call ``refresh`` or ``refresh_for`` afterwards.
The conductors driven by a Gatekeeper do this for every write they make.
"""

from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from rolegate.config import settings
from rolegate.core.cache.store import CacheStore
from rolegate.core.constants import ALLOWED_KEY_SUFFIX, DEFAULT_GUARD, FORBIDDEN_KEY_SUFFIX
from rolegate.core.database.scope import Scope
from rolegate.modules.clipboard.base import BaseClipboard, CheckResult, RolesLookup
from rolegate.modules.clipboard.clipboard import Clipboard
from rolegate.modules.identity.registry import ModelRegistry
from rolegate.modules.identity.schemas import AbilityData
from rolegate.modules.matching.matcher import build_request, find_matching_ability


log = structlog.get_logger()


class CachedClipboard(BaseClipboard):
    """Clipboard backed by a CacheStore.

    Abilities are loaded once per actor through an uncached Clipboard and
    matched in memory against each request.

    Cache keys have the shape ``{tag}[-{scope}]-{guard}-{kind}-{type}-{key}-{a|f}``
    and are built from the actor's type tag and configured external key, so
    two actor types sharing a raw id never share an entry.
    """

    def __init__(
        self,
        session: Session,
        registry: ModelRegistry,
        scope: Scope,
        store: CacheStore,
        guard_name: str = DEFAULT_GUARD,
        tag: str | None = None,
    ) -> None:
        super().__init__(session, registry, scope, guard_name)
        self.store = store
        self.tag = settings.cache_tag if tag is None else tag
        self._fresh = Clipboard(session, registry, scope, guard_name)

    def check_get_id(self, actor: Any, ability: Any, subject: Any = None) -> CheckResult:
        request = build_request(self.registry, actor, ability, subject)

        if find_matching_ability(self.get_forbidden_abilities(actor), request) is not None:
            return False

        return find_matching_ability(self.get_abilities(actor), request)

    def get_abilities(self, actor: Any, allowed: bool = True) -> list[AbilityData]:
        key = self._cache_key(actor, "abilities", allowed)
        cached = self.store.get(key)
        if isinstance(cached, list):
            return [AbilityData.model_validate(item) for item in cached]

        abilities = self.get_fresh_abilities(actor, allowed)
        self.store.forever(key, [ability.model_dump() for ability in abilities])
        return abilities

    def get_fresh_abilities(self, actor: Any, allowed: bool = True) -> list[AbilityData]:
        """Load abilities from the database, bypassing the cache."""
        return self._fresh.get_abilities(actor, allowed)

    def get_roles_lookup(self, actor: Any) -> RolesLookup:
        key = self._cache_key(actor, "roles")
        cached = self.store.get(key)
        if isinstance(cached, list):
            return RolesLookup.from_pairs((int(role_id), name) for role_id, name in cached)

        lookup = self._fresh.get_roles_lookup(actor)
        self.store.forever(key, [[role_id, name] for role_id, name in lookup.ids.items()])
        return lookup

    def for_guard(self, guard_name: str) -> "CachedClipboard":
        return CachedClipboard(self.session, self.registry, self.scope, self.store, guard_name, self.tag)

    def refresh(self, actor: Any = None) -> "CachedClipboard":
        """Drop cached entries for one actor, or for everyone.

        A full refresh is a single flush when the store supports tags.
        Otherwise every row of every registered actor class (roles included)
        is visited, which costs one round of deletes per actor.
        """
        if actor is not None:
            return self.refresh_for(actor)

        if self.store.supports_tags:
            self.store.flush()
            log.debug("clipboard_cache_flushed", tag=self.tag)
            return self

        visited = self._refresh_all_iteratively()
        log.warning("clipboard_cache_refreshed_iteratively", actors_visited=visited)
        return self

    def refresh_for(self, actor: Any) -> "CachedClipboard":
        self.store.forget(self._cache_key(actor, "abilities", True))
        self.store.forget(self._cache_key(actor, "abilities", False))
        self.store.forget(self._cache_key(actor, "roles"))
        return self

    def _refresh_all_iteratively(self) -> int:
        visited = 0
        for model in self.registry.actor_classes:
            for actor in self.session.scalars(select(model)):
                self.refresh_for(actor)
                visited += 1
        return visited

    def _cache_key(self, actor: Any, kind: str, allowed: bool = True) -> str:
        ref = self.registry.reference(actor)
        return "-".join(
            [
                self.scope.append_to_cache_key(self.tag),
                self.guard_name,
                kind,
                ref.type,
                str(ref.key),
                ALLOWED_KEY_SUFFIX if allowed else FORBIDDEN_KEY_SUFFIX,
            ]
        )
