"""RequestCache — per-operation memo of permission checks.

Created at the start of one logical operation, threaded explicitly
through every check it makes, and dropped when the operation returns.
Never shared between operations and never persisted, so it can't
outlive the graph state it observed.

Results are filled in along the level order: a grant at ``manage`` also
answers ``write`` and ``read``; a denial at ``read`` also answers
``write`` and ``manage``.
"""

from __future__ import annotations

import threading
from contextlib import AbstractContextManager, nullcontext
from typing import TYPE_CHECKING

from grantgraph.domain.levels import LEVELS_DESCENDING, Level

if TYPE_CHECKING:
    from grantgraph.domain.actors import Actor
    from grantgraph.services.resolver import PermissionResolver

type _Key = tuple[str, bool, str, Level]


class RequestCache:
    """Memoizing wrapper with the same interface as the resolver.

    Args:
        resolver: The resolver to consult on a miss.
        thread_safe: Guard the map with a lock, for operations that fan
            checks out across threads.
    """

    def __init__(self, resolver: PermissionResolver, *, thread_safe: bool = False) -> None:
        self._resolver = resolver
        self._results: dict[_Key, bool] = {}
        self._lock: AbstractContextManager[object] = (
            threading.Lock() if thread_safe else nullcontext()
        )
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._results)

    def has_permission(self, actor: Actor, target_id: str, required: Level) -> bool:
        key = (actor.node_id, actor.is_admin, target_id, required)
        with self._lock:
            cached = self._results.get(key)
            if cached is not None:
                self.hits += 1
                return cached

        allowed = self._resolver.has_permission(actor, target_id, required)

        with self._lock:
            self.misses += 1
            for level in Level:
                implied = (allowed and level <= required) or (not allowed and level >= required)
                if implied:
                    self._results.setdefault((actor.node_id, actor.is_admin, target_id, level), allowed)
        return allowed

    def effective_level(self, actor: Actor, target_id: str) -> Level | None:
        for level in LEVELS_DESCENDING:
            if self.has_permission(actor, target_id, level):
                return level
        return None

    def stats(self) -> dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "entries": len(self)}
