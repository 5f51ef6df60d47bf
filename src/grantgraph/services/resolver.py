"""PermissionResolver — does an actor hold at least a level on a target?

The effective level between two nodes is a widest-path value: along one
path it is the weakest edge, across paths it is the strongest such path.
For a fixed required level that reduces to plain reachability over the
edges at that level or above, which is what :meth:`has_permission`
computes with a breadth-first search.

The resolver is a pure read of one graph snapshot. It never caches and
never raises for unknown nodes; they are simply unreachable.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Protocol

from grantgraph.domain.levels import LEVELS_DESCENDING, Level

if TYPE_CHECKING:
    from grantgraph.domain.actors import Actor
    from grantgraph.infrastructure.graph.engine import PermissionGraph


class Authorizer(Protocol):
    """Anything that answers permission questions (resolver or request cache)."""

    def has_permission(self, actor: Actor, target_id: str, required: Level) -> bool: ...

    def effective_level(self, actor: Actor, target_id: str) -> Level | None: ...


class PermissionResolver:
    """Graph-walking permission checks over a :class:`PermissionGraph`."""

    def __init__(self, graph: PermissionGraph) -> None:
        self._graph = graph

    def has_permission(self, actor: Actor, target_id: str, required: Level) -> bool:
        """True if *actor* reaches *target_id* over edges of at least *required*.

        Admins and self-access short-circuit before any walk. Each node is
        expanded at most once, so cyclic grants terminate.
        """
        if actor.is_admin or actor.node_id == target_id:
            return True

        snapshot = self._graph.snapshot
        if actor.node_id not in snapshot or target_id not in snapshot:
            return False

        now = self._graph.now()
        visited: set[str] = {actor.node_id}
        queue: deque[str] = deque([actor.node_id])
        while queue:
            node = queue.popleft()
            for neighbor, _level in snapshot.neighbors(node, required, now):
                if neighbor == target_id:
                    return True
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        return False

    def effective_level(self, actor: Actor, target_id: str) -> Level | None:
        """Strongest level *actor* holds on *target_id*, or None."""
        for level in LEVELS_DESCENDING:
            if self.has_permission(actor, target_id, level):
                return level
        return None
