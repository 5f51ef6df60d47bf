"""PermissionListing — read-side views of grants and visible nodes.

:meth:`list_direct_permissions` is the strict per-target listing: it
fails loudly when the actor lacks ``manage``. :meth:`list_visible_edges`
is the filtered link listing: it never fails, it just leaves out edges
the actor may not see. :meth:`list_readable_nodes` answers "which
resources can this actor see", the question behind every index page.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from grantgraph.domain.errors import ForbiddenError, NotFoundError
from grantgraph.domain.levels import Level
from grantgraph.services._helpers import parse_node_ref

if TYPE_CHECKING:
    from grantgraph.domain.actors import Actor
    from grantgraph.domain.ids import NodeKind
    from grantgraph.domain.records import ExplicitEdge, NodeRecord
    from grantgraph.infrastructure.store import GraphStore
    from grantgraph.services.resolver import Authorizer


class PermissionListing:
    """Lists explicit edges and nodes as seen by one actor."""

    def __init__(self, store: GraphStore, authorizer: Authorizer) -> None:
        self._store = store
        self._authorizer = authorizer

    def list_direct_permissions(self, actor: Actor, target_id: str) -> list[ExplicitEdge]:
        """Explicit edges pointing directly at *target_id*.

        One hop only: never transitive, never implicit ownership edges.
        Inactive (trashed or expired) edges are listed for admins only.

        Raises:
            NotFoundError: Target missing or not readable by *actor*.
            ForbiddenError: Target readable but not manageable.
        """
        parse_node_ref(target_id)
        if not self._store.node_exists(target_id) or not self._authorizer.has_permission(
            actor, target_id, Level.READ
        ):
            raise NotFoundError(f"{target_id} not found", target_id=target_id)
        if not self._authorizer.has_permission(actor, target_id, Level.MANAGE):
            raise ForbiddenError(
                f"{actor.node_id} cannot list permissions on {target_id}",
                target_id=target_id,
                required=Level.MANAGE.label,
            )
        return self._active(actor, self._store.list_incoming_edges(target_id))

    def list_visible_edges(
        self,
        actor: Actor,
        *,
        target_id: str | None = None,
        subject_id: str | None = None,
        level: Level | None = None,
    ) -> list[ExplicitEdge]:
        """Explicit edges matching the filters whose target *actor* manages."""
        candidates = self._store.list_edges(
            target_id=target_id,
            subject_id=subject_id,
            level=level,
        )
        return [
            edge
            for edge in self._active(actor, candidates)
            if self._authorizer.has_permission(actor, edge.target_id, Level.MANAGE)
        ]

    def list_readable_nodes(
        self,
        actor: Actor,
        *,
        kind: NodeKind | None = None,
        level: Level = Level.READ,
    ) -> list[NodeRecord]:
        """Nodes (optionally of one kind) on which *actor* holds at least *level*.

        Hidden nodes are skipped for everyone except admins.
        """
        candidates = self._store.list_nodes(kind=kind, include_hidden=actor.is_admin)
        return [
            node
            for node in candidates
            if self._authorizer.has_permission(actor, node.id, level)
        ]

    def _active(self, actor: Actor, edges: list[ExplicitEdge]) -> list[ExplicitEdge]:
        if actor.is_admin:
            return edges
        now = self._store.graph.now()
        return [edge for edge in edges if edge.is_active(now)]
