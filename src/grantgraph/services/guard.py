"""EdgeMutationGuard — who may create, delete, and read permission edges.

Explicit edges are created and destroyed only through this guard. Every
decision is made with the resolver, then classified into the error kind
the serving layer expects:

========================  =====================================
Situation                 Error
========================  =====================================
create, target invisible  ValidationError (the reference is bad)
create, no manage         ForbiddenError
delete/read, invisible    NotFoundError (existence never leaks)
delete, no manage         ForbiddenError
read, no manage           NotFoundError
========================  =====================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from grantgraph.domain.errors import ForbiddenError, NotFoundError, ValidationError
from grantgraph.domain.levels import Level
from grantgraph.services._helpers import parse_node_ref, require_edge_id

if TYPE_CHECKING:
    from datetime import datetime

    from grantgraph.domain.actors import Actor
    from grantgraph.domain.records import ExplicitEdge
    from grantgraph.infrastructure.store import GraphStore
    from grantgraph.services.resolver import Authorizer

audit = structlog.get_logger("grantgraph.audit")


class EdgeMutationGuard:
    """Authorizes mutations of explicit permission edges."""

    def __init__(self, store: GraphStore, authorizer: Authorizer) -> None:
        self._store = store
        self._authorizer = authorizer

    def create_edge(
        self,
        actor: Actor,
        subject_id: str,
        target_id: str,
        level: Level,
        *,
        expires_at: datetime | None = None,
    ) -> ExplicitEdge:
        """Grant *subject_id* *level* on *target_id*, acting as *actor*.

        The actor needs ``manage`` on the target. It does not need to see
        the subject, but the subject must exist.

        Raises:
            ValidationError: Target missing or not readable by *actor*, or
                subject missing.
            ForbiddenError: Target readable but not manageable.
        """
        parse_node_ref(target_id, error=ValidationError)
        parse_node_ref(subject_id, error=ValidationError)
        if not self._store.node_exists(target_id) or not self._authorizer.has_permission(
            actor, target_id, Level.READ
        ):
            raise ValidationError(
                f"Target {target_id} does not exist or is not visible",
                target_id=target_id,
            )
        if not self._authorizer.has_permission(actor, target_id, Level.MANAGE):
            raise ForbiddenError(
                f"{actor.node_id} cannot grant access to {target_id}",
                target_id=target_id,
                required=Level.MANAGE.label,
            )
        if not self._store.node_exists(subject_id):
            raise ValidationError(f"Subject {subject_id} does not exist", subject_id=subject_id)

        edge = self._store.insert_edge(subject_id, target_id, level, expires_at=expires_at)
        audit.info(
            "grant.created",
            edge_id=edge.id,
            actor=actor.node_id,
            subject=subject_id,
            target=target_id,
            permission=level.label,
        )
        return edge

    def delete_edge(self, actor: Actor, edge_id: str) -> ExplicitEdge:
        """Revoke an edge, acting as *actor*. Returns the deleted edge.

        Raises:
            NotFoundError: Edge missing, inactive, or its target unreadable.
            ForbiddenError: Target readable but not manageable.
        """
        edge = self._visible_edge(actor, edge_id)
        if not self._authorizer.has_permission(actor, edge.target_id, Level.MANAGE):
            raise ForbiddenError(
                f"{actor.node_id} cannot revoke {edge_id}",
                edge_id=edge_id,
                required=Level.MANAGE.label,
            )
        if not self._store.delete_edge(edge_id):
            # Lost a race with another delete.
            raise NotFoundError(f"Permission link {edge_id} not found", edge_id=edge_id)

        audit.info(
            "grant.deleted",
            edge_id=edge_id,
            actor=actor.node_id,
            subject=edge.subject_id,
            target=edge.target_id,
            permission=edge.level.label,
        )
        return edge

    def read_edge(self, actor: Actor, edge_id: str) -> ExplicitEdge:
        """Show one edge. Only managers of its target may see it.

        Raises:
            NotFoundError: For everyone without ``manage`` on the target.
        """
        edge = self._visible_edge(actor, edge_id)
        if not self._authorizer.has_permission(actor, edge.target_id, Level.MANAGE):
            raise NotFoundError(f"Permission link {edge_id} not found", edge_id=edge_id)
        return edge

    def _visible_edge(self, actor: Actor, edge_id: str) -> ExplicitEdge:
        require_edge_id(edge_id)
        edge = self._store.get_edge(edge_id)
        if (
            edge is None
            or (not actor.is_admin and not edge.is_active(self._store.graph.now()))
            or not self._authorizer.has_permission(actor, edge.target_id, Level.READ)
        ):
            raise NotFoundError(f"Permission link {edge_id} not found", edge_id=edge_id)
        return edge
