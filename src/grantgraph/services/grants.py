"""GrantService — create, delete, show, and list permission links.

The four operations behind the external permission-link surface, each a
thin ServiceResult wrapper over :class:`EdgeMutationGuard` or
:class:`PermissionListing`. Successful creates report status 201.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from grantgraph.domain.errors import GrantGraphError, ValidationError
from grantgraph.domain.levels import Level
from grantgraph.domain.timestamps import parse_timestamp
from grantgraph.services._helpers import parse_level, parse_node_ref
from grantgraph.services.base import BaseService
from grantgraph.services.contracts import EdgeItem, EdgeListResultData, dump_validated
from grantgraph.services.guard import EdgeMutationGuard
from grantgraph.services.listing import PermissionListing
from grantgraph.services.result import ServiceResult
from grantgraph.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from grantgraph.domain.actors import Actor
    from grantgraph.domain.records import ExplicitEdge


def _edge_payload(edge: ExplicitEdge) -> dict[str, object]:
    return dump_validated(EdgeItem, edge.to_dict())


class GrantService(BaseService):
    """Handles permission-link operations on behalf of an actor."""

    @traced
    def create_grant(
        self,
        actor: Actor,
        subject_id: str,
        target_id: str,
        level: str | Level,
        *,
        expires_at: str | datetime | None = None,
    ) -> ServiceResult:
        """Grant *subject_id* *level* access to *target_id*."""
        op = "create_grant"
        try:
            guard = EdgeMutationGuard(self._store, self._authorizer())
            edge = guard.create_edge(
                actor,
                subject_id,
                target_id,
                parse_level(level),
                expires_at=parse_timestamp(expires_at),
            )
        except GrantGraphError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data=_edge_payload(edge), meta={"status": 201})

    @traced
    def delete_grant(self, actor: Actor, edge_id: str) -> ServiceResult:
        """Revoke a permission link; the payload is the deleted link."""
        op = "delete_grant"
        try:
            edge = EdgeMutationGuard(self._store, self._authorizer()).delete_edge(actor, edge_id)
        except GrantGraphError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data=_edge_payload(edge))

    @traced
    def read_grant(self, actor: Actor, edge_id: str) -> ServiceResult:
        op = "read_grant"
        try:
            edge = EdgeMutationGuard(self._store, self._authorizer()).read_edge(actor, edge_id)
        except GrantGraphError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data=_edge_payload(edge))

    @traced
    def list_grants(self, actor: Actor, target_id: str) -> ServiceResult:
        """Direct permission links on *target_id* (requires manage)."""
        op = "list_grants"
        try:
            listing = PermissionListing(self._store, self._authorizer())
            edges = listing.list_direct_permissions(actor, target_id)
        except GrantGraphError as exc:
            return self._failure(op, exc)

        data = {
            "target_id": target_id,
            "count": len(edges),
            "items": [edge.to_dict() for edge in edges],
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(EdgeListResultData, data))

    @traced
    def list_links(
        self,
        actor: Actor,
        *,
        target_id: str | None = None,
        subject_id: str | None = None,
        level: str | Level | None = None,
    ) -> ServiceResult:
        """Filtered link listing; links the actor may not see are left out."""
        op = "list_links"
        try:
            parsed = parse_level(level) if level is not None else None
            for node_id in (target_id, subject_id):
                if node_id is not None:
                    parse_node_ref(node_id, error=ValidationError)
            listing = PermissionListing(self._store, self._authorizer())
            with trace_span("filter_links") as span:
                edges = listing.list_visible_edges(
                    actor,
                    target_id=target_id,
                    subject_id=subject_id,
                    level=parsed,
                )
                if span:
                    span.annotate("visible", len(edges))
        except GrantGraphError as exc:
            return self._failure(op, exc)

        data = {
            "target_id": target_id,
            "count": len(edges),
            "items": [edge.to_dict() for edge in edges],
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(EdgeListResultData, data))
