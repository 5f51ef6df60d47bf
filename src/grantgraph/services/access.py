"""AccessService — the checks a resource-serving layer runs per request.

``authorize`` is the bare allow/deny answer. ``require`` is the same
question phrased the way a serving layer needs it: an invisible target
is NOT_FOUND, a visible target without the requested level is FORBIDDEN.
``list_readable`` filters a node listing down to what the actor may see,
sharing one request cache across every check.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from grantgraph.domain.errors import GrantGraphError
from grantgraph.domain.levels import Level
from grantgraph.services._helpers import parse_kind, parse_level, parse_node_ref
from grantgraph.services.base import BaseService
from grantgraph.services.cache import RequestCache
from grantgraph.services.contracts import (
    AccessDecisionData,
    EffectiveLevelData,
    NodeListResultData,
    dump_validated,
)
from grantgraph.services.listing import PermissionListing
from grantgraph.services.result import ServiceResult
from grantgraph.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from grantgraph.domain.actors import Actor
    from grantgraph.domain.ids import NodeKind


class AccessService(BaseService):
    """Authorization checks against the permission graph."""

    @traced
    def authorize(self, actor: Actor, target_id: str, level: str | Level) -> ServiceResult:
        """Allow/deny *actor* holding at least *level* on *target_id*."""
        op = "authorize"
        try:
            required = parse_level(level)
            parse_node_ref(target_id)
            allowed = self._authorizer().has_permission(actor, target_id, required)
        except GrantGraphError as exc:
            return self._failure(op, exc)

        data = {
            "actor_id": actor.node_id,
            "target_id": target_id,
            "level": required.label,
            "allowed": allowed,
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(AccessDecisionData, data))

    @traced
    def effective_level(self, actor: Actor, target_id: str) -> ServiceResult:
        """The strongest level *actor* holds on *target_id* (None if no access)."""
        op = "effective_level"
        try:
            parse_node_ref(target_id)
            level = self._authorizer().effective_level(actor, target_id)
        except GrantGraphError as exc:
            return self._failure(op, exc)

        data = {
            "actor_id": actor.node_id,
            "target_id": target_id,
            "level": level.label if level is not None else None,
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(EffectiveLevelData, data))

    @traced
    def require(self, actor: Actor, target_id: str, level: str | Level) -> ServiceResult:
        """Serving-layer gate: NOT_FOUND if invisible, FORBIDDEN if short of *level*."""
        op = "require"
        try:
            required = parse_level(level)
            self._require(self._authorizer(), actor, target_id, required)
        except GrantGraphError as exc:
            return self._failure(op, exc)

        data = {
            "actor_id": actor.node_id,
            "target_id": target_id,
            "level": required.label,
            "allowed": True,
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(AccessDecisionData, data))

    @traced
    def list_readable(
        self,
        actor: Actor,
        *,
        kind: str | NodeKind | None = None,
        level: str | Level = Level.READ,
    ) -> ServiceResult:
        """Nodes *actor* holds at least *level* on, optionally of one *kind*."""
        op = "list_readable"
        try:
            required = parse_level(level)
            node_kind = parse_kind(kind)
            authorizer = self._authorizer()
            with trace_span("filter_nodes") as span:
                nodes = PermissionListing(self._store, authorizer).list_readable_nodes(
                    actor, kind=node_kind, level=required
                )
                if span:
                    span.annotate("visible", len(nodes))
        except GrantGraphError as exc:
            return self._failure(op, exc)

        data = {
            "kind": node_kind.value if node_kind is not None else None,
            "level": required.label,
            "count": len(nodes),
            "items": [node.to_dict() for node in nodes],
        }
        meta = {"cache": authorizer.stats()} if isinstance(authorizer, RequestCache) else None
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(NodeListResultData, data),
            meta=meta,
        )
