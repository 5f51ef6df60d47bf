"""BaseService — abstract foundation for the caller-facing services.

Every service receives a :class:`GraphStore` at construction time. Each
public operation builds a fresh authorizer (a :class:`RequestCache` over
the shared resolver unless disabled in ``[access]``), runs the engine
components, and turns any :class:`GrantGraphError` into a failed
ServiceResult exactly once, here at the service boundary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from grantgraph.domain.errors import (
    ForbiddenError,
    GrantGraphError,
    GraphConsistencyError,
    NotFoundError,
)
from grantgraph.domain.levels import Level
from grantgraph.services._helpers import parse_node_ref
from grantgraph.services.cache import RequestCache
from grantgraph.services.resolver import PermissionResolver
from grantgraph.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from grantgraph.domain.actors import Actor
    from grantgraph.infrastructure.store import GraphStore
    from grantgraph.services.resolver import Authorizer

log = structlog.get_logger(__name__)


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class GrantService(BaseService):
            def create_grant(self, actor, ...) -> ServiceResult:
                try:
                    guard = EdgeMutationGuard(self._store, self._authorizer())
                    ...
                except GrantGraphError as exc:
                    return self._failure("create_grant", exc)
    """

    def __init__(self, store: GraphStore) -> None:
        self._store = store
        self._resolver = PermissionResolver(store.graph)

    def _authorizer(self) -> Authorizer:
        """A per-operation authorizer; never reuse it across operations."""
        access = self._store.settings.access
        if not access.request_cache:
            return self._resolver
        return RequestCache(self._resolver, thread_safe=access.thread_safe_cache)

    def _require(self, authorizer: Authorizer, actor: Actor, node_id: str, level: Level) -> None:
        """Serving-layer check: invisible -> NotFound, visible but short -> Forbidden."""
        parse_node_ref(node_id)
        if not self._store.node_exists(node_id) or not authorizer.has_permission(
            actor, node_id, Level.READ
        ):
            raise NotFoundError(f"{node_id} not found", node_id=node_id)
        if level > Level.READ and not authorizer.has_permission(actor, node_id, level):
            raise ForbiddenError(
                f"{actor.node_id} lacks {level.label} on {node_id}",
                node_id=node_id,
                required=level.label,
            )

    @staticmethod
    def _failure(op: str, exc: GrantGraphError) -> ServiceResult:
        """Translate an engine error into a failed ServiceResult."""
        if isinstance(exc, GraphConsistencyError):
            log.error("graph.consistency_error", op=op, message=exc.message, **exc.detail)
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(
                code=exc.code,
                message=exc.message,
                detail={"status": exc.status, **exc.detail},
            ),
        )
