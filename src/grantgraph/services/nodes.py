"""NodeService — ownership and trash lifecycle of users, groups, and resources.

Resource contents are not this layer's concern; ownership is, because
every owner reference is an implicit ``manage`` edge. Rules:

- Only admins create users. Users default to being owned by the system
  root; everything else defaults to being owned by the acting user.
- Creating a node under an owner, or re-owning onto a new owner, needs
  ``write`` on that owner.
- Re-owning, trashing, and destroying a node need ``manage`` on it.
- Destroying a node removes its permission edges and hands its children
  to its own owner.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog

from grantgraph.domain.errors import ForbiddenError, GrantGraphError, ValidationError
from grantgraph.domain.ids import SYSTEM_ROOT_ID, NodeKind
from grantgraph.domain.levels import Level
from grantgraph.domain.timestamps import parse_timestamp
from grantgraph.services._helpers import parse_kind, parse_node_ref
from grantgraph.services.base import BaseService
from grantgraph.services.contracts import NodeItem, dump_validated
from grantgraph.services.result import ServiceResult
from grantgraph.services.telemetry import traced

if TYPE_CHECKING:
    from grantgraph.domain.actors import Actor
    from grantgraph.domain.records import NodeRecord
    from grantgraph.services.resolver import Authorizer

audit = structlog.get_logger("grantgraph.audit")


def _node_payload(node: NodeRecord, **extra: Any) -> dict[str, Any]:
    return dump_validated(NodeItem, {**node.to_dict(), **extra})


class NodeService(BaseService):
    """Handles node creation, ownership changes, trash, and destruction."""

    @traced
    def create_node(
        self,
        actor: Actor,
        kind: str | NodeKind,
        *,
        name: str = "",
        owner_id: str | None = None,
        is_admin: bool = False,
    ) -> ServiceResult:
        """Create a node of *kind* owned by *owner_id*."""
        op = "create_node"
        try:
            node_kind = parse_kind(kind)
            assert node_kind is not None
            if node_kind is NodeKind.USER:
                if not actor.is_admin:
                    raise ForbiddenError("Only admins can create users", kind=node_kind.value)
                owner_id = owner_id or SYSTEM_ROOT_ID
            else:
                if is_admin:
                    raise ValidationError("Only users can be admins", kind=node_kind.value)
                owner_id = owner_id or actor.node_id

            self._require_owner(self._authorizer(), actor, owner_id)
            with self._store.transaction() as txn:
                node = txn.create_node(node_kind, owner_id=owner_id, name=name, is_admin=is_admin)
        except GrantGraphError as exc:
            return self._failure(op, exc)

        audit.info("node.created", node_id=node.id, actor=actor.node_id, owner=owner_id)
        return ServiceResult(ok=True, op=op, data=_node_payload(node), meta={"status": 201})

    @traced
    def show_node(self, actor: Actor, node_id: str) -> ServiceResult:
        """Show a node the actor can read, with the actor's effective level on it."""
        op = "show_node"
        try:
            authorizer = self._authorizer()
            self._require(authorizer, actor, node_id, Level.READ)
            node = self._store.get_node(node_id)
            level = authorizer.effective_level(actor, node_id)
        except GrantGraphError as exc:
            return self._failure(op, exc)

        assert node is not None
        access = level.label if level is not None else None
        return ServiceResult(ok=True, op=op, data=_node_payload(node, access=access))

    @traced
    def reown(self, actor: Actor, node_id: str, new_owner_id: str) -> ServiceResult:
        """Move *node_id* under *new_owner_id*."""
        op = "reown"
        try:
            authorizer = self._authorizer()
            self._require(authorizer, actor, node_id, Level.MANAGE)
            self._require_owner(authorizer, actor, new_owner_id)
            with self._store.transaction() as txn:
                txn.set_owner(node_id, new_owner_id)
                node = txn.get_node(node_id)
        except GrantGraphError as exc:
            return self._failure(op, exc)

        assert node is not None
        audit.info("node.reowned", node_id=node_id, actor=actor.node_id, owner=new_owner_id)
        return ServiceResult(ok=True, op=op, data=_node_payload(node))

    @traced
    def trash(
        self,
        actor: Actor,
        node_id: str,
        *,
        trash_at: str | datetime | None = None,
    ) -> ServiceResult:
        """Trash *node_id* now, or schedule it for *trash_at*."""
        op = "trash"
        try:
            when = parse_timestamp(trash_at)
            self._require(self._authorizer(), actor, node_id, Level.MANAGE)
            if node_id == SYSTEM_ROOT_ID:
                raise ForbiddenError("The system root cannot be trashed", node_id=node_id)
            with self._store.transaction() as txn:
                txn.set_trashed(node_id, trashed=when is None, trash_at=when)
                node = txn.get_node(node_id)
        except GrantGraphError as exc:
            return self._failure(op, exc)

        assert node is not None
        return ServiceResult(ok=True, op=op, data=_node_payload(node))

    @traced
    def untrash(self, actor: Actor, node_id: str) -> ServiceResult:
        """Restore a trashed node. Hidden nodes are only visible to admins."""
        op = "untrash"
        try:
            self._require(self._authorizer(), actor, node_id, Level.MANAGE)
            with self._store.transaction() as txn:
                txn.set_trashed(node_id, trashed=False)
                node = txn.get_node(node_id)
        except GrantGraphError as exc:
            return self._failure(op, exc)

        assert node is not None
        return ServiceResult(ok=True, op=op, data=_node_payload(node))

    @traced
    def destroy(self, actor: Actor, node_id: str) -> ServiceResult:
        """Delete *node_id* and every permission edge touching it."""
        op = "destroy"
        try:
            self._require(self._authorizer(), actor, node_id, Level.MANAGE)
            if node_id == SYSTEM_ROOT_ID:
                raise ForbiddenError("The system root cannot be destroyed", node_id=node_id)
            with self._store.transaction() as txn:
                removed = txn.destroy_node(node_id)
        except GrantGraphError as exc:
            return self._failure(op, exc)

        audit.info("node.destroyed", node_id=node_id, actor=actor.node_id, edges_removed=removed)
        return ServiceResult(ok=True, op=op, data={"id": node_id, "edges_removed": removed})

    def _require_owner(self, authorizer: Authorizer, actor: Actor, owner_id: str) -> None:
        """An owner reference must resolve for the actor and be writable by it."""
        parse_node_ref(owner_id, error=ValidationError)
        if not self._store.node_exists(owner_id) or not authorizer.has_permission(
            actor, owner_id, Level.READ
        ):
            raise ValidationError(
                f"Owner {owner_id} does not exist or is not visible",
                owner_id=owner_id,
            )
        if not authorizer.has_permission(actor, owner_id, Level.WRITE):
            raise ForbiddenError(
                f"{actor.node_id} cannot write to {owner_id}",
                owner_id=owner_id,
                required=Level.WRITE.label,
            )
