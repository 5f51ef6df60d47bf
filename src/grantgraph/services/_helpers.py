"""Shared service-layer helper functions.

Caller input is decoded here so a malformed value becomes the error kind
the serving layer expects: a bad id on a lookup reads as "not found", a
bad id on a write is a rejected reference.
"""

from __future__ import annotations

from grantgraph.domain.errors import GrantGraphError, NotFoundError, ValidationError
from grantgraph.domain.ids import NodeKind, NodeRef, validate_edge_id
from grantgraph.domain.levels import Level


def parse_level(value: str | int | Level) -> Level:
    """Coerce caller input into a Level, as a request-facing error."""
    try:
        return Level.parse(value)
    except ValueError as exc:
        raise ValidationError(str(exc), level=str(value)) from exc


def parse_kind(value: str | NodeKind | None) -> NodeKind | None:
    if value is None:
        return None
    try:
        return NodeKind(value)
    except ValueError as exc:
        expected = ", ".join(k.value for k in NodeKind)
        raise ValidationError(f"Unknown node kind: {value!r}. Expected one of {expected}") from exc


def parse_node_ref(
    node_id: str,
    *,
    error: type[GrantGraphError] = NotFoundError,
) -> NodeRef:
    """Decode a caller-supplied node id, raising *error* if it is malformed."""
    try:
        return NodeRef.parse(node_id)
    except ValueError as exc:
        raise error(str(exc), node_id=node_id) from exc


def require_edge_id(edge_id: str) -> str:
    """A malformed link id names no link: NotFoundError, like a missing one."""
    if not validate_edge_id(edge_id):
        raise NotFoundError(f"Permission link {edge_id} not found", edge_id=edge_id)
    return edge_id
