"""GraphStore — repository for nodes and explicit permission edges.

The GraphStore is the single dependency injected into every service. It
owns the database engine and the permission graph. Every write runs in
one SQLAlchemy transaction via :meth:`GraphStore.transaction`:

- **DB**: Native ``engine.begin()`` with auto-commit/rollback, so each
  edge or ownership change is atomic with respect to readers.
- **Graph**: A commit bumps the ``graph_version`` counter in the same
  transaction, so every graph reading this database (in this process
  or another) rebuilds from committed state on next access.

Concurrent writes to the same edge are last-writer-wins: each mutation
is its own transaction, and deleting an edge that is already gone is
reported to the caller rather than retried.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, or_, select, update

from grantgraph.domain.actors import Actor
from grantgraph.domain.errors import GraphConsistencyError
from grantgraph.domain.ids import NodeKind, generate_edge_id, generate_node_id
from grantgraph.domain.levels import Level
from grantgraph.domain.records import ExplicitEdge, NodeRecord
from grantgraph.domain.timestamps import now_iso, parse_timestamp, to_iso
from grantgraph.infrastructure.database.engine import init_database
from grantgraph.infrastructure.database.schema import graph_version, nodes, permission_edges
from grantgraph.infrastructure.graph.engine import PermissionGraph

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection, Row
    from sqlalchemy.engine import Engine

    from grantgraph.config.settings import GrantSettings
    from grantgraph.infrastructure.graph.engine import Clock

logger = logging.getLogger(__name__)


def _node_from_row(row: Row[Any]) -> NodeRecord:
    return NodeRecord(
        id=row.id,
        kind=NodeKind(row.kind),
        name=row.name or "",
        owner_id=row.owner_id,
        is_admin=bool(row.is_admin),
        is_trashed=bool(row.is_trashed),
        trash_at=parse_timestamp(row.trash_at),
        created=row.created,
        modified=row.modified,
    )


def _edge_from_row(row: Row[Any]) -> ExplicitEdge:
    return ExplicitEdge(
        id=row.id,
        subject_id=row.subject_id,
        target_id=row.target_id,
        level=Level.parse(row.level),
        is_trashed=bool(row.is_trashed),
        expires_at=parse_timestamp(row.expires_at),
        created=row.created,
    )


# ---------------------------------------------------------------------------
# StoreTransaction — yielded to callers within transaction()
# ---------------------------------------------------------------------------


@dataclass
class StoreTransaction:
    """Active transaction context wrapping one DB connection.

    All writes to nodes and permission edges go through these helpers so
    ownership invariants are checked inside the same transaction that
    applies the change.
    """

    conn: Connection

    def get_node(self, node_id: str) -> NodeRecord | None:
        row = self.conn.execute(select(nodes).where(nodes.c.id == node_id)).first()
        return _node_from_row(row) if row is not None else None

    def create_node(
        self,
        kind: NodeKind,
        *,
        owner_id: str | None,
        name: str = "",
        is_admin: bool = False,
        node_id: str | None = None,
    ) -> NodeRecord:
        """Insert a node owned by *owner_id* (None creates a root)."""
        now = now_iso()
        new_id = node_id or generate_node_id(kind)
        self.conn.execute(
            insert(nodes).values(
                id=new_id,
                kind=NodeKind(kind).value,
                name=name,
                owner_id=owner_id,
                is_admin=int(is_admin),
                created=now,
                modified=now,
            )
        )
        record = self.get_node(new_id)
        assert record is not None
        return record

    def set_owner(self, node_id: str, new_owner_id: str) -> None:
        """Re-own *node_id*, refusing any change that would close a cycle.

        Raises:
            GraphConsistencyError: If *new_owner_id* is *node_id* itself or
                is (transitively) owned by it.
        """
        seen: set[str] = set()
        current: str | None = new_owner_id
        while current is not None:
            if current == node_id:
                msg = f"Re-owning {node_id} under {new_owner_id} would create an ownership cycle"
                raise GraphConsistencyError(msg, node_id=node_id, owner_id=new_owner_id)
            if current in seen:
                msg = f"Existing ownership cycle through {current}"
                raise GraphConsistencyError(msg, node_id=current)
            seen.add(current)
            current = self.conn.execute(
                select(nodes.c.owner_id).where(nodes.c.id == current)
            ).scalar_one_or_none()

        self.conn.execute(
            update(nodes)
            .where(nodes.c.id == node_id)
            .values(owner_id=new_owner_id, modified=now_iso())
        )

    def set_trashed(
        self,
        node_id: str,
        *,
        trashed: bool,
        trash_at: datetime | None = None,
    ) -> None:
        self.conn.execute(
            update(nodes)
            .where(nodes.c.id == node_id)
            .values(is_trashed=int(trashed), trash_at=to_iso(trash_at), modified=now_iso())
        )

    def destroy_node(self, node_id: str) -> int:
        """Delete a node, its incoming and outgoing edges, and re-own its children.

        Children move to the destroyed node's owner (or become roots if it
        had none). Returns the number of permission edges removed.
        """
        owner_id = self.conn.execute(
            select(nodes.c.owner_id).where(nodes.c.id == node_id)
        ).scalar_one_or_none()

        removed = self.conn.execute(
            delete(permission_edges).where(
                or_(
                    permission_edges.c.subject_id == node_id,
                    permission_edges.c.target_id == node_id,
                )
            )
        ).rowcount
        self.conn.execute(
            update(nodes)
            .where(nodes.c.owner_id == node_id)
            .values(owner_id=owner_id, modified=now_iso())
        )
        self.conn.execute(delete(nodes).where(nodes.c.id == node_id))
        return int(removed or 0)

    def insert_edge(
        self,
        subject_id: str,
        target_id: str,
        level: Level,
        *,
        expires_at: datetime | None = None,
    ) -> ExplicitEdge:
        edge_id = generate_edge_id()
        self.conn.execute(
            insert(permission_edges).values(
                id=edge_id,
                subject_id=subject_id,
                target_id=target_id,
                level=level.label,
                expires_at=to_iso(expires_at),
                created=now_iso(),
            )
        )
        row = self.conn.execute(
            select(permission_edges).where(permission_edges.c.id == edge_id)
        ).one()
        return _edge_from_row(row)

    def delete_edge(self, edge_id: str) -> bool:
        """Delete an edge. Returns False if it was already gone."""
        result = self.conn.execute(delete(permission_edges).where(permission_edges.c.id == edge_id))
        return bool(result.rowcount)

    def set_edge_trashed(self, edge_id: str, *, trashed: bool) -> bool:
        """Flag an edge trashed (inert but kept). Returns False if it is gone."""
        result = self.conn.execute(
            update(permission_edges)
            .where(permission_edges.c.id == edge_id)
            .values(is_trashed=int(trashed))
        )
        return bool(result.rowcount)


# ---------------------------------------------------------------------------
# GraphStore — the repository
# ---------------------------------------------------------------------------


class GraphStore:
    """Repository encapsulating node/edge persistence and the permission graph.

    Constructed once at CLI startup from :class:`GrantSettings` and stored
    on the CLI context. Services receive the store via their
    :class:`BaseService` constructor.
    """

    def __init__(self, settings: GrantSettings, *, clock: Clock | None = None) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.db_path, echo=settings.store.echo)
        self._graph = PermissionGraph(self._engine, clock=clock)

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def graph(self) -> PermissionGraph:
        """The permission graph (lazy-built from committed rows)."""
        return self._graph

    @property
    def settings(self) -> GrantSettings:
        return self._settings

    def close(self) -> None:
        """Dispose of pooled connections."""
        self._engine.dispose()

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """One atomic write against nodes and permission edges.

        Commits on success, rolling back on exception. A commit bumps
        ``graph_version`` so every GraphStore on this database rebuilds its
        snapshot; the local snapshot is dropped either way.

        **Warning:** Do not resolve permissions inside a transaction block:
        the graph is built from committed rows and will not reflect
        pending writes.

        Usage::

            with store.transaction() as txn:
                edge = txn.insert_edge(subject_id, target_id, Level.READ)
        """
        try:
            with self._engine.begin() as conn:
                yield StoreTransaction(conn=conn)
                conn.execute(update(graph_version).values(version=graph_version.c.version + 1))
        finally:
            self._graph.invalidate()

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> NodeRecord | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(nodes).where(nodes.c.id == node_id)).first()
        return _node_from_row(row) if row is not None else None

    def node_exists(self, node_id: str) -> bool:
        with self._engine.connect() as conn:
            row = conn.execute(select(nodes.c.id).where(nodes.c.id == node_id)).first()
        return row is not None

    def get_owner(self, node_id: str) -> str | None:
        with self._engine.connect() as conn:
            owner: str | None = conn.execute(
                select(nodes.c.owner_id).where(nodes.c.id == node_id)
            ).scalar_one_or_none()
        return owner

    def set_owner(self, node_id: str, new_owner_id: str) -> None:
        with self.transaction() as txn:
            txn.set_owner(node_id, new_owner_id)

    def is_trashed_or_expired(self, node_id: str, *, now: datetime | None = None) -> bool:
        """True if the node is trashed, past its trash time, or missing."""
        node = self.get_node(node_id)
        if node is None:
            return True
        return node.is_hidden(now or self._graph.now())

    def list_nodes(
        self,
        *,
        kind: NodeKind | None = None,
        include_hidden: bool = False,
    ) -> list[NodeRecord]:
        stmt = select(nodes).order_by(nodes.c.created, nodes.c.id)
        if kind is not None:
            stmt = stmt.where(nodes.c.kind == NodeKind(kind).value)
        with self._engine.connect() as conn:
            records = [_node_from_row(row) for row in conn.execute(stmt)]
        if include_hidden:
            return records
        now = self._graph.now()
        return [record for record in records if not record.is_hidden(now)]

    def load_actor(self, node_id: str) -> Actor | None:
        """Build the Actor for a user node, carrying its admin capability."""
        node = self.get_node(node_id)
        if node is None or node.kind is not NodeKind.USER:
            return None
        return Actor(node_id=node.id, is_admin=node.is_admin)

    # ------------------------------------------------------------------
    # Explicit edges
    # ------------------------------------------------------------------

    def get_edge(self, edge_id: str) -> ExplicitEdge | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(permission_edges).where(permission_edges.c.id == edge_id)
            ).first()
        return _edge_from_row(row) if row is not None else None

    def list_edges(
        self,
        *,
        subject_id: str | None = None,
        target_id: str | None = None,
        level: Level | None = None,
    ) -> list[ExplicitEdge]:
        """Explicit edges matching every given filter, oldest first."""
        stmt = select(permission_edges).order_by(permission_edges.c.created, permission_edges.c.id)
        if subject_id is not None:
            stmt = stmt.where(permission_edges.c.subject_id == subject_id)
        if target_id is not None:
            stmt = stmt.where(permission_edges.c.target_id == target_id)
        if level is not None:
            stmt = stmt.where(permission_edges.c.level == level.label)
        with self._engine.connect() as conn:
            return [_edge_from_row(row) for row in conn.execute(stmt)]

    def list_outgoing_edges(self, node_id: str) -> list[ExplicitEdge]:
        return self.list_edges(subject_id=node_id)

    def list_incoming_edges(self, node_id: str) -> list[ExplicitEdge]:
        return self.list_edges(target_id=node_id)

    def insert_edge(
        self,
        subject_id: str,
        target_id: str,
        level: Level,
        *,
        expires_at: datetime | None = None,
    ) -> ExplicitEdge:
        with self.transaction() as txn:
            edge = txn.insert_edge(subject_id, target_id, level, expires_at=expires_at)
        logger.debug("Inserted edge %s: %s -[%s]-> %s", edge.id, subject_id, level.label, target_id)
        return edge

    def delete_edge(self, edge_id: str) -> bool:
        with self.transaction() as txn:
            deleted = txn.delete_edge(edge_id)
        logger.debug("Deleted edge %s (existed=%s)", edge_id, deleted)
        return deleted
