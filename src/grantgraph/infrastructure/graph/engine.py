"""PermissionGraph — lazy-built NetworkX view over nodes and permission edges.

The snapshot is a ``MultiDiGraph``: every node row becomes a graph node
carrying its ownership and trash state, every explicit permission edge
becomes a graph edge keyed by its link id. Implicit ownership edges are
never added to the graph; :meth:`GraphSnapshot.neighbors` derives them
from the ``children`` index built alongside it.

Snapshots are immutable once built and stamped with the ``graph_version``
they were read at. Every committed store transaction bumps that counter,
so a snapshot is reused only while the database still reports the same
version: writes from another GraphStore or another process are seen on
the next access. Earlier readers keep the snapshot they started with.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

import networkx as nx
from sqlalchemy import select

from grantgraph.domain.errors import GraphConsistencyError
from grantgraph.domain.levels import Level
from grantgraph.domain.timestamps import parse_timestamp, utc_now
from grantgraph.infrastructure.database.schema import graph_version, nodes, permission_edges

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

type _Graph = nx.MultiDiGraph
type Clock = Callable[[], datetime]


def _node_hidden(attrs: dict[str, Any], now: datetime) -> bool:
    if attrs.get("is_trashed"):
        return True
    trash_at = attrs.get("trash_at")
    return trash_at is not None and trash_at <= now


def _edge_active(attrs: dict[str, Any], now: datetime) -> bool:
    if attrs.get("is_trashed"):
        return False
    expires_at = attrs.get("expires_at")
    return expires_at is None or expires_at > now


@dataclass(frozen=True)
class GraphSnapshot:
    """One consistent view of the permission graph."""

    graph: _Graph
    children: dict[str, tuple[str, ...]] = field(default_factory=dict)
    version: int = 0

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.graph

    def has_node(self, node_id: str) -> bool:
        return node_id in self.graph

    def owner_of(self, node_id: str) -> str | None:
        if node_id not in self.graph:
            return None
        owner: str | None = self.graph.nodes[node_id].get("owner_id")
        return owner

    def is_hidden(self, node_id: str, now: datetime) -> bool:
        if node_id not in self.graph:
            return True
        return _node_hidden(self.graph.nodes[node_id], now)

    def neighbors(self, node_id: str, min_level: Level, now: datetime) -> list[tuple[str, Level]]:
        """Outgoing edges of *node_id* at *min_level* or stronger.

        Explicit edges must be active (not trashed, not expired); implicit
        ownership edges to each child are always ``manage``. Edges into a
        hidden (trashed or past ``trash_at``) node are dropped. Each target
        appears once, with the strongest level found.
        """
        g = self.graph
        if node_id not in g:
            return []

        best: dict[str, Level] = {}
        for _, target, attrs in g.out_edges(node_id, data=True):
            level: Level = attrs["level"]
            if level < min_level or not _edge_active(attrs, now):
                continue
            if level > best.get(target, 0):
                best[target] = level

        for child in self.children.get(node_id, ()):
            best[child] = Level.MANAGE

        return [
            (target, level)
            for target, level in best.items()
            if not _node_hidden(g.nodes[target], now)
        ]


class PermissionGraph:
    """Lazy-loading permission graph backed by the SQLite node and edge tables."""

    def __init__(self, db: Engine, *, clock: Clock | None = None) -> None:
        self._db = db
        self._clock: Clock = clock or utc_now
        self._snapshot: GraphSnapshot | None = None
        self._generation = 0
        self._build_lock = threading.Lock()

    @property
    def snapshot(self) -> GraphSnapshot:
        """Return a snapshot of committed state, rebuilding when the DB has moved on."""
        version = self.current_version()
        snapshot = self._snapshot
        if snapshot is not None and snapshot.version == version:
            return snapshot
        with self._build_lock:
            snapshot = self._snapshot
            if snapshot is not None and snapshot.version == version:
                return snapshot
            generation = self._generation
            snapshot = self._build_from_db(version)
            # Invalidated mid-build: serve this snapshot once, don't cache it.
            if generation == self._generation:
                self._snapshot = snapshot
            return snapshot

    def current_version(self) -> int:
        """The write counter as committed in the database."""
        with self._db.connect() as conn:
            version = conn.execute(select(graph_version.c.version)).scalar_one_or_none()
        return int(version or 0)

    @property
    def graph(self) -> _Graph:
        """The underlying NetworkX graph of the current snapshot."""
        return self.snapshot.graph

    def now(self) -> datetime:
        return self._clock()

    def invalidate(self) -> None:
        """Drop the cached snapshot, forcing rebuild on next access."""
        self._generation += 1
        self._snapshot = None

    def neighbors(self, node_id: str, min_level: Level) -> list[tuple[str, Level]]:
        return self.snapshot.neighbors(node_id, min_level, self.now())

    def owner_of(self, node_id: str) -> str | None:
        return self.snapshot.owner_of(node_id)

    def has_node(self, node_id: str) -> bool:
        return self.snapshot.has_node(node_id)

    def is_hidden(self, node_id: str) -> bool:
        return self.snapshot.is_hidden(node_id, self.now())

    def _build_from_db(self, version: int) -> GraphSnapshot:
        """Build a snapshot from the nodes and permission_edges tables.

        Loads all nodes first (so isolated nodes appear in the graph),
        then explicit edges, then checks the ownership forest.

        Raises:
            GraphConsistencyError: On an ownership cycle or a reference to
                a node that does not exist.
        """
        g: _Graph = nx.MultiDiGraph()
        owners: dict[str, str] = {}
        with self._db.connect() as conn:
            for row in conn.execute(
                select(
                    nodes.c.id,
                    nodes.c.kind,
                    nodes.c.owner_id,
                    nodes.c.is_trashed,
                    nodes.c.trash_at,
                )
            ):
                g.add_node(
                    row.id,
                    kind=row.kind,
                    owner_id=row.owner_id,
                    is_trashed=bool(row.is_trashed),
                    trash_at=parse_timestamp(row.trash_at),
                )
                if row.owner_id is not None:
                    owners[row.id] = row.owner_id

            for row in conn.execute(select(permission_edges)):
                if row.subject_id not in g or row.target_id not in g:
                    msg = f"Permission edge {row.id} references a missing node"
                    raise GraphConsistencyError(msg, edge_id=row.id)
                g.add_edge(
                    row.subject_id,
                    row.target_id,
                    key=row.id,
                    level=Level.parse(row.level),
                    is_trashed=bool(row.is_trashed),
                    expires_at=parse_timestamp(row.expires_at),
                )

        children = _ownership_children(g, owners)
        logger.debug(
            "Built permission graph: %d nodes, %d explicit edges",
            g.number_of_nodes(),
            g.number_of_edges(),
        )
        return GraphSnapshot(graph=g, children=children, version=version)


def _ownership_children(g: _Graph, owners: dict[str, str]) -> dict[str, tuple[str, ...]]:
    """Invert child -> owner into owner -> children, checking the forest."""
    forest = nx.DiGraph()
    for child, owner in owners.items():
        if owner not in g:
            msg = f"Node {child} is owned by missing node {owner}"
            raise GraphConsistencyError(msg, node_id=child, owner_id=owner)
        forest.add_edge(owner, child)

    if not nx.is_directed_acyclic_graph(forest):
        cycle = [u for u, _ in nx.find_cycle(forest)]
        msg = f"Ownership cycle: {' -> '.join(cycle)}"
        raise GraphConsistencyError(msg, cycle=cycle)

    children: dict[str, list[str]] = {}
    for child, owner in owners.items():
        children.setdefault(owner, []).append(child)
    return {owner: tuple(sorted(kids)) for owner, kids in children.items()}
