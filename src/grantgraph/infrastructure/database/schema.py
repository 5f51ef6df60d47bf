"""SQLAlchemy Core table definitions for the grantgraph database.

``nodes`` carries ownership and trash state for users,
groups, and resources; ``permission_edges`` carries explicit grants;
``graph_version`` is a write counter for permission-graph caches.
Implicit ownership edges are never stored; they are derived from
``nodes.owner_id`` when the permission graph is built.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)

metadata = MetaData()

nodes = Table(
    "nodes",
    metadata,
    Column("id", Text, primary_key=True),
    Column("kind", Text, nullable=False),
    Column("name", Text, nullable=False, default="", server_default=""),
    Column("owner_id", Text, ForeignKey("nodes.id")),  # NULL only for roots
    Column("is_admin", Integer, default=0, server_default="0"),
    Column("is_trashed", Integer, default=0, server_default="0"),
    Column("trash_at", Text),  # ISO 8601, UTC
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
)

permission_edges = Table(
    "permission_edges",
    metadata,
    Column("id", Text, primary_key=True),
    Column("subject_id", Text, ForeignKey("nodes.id"), nullable=False),
    Column("target_id", Text, ForeignKey("nodes.id"), nullable=False),
    Column("level", Text, nullable=False),  # read | write | manage
    Column("is_trashed", Integer, default=0, server_default="0"),
    Column("expires_at", Text),  # ISO 8601, UTC
    Column("created", Text, nullable=False),
)

# Single row, bumped by every committed write so each process can tell
# whether its cached permission graph is stale.
graph_version = Table(
    "graph_version",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("version", Integer, nullable=False, default=0, server_default="0"),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_nodes_kind", nodes.c.kind)
Index("ix_nodes_owner", nodes.c.owner_id)
Index("ix_edges_subject", permission_edges.c.subject_id)
Index("ix_edges_target", permission_edges.c.target_id)
