"""SQLite database engine and schema via SQLAlchemy Core."""

from grantgraph.infrastructure.database.engine import create_db_engine, init_database
from grantgraph.infrastructure.database.schema import metadata, nodes, permission_edges

__all__ = [
    "create_db_engine",
    "init_database",
    "metadata",
    "nodes",
    "permission_edges",
]
