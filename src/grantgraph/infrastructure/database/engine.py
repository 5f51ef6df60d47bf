"""Database engine setup for SQLite with WAL mode.

SQLite is the persistence layer: WAL mode so readers never block on a
writer and always observe either the pre- or post-commit row, foreign
keys so edges cannot reference missing nodes.

SQLAlchemy Core (not ORM) is used; the store hands out immutable
pydantic records, so identity maps and sessions buy nothing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, insert, select
from sqlalchemy.engine import Engine

from grantgraph.domain.ids import SYSTEM_ROOT_ID, NodeKind
from grantgraph.domain.timestamps import now_iso
from grantgraph.infrastructure.database.schema import graph_version, metadata, nodes


def create_db_engine(db_path: Path, *, echo: bool = False) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=echo)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(db_path: Path, *, echo: bool = False) -> Engine:
    """Initialize the grantgraph database at *db_path*.

    Creates the parent directory, all tables from :data:`schema.metadata`,
    seeds the system root user (an admin with no owner) and the graph
    version counter.

    Idempotent, safe to call on an existing database.

    Returns the engine ready for use.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path, echo=echo)

    metadata.create_all(engine)
    _seed_root(engine)
    return engine


def _seed_root(engine: Engine) -> None:
    """Insert the system root user and the graph version row if missing."""
    with engine.begin() as conn:
        row = conn.execute(select(nodes.c.id).where(nodes.c.id == SYSTEM_ROOT_ID)).first()
        if row is None:
            now = now_iso()
            conn.execute(
                insert(nodes).values(
                    id=SYSTEM_ROOT_ID,
                    kind=NodeKind.USER.value,
                    name="system",
                    owner_id=None,
                    is_admin=1,
                    created=now,
                    modified=now,
                )
            )
        if conn.execute(select(graph_version.c.id)).first() is None:
            conn.execute(insert(graph_version).values(id=1, version=0))
