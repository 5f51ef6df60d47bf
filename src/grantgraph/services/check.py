"""CheckService — permission-graph integrity report.

Reads the raw tables rather than the permission graph, because the
graph refuses to build when the invariants it depends on are broken.
Two severities:

- ``error``: ownership cycles, owners or edge endpoints that point at
  missing nodes. Any of these makes every permission check fail with
  GRAPH_CONSISTENCY until repaired.
- ``warning``: inert data such as expired or trashed edges, self-grants,
  duplicate grants, grants onto hidden nodes.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Any

import networkx as nx
from sqlalchemy import select

from grantgraph.domain.errors import ForbiddenError, GrantGraphError
from grantgraph.domain.timestamps import parse_timestamp
from grantgraph.infrastructure.database.schema import nodes, permission_edges
from grantgraph.services.base import BaseService
from grantgraph.services.contracts import CheckResultData, dump_validated
from grantgraph.services.result import ServiceResult
from grantgraph.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy import Connection

    from grantgraph.domain.actors import Actor

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

CAT_OWNERSHIP = "ownership"
CAT_EDGES = "edges"


class CheckService(BaseService):
    """Handles integrity checking of nodes and permission edges."""

    @traced
    def check(self, actor: Actor) -> ServiceResult:
        """Report integrity issues without modifying anything. Admin only."""
        op = "check"
        try:
            if not actor.is_admin:
                raise ForbiddenError("Only admins can run integrity checks")
        except GrantGraphError as exc:
            return self._failure(op, exc)

        now = self._store.graph.now()
        issues: list[dict[str, Any]] = []
        with self._store.engine.connect() as conn:
            node_rows = {row.id: row for row in conn.execute(select(nodes))}
            with trace_span("ownership"):
                issues.extend(self._check_ownership(node_rows))
            with trace_span("edges"):
                issues.extend(self._check_edges(conn, node_rows, now))

        error_count = sum(1 for issue in issues if issue["severity"] == SEVERITY_ERROR)
        data = {
            "issues": issues,
            "count": len(issues),
            "error_count": error_count,
            "warning_count": len(issues) - error_count,
            "healthy": error_count == 0,
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(CheckResultData, data))

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    @staticmethod
    def _check_ownership(node_rows: dict[str, Any]) -> list[dict[str, Any]]:
        issues: list[dict[str, Any]] = []
        forest = nx.DiGraph()
        for node_id, row in node_rows.items():
            if row.owner_id is None:
                continue
            if row.owner_id not in node_rows:
                issues.append(
                    {
                        "category": CAT_OWNERSHIP,
                        "severity": SEVERITY_ERROR,
                        "node_id": node_id,
                        "message": f"Owner {row.owner_id} does not exist",
                    }
                )
                continue
            forest.add_edge(row.owner_id, node_id)

        for cycle in nx.simple_cycles(forest):
            issues.append(
                {
                    "category": CAT_OWNERSHIP,
                    "severity": SEVERITY_ERROR,
                    "node_id": cycle[0],
                    "message": f"Ownership cycle: {' -> '.join(cycle)}",
                }
            )
        return issues

    # ------------------------------------------------------------------
    # Explicit edges
    # ------------------------------------------------------------------

    @staticmethod
    def _check_edges(
        conn: Connection,
        node_rows: dict[str, Any],
        now: datetime,
    ) -> list[dict[str, Any]]:
        issues: list[dict[str, Any]] = []
        seen: Counter[tuple[str, str, str]] = Counter()

        def issue(severity: str, edge_id: str, message: str) -> None:
            issues.append(
                {
                    "category": CAT_EDGES,
                    "severity": severity,
                    "edge_id": edge_id,
                    "message": message,
                }
            )

        for row in conn.execute(select(permission_edges).order_by(permission_edges.c.created)):
            missing = [n for n in (row.subject_id, row.target_id) if n not in node_rows]
            if missing:
                issue(SEVERITY_ERROR, row.id, f"References missing node(s): {', '.join(missing)}")
                continue

            key = (row.subject_id, row.target_id, row.level)
            seen[key] += 1
            if seen[key] == 2:
                issue(SEVERITY_WARNING, row.id, f"Duplicate {row.level} grant on {row.target_id}")

            if row.subject_id == row.target_id:
                issue(SEVERITY_WARNING, row.id, "Self-grant has no effect")
            if row.is_trashed:
                issue(SEVERITY_WARNING, row.id, "Edge is trashed")
            else:
                expires_at = parse_timestamp(row.expires_at)
                if expires_at is not None and expires_at <= now:
                    issue(SEVERITY_WARNING, row.id, "Edge has expired")

            target = node_rows[row.target_id]
            trash_at = parse_timestamp(target.trash_at)
            if target.is_trashed or (trash_at is not None and trash_at <= now):
                issue(SEVERITY_WARNING, row.id, f"Target {row.target_id} is trashed")
        return issues
