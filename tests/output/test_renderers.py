"""Tests for operation-specific Rich renderers."""

from grantgraph.output.renderers import render_quiet, render_result
from grantgraph.services.result import ServiceError, ServiceResult

COLL = "col_0000000000000a1"
USER = "usr_0000000000000b2"
EDGE = "lnk_0000000000000c3"

# ── Helpers ───────────────────────────────────────────────────────────


def _ok(op: str, **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str, code: str, message: str, **detail: object) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=dict(detail)),
    )


def _edge(level: str = "read") -> dict[str, object]:
    return {
        "id": EDGE,
        "subject_id": USER,
        "target_id": COLL,
        "level": level,
        "link_name": f"can_{level}",
        "is_trashed": False,
        "expires_at": None,
        "created": "2030-01-01T00:00:00+00:00",
    }


# ── Errors ────────────────────────────────────────────────────────────


class TestErrorRenderer:
    def test_basic_error(self) -> None:
        output = render_result(_err("create_grant", "FORBIDDEN", "cannot grant", status=403))
        assert "ERROR" in output
        assert "create_grant" in output
        assert "FORBIDDEN" in output
        assert "cannot grant" in output
        assert "status" not in output

    def test_verbose_shows_detail(self) -> None:
        result = _err("create_grant", "FORBIDDEN", "cannot grant", status=403, required="manage")
        output = render_result(result, verbose=True)
        assert "detail" in output
        assert "required: manage" in output

    def test_no_error_object(self) -> None:
        assert "Unknown error" in render_result(ServiceResult(ok=False, op="test"))


# ── Nodes ─────────────────────────────────────────────────────────────


class TestNodeRenderers:
    def test_single_node(self) -> None:
        result = _ok(
            "show_node",
            id=COLL,
            kind="collection",
            name="scans",
            owner_id=USER,
            is_admin=False,
            is_trashed=False,
            access="manage",
        )
        output = render_result(result)
        assert "OK" in output
        assert COLL in output
        assert "scans" in output
        assert "access: manage" in output
        assert "trashed" not in output

    def test_node_table(self) -> None:
        items = [
            {"id": COLL, "kind": "collection", "name": "scans", "owner_id": USER},
            {"id": USER, "kind": "user", "name": "alice", "owner_id": None},
        ]
        output = render_result(_ok("list_readable", level="read", count=2, items=items))
        assert COLL in output
        assert "alice" in output
        assert "2 nodes with read access" in output

    def test_destroy(self) -> None:
        output = render_result(_ok("destroy", id=COLL, edges_removed=3))
        assert "edges_removed: 3" in output


# ── Grants ────────────────────────────────────────────────────────────


class TestGrantRenderers:
    def test_single_edge(self) -> None:
        output = render_result(ServiceResult(ok=True, op="create_grant", data=_edge("write")))
        assert EDGE in output
        assert "level: write" in output
        assert "expires_at" not in output

    def test_edge_table(self) -> None:
        data = {"target_id": COLL, "count": 1, "items": [_edge("manage")]}
        output = render_result(ServiceResult(ok=True, op="list_links", data=data))
        assert EDGE in output
        assert "manage" in output
        assert "1 links" in output


# ── Access ────────────────────────────────────────────────────────────


class TestAccessRenderers:
    def test_allow(self) -> None:
        result = _ok("authorize", actor_id=USER, target_id=COLL, level="write", allowed=True)
        output = render_result(result)
        assert output.startswith("ALLOW")
        assert USER in output and COLL in output

    def test_deny(self) -> None:
        result = _ok("authorize", actor_id=USER, target_id=COLL, level="write", allowed=False)
        assert render_result(result).startswith("DENY")

    def test_effective_none(self) -> None:
        result = _ok("effective_level", actor_id=USER, target_id=COLL, level=None)
        assert "level: none" in render_result(result)


# ── Check ─────────────────────────────────────────────────────────────


class TestCheckRenderer:
    def test_healthy(self) -> None:
        result = _ok("check", issues=[], count=0, error_count=0, warning_count=0, healthy=True)
        assert "no integrity issues" in render_result(result)

    def test_issues_table(self) -> None:
        issues = [
            {
                "category": "edges",
                "severity": "warning",
                "node_id": None,
                "edge_id": EDGE,
                "message": "Edge has expired",
            }
        ]
        result = _ok("check", issues=issues, count=1, error_count=0, warning_count=1, healthy=True)
        output = render_result(result)
        assert EDGE in output
        assert "Edge has expired" in output
        assert "0 errors, 1 warnings" in output


# ── Verbose meta and fallback ─────────────────────────────────────────


class TestMetaAndGeneric:
    def test_verbose_renders_telemetry_tree(self) -> None:
        result = ServiceResult(
            ok=True,
            op="list_links",
            data={"count": 0, "items": []},
            meta={
                "telemetry": {
                    "name": "GrantService.list_links",
                    "duration_ms": 1.5,
                    "children": [
                        {"name": "filter_links", "duration_ms": 0.7, "annotations": {"visible": 0}}
                    ],
                }
            },
        )
        output = render_result(result, verbose=True)
        assert "GrantService.list_links" in output
        assert "filter_links" in output
        assert "visible=0" in output

    def test_unknown_op_generic(self) -> None:
        output = render_result(_ok("mystery", answer=42, nested={"a": 1}))
        assert "mystery" in output
        assert "answer: 42" in output
        assert '{"a":1}' in output


# ── Quiet mode ────────────────────────────────────────────────────────


class TestQuiet:
    def test_ids_for_lists(self) -> None:
        data = {"count": 1, "items": [_edge()]}
        assert render_quiet(ServiceResult(ok=True, op="list_grants", data=data)) == EDGE

    def test_allow_deny(self) -> None:
        assert render_quiet(_ok("authorize", allowed=True)) == "allow"
        assert render_quiet(_ok("authorize", allowed=False)) == "deny"

    def test_single_id(self) -> None:
        assert render_quiet(_ok("create_node", id=COLL)) == COLL

    def test_error(self) -> None:
        assert render_quiet(_err("read_grant", "NOT_FOUND", "gone")) == "ERROR: read_grant: gone"

    def test_empty_list(self) -> None:
        assert render_quiet(_ok("list_links", count=0, items=[])) == ""
