"""Shared pytest fixtures for grantgraph tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from datetime import datetime
from pathlib import Path

import pytest
from click.testing import CliRunner

from grantgraph.config.settings import GrantSettings
from grantgraph.domain.actors import Actor
from grantgraph.domain.ids import SYSTEM_ROOT_ID, NodeKind
from grantgraph.domain.levels import Level
from grantgraph.infrastructure.store import GraphStore
from grantgraph.services.telemetry import _current_span, disable_telemetry


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    """``-v`` enables telemetry through a ContextVar; keep it from leaking."""
    yield
    disable_telemetry()
    _current_span.set(None)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> GrantSettings:
    """Settings rooted at a temp directory with default sections."""
    monkeypatch.delenv("GRANTGRAPH_CONFIG", raising=False)
    return GrantSettings.from_cli(root=tmp_path)


@pytest.fixture
def store(settings: GrantSettings) -> Generator[GraphStore]:
    """Initialized store with only the system root user."""
    s = GraphStore(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run CLI tests from a temp directory so each gets its own database.

    Use via ``@pytest.mark.usefixtures("_isolated_store")``.
    """
    monkeypatch.delenv("GRANTGRAPH_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def admin() -> Actor:
    return Actor.system()


# ---------------------------------------------------------------------------
# Graph builders. These write through the store directly, skipping the
# guard, so tests can lay out any graph in a couple of lines.
# ---------------------------------------------------------------------------


@pytest.fixture
def make_node(store: GraphStore) -> Callable[..., str]:
    """Factory: ``make_node("group", owner_id=...)`` returns the new node id."""

    def _make(
        kind: str = "collection",
        *,
        owner_id: str | None = SYSTEM_ROOT_ID,
        name: str = "",
        is_admin: bool = False,
    ) -> str:
        with store.transaction() as txn:
            node = txn.create_node(
                NodeKind(kind), owner_id=owner_id, name=name, is_admin=is_admin
            )
        return node.id

    return _make


@pytest.fixture
def make_user(make_node: Callable[..., str], store: GraphStore) -> Callable[..., Actor]:
    """Factory: a new (non-admin by default) user, returned as an Actor."""

    def _make(name: str = "", *, is_admin: bool = False) -> Actor:
        node_id = make_node("user", name=name, is_admin=is_admin)
        actor = store.load_actor(node_id)
        assert actor is not None
        return actor

    return _make


@pytest.fixture
def make_edge(store: GraphStore) -> Callable[..., str]:
    """Factory: ``make_edge(subject, target, "write")`` returns the new link id."""

    def _make(
        subject_id: str,
        target_id: str,
        level: str | Level = Level.READ,
        *,
        expires_at: datetime | None = None,
    ) -> str:
        return store.insert_edge(
            subject_id, target_id, Level.parse(level), expires_at=expires_at
        ).id

    return _make
