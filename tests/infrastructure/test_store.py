"""Tests for GraphStore — node and permission-edge persistence."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from grantgraph.domain.errors import GraphConsistencyError
from grantgraph.domain.ids import SYSTEM_ROOT_ID, NodeKind, validate_edge_id
from grantgraph.domain.levels import Level
from grantgraph.infrastructure.store import GraphStore


class TestNodes:
    def test_root_seeded(self, store: GraphStore) -> None:
        root = store.get_node(SYSTEM_ROOT_ID)
        assert root is not None
        assert root.kind is NodeKind.USER
        assert root.is_admin
        assert root.owner_id is None

    def test_create_and_get(self, store: GraphStore) -> None:
        with store.transaction() as txn:
            node = txn.create_node(NodeKind.GROUP, owner_id=SYSTEM_ROOT_ID, name="lab")
        assert node.id.startswith("grp_")
        fetched = store.get_node(node.id)
        assert fetched == node
        assert store.node_exists(node.id)
        assert store.get_owner(node.id) == SYSTEM_ROOT_ID

    def test_missing_node(self, store: GraphStore) -> None:
        assert store.get_node("grp_zzzzzzzzzzzzzzz") is None
        assert not store.node_exists("grp_zzzzzzzzzzzzzzz")
        assert store.is_trashed_or_expired("grp_zzzzzzzzzzzzzzz")

    def test_failed_transaction_rolls_back(self, store: GraphStore) -> None:
        with pytest.raises(RuntimeError), store.transaction() as txn:
            node = txn.create_node(NodeKind.GROUP, owner_id=SYSTEM_ROOT_ID)
            raise RuntimeError("boom")
        assert not store.node_exists(node.id)

    def test_list_nodes_by_kind(self, store: GraphStore, make_node: Callable[..., str]) -> None:
        group = make_node("group")
        make_node("collection")
        assert [n.id for n in store.list_nodes(kind=NodeKind.GROUP)] == [group]

    def test_list_nodes_skips_hidden(
        self, store: GraphStore, make_node: Callable[..., str]
    ) -> None:
        coll = make_node("collection")
        with store.transaction() as txn:
            txn.set_trashed(coll, trashed=True)
        assert coll not in [n.id for n in store.list_nodes()]
        assert coll in [n.id for n in store.list_nodes(include_hidden=True)]
        assert store.is_trashed_or_expired(coll)

    def test_scheduled_trash(self, store: GraphStore, make_node: Callable[..., str]) -> None:
        coll = make_node("collection")
        past = datetime.now(UTC) - timedelta(hours=1)
        with store.transaction() as txn:
            txn.set_trashed(coll, trashed=False, trash_at=past)
        assert store.is_trashed_or_expired(coll)


class TestLoadActor:
    def test_root_actor(self, store: GraphStore) -> None:
        actor = store.load_actor(SYSTEM_ROOT_ID)
        assert actor is not None
        assert actor.is_admin

    def test_only_users_act(self, store: GraphStore, make_node: Callable[..., str]) -> None:
        group = make_node("group")
        assert store.load_actor(group) is None
        assert store.load_actor("usr_zzzzzzzzzzzzzzz") is None


class TestOwnership:
    def test_set_owner(self, store: GraphStore, make_node: Callable[..., str]) -> None:
        group = make_node("group")
        coll = make_node("collection")
        store.set_owner(coll, group)
        assert store.get_owner(coll) == group
        assert store.graph.owner_of(coll) == group

    def test_refuses_self_ownership(
        self, store: GraphStore, make_node: Callable[..., str]
    ) -> None:
        group = make_node("group")
        with pytest.raises(GraphConsistencyError, match="cycle"):
            store.set_owner(group, group)

    def test_refuses_cycle(self, store: GraphStore, make_node: Callable[..., str]) -> None:
        parent = make_node("group")
        child = make_node("group", owner_id=parent)
        grandchild = make_node("collection", owner_id=child)
        with pytest.raises(GraphConsistencyError):
            store.set_owner(parent, grandchild)
        assert store.get_owner(parent) == SYSTEM_ROOT_ID


class TestEdges:
    def test_insert_and_get(self, store: GraphStore, make_node: Callable[..., str]) -> None:
        user = make_node("user")
        coll = make_node("collection")
        edge = store.insert_edge(user, coll, Level.WRITE)
        assert validate_edge_id(edge.id)
        assert store.get_edge(edge.id) == edge
        assert edge.level is Level.WRITE

    def test_expiry_round_trips_as_utc(
        self, store: GraphStore, make_node: Callable[..., str]
    ) -> None:
        user = make_node("user")
        coll = make_node("collection")
        expires = datetime(2030, 6, 1, 12, 0)
        edge = store.insert_edge(user, coll, Level.READ, expires_at=expires)
        assert edge.expires_at == expires.replace(tzinfo=UTC)

    def test_list_filters(
        self, store: GraphStore, make_node: Callable[..., str], make_edge: Callable[..., str]
    ) -> None:
        user = make_node("user")
        group = make_node("group")
        coll = make_node("collection")
        read_id = make_edge(user, coll, "read")
        manage_id = make_edge(group, coll, "manage")
        make_edge(user, group, "read")

        assert [e.id for e in store.list_incoming_edges(coll)] == [read_id, manage_id]
        assert len(store.list_outgoing_edges(user)) == 2
        assert [e.id for e in store.list_edges(target_id=coll, level=Level.MANAGE)] == [manage_id]

    def test_delete(self, store: GraphStore, make_node: Callable[..., str]) -> None:
        user = make_node("user")
        coll = make_node("collection")
        edge = store.insert_edge(user, coll, Level.READ)
        assert store.delete_edge(edge.id) is True
        assert store.get_edge(edge.id) is None
        assert store.delete_edge(edge.id) is False

    def test_set_edge_trashed(self, store: GraphStore, make_node: Callable[..., str]) -> None:
        user = make_node("user")
        coll = make_node("collection")
        edge = store.insert_edge(user, coll, Level.READ)
        with store.transaction() as txn:
            assert txn.set_edge_trashed(edge.id, trashed=True) is True
        trashed = store.get_edge(edge.id)
        assert trashed is not None
        assert trashed.is_trashed
        assert not trashed.is_active(datetime.now(UTC))

        with store.transaction() as txn:
            assert txn.set_edge_trashed("lnk_zzzzzzzzzzzzzzz", trashed=True) is False


class TestDestroy:
    def test_removes_edges_and_reowns_children(
        self, store: GraphStore, make_node: Callable[..., str], make_edge: Callable[..., str]
    ) -> None:
        user = make_node("user")
        group = make_node("group")
        coll = make_node("collection", owner_id=group)
        make_edge(user, group, "read")
        make_edge(group, user, "read")

        with store.transaction() as txn:
            removed = txn.destroy_node(group)

        assert removed == 2
        assert not store.node_exists(group)
        assert store.get_owner(coll) == SYSTEM_ROOT_ID
        assert store.list_edges() == []
