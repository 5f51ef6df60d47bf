"""Tests for PermissionListing — what each actor may see."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from grantgraph.domain.actors import Actor
from grantgraph.domain.errors import ForbiddenError, NotFoundError
from grantgraph.domain.ids import SYSTEM_ROOT_ID, NodeKind
from grantgraph.domain.levels import Level
from grantgraph.infrastructure.store import GraphStore
from grantgraph.services.listing import PermissionListing
from grantgraph.services.resolver import PermissionResolver


@pytest.fixture
def listing(store: GraphStore) -> PermissionListing:
    return PermissionListing(store, PermissionResolver(store.graph))


class TestDirectPermissions:
    def test_lists_incoming_edges_only(
        self,
        listing: PermissionListing,
        make_user: Callable[..., Actor],
        make_node: Callable[..., str],
        make_edge: Callable[..., str],
    ) -> None:
        alice = make_user("alice")
        bob = make_user("bob")
        group = make_node("group", owner_id=alice.node_id)
        coll = make_node("collection", owner_id=alice.node_id)
        direct = make_edge(bob.node_id, coll, "read")
        via_group = make_edge(group, coll, "write")
        make_edge(bob.node_id, group, "manage")

        edges = listing.list_direct_permissions(alice, coll)
        assert [e.id for e in edges] == [direct, via_group]

    def test_reader_is_forbidden(
        self,
        listing: PermissionListing,
        make_user: Callable[..., Actor],
        make_node: Callable[..., str],
        make_edge: Callable[..., str],
    ) -> None:
        alice = make_user("alice")
        coll = make_node("collection")
        make_edge(alice.node_id, coll, "read")
        with pytest.raises(ForbiddenError):
            listing.list_direct_permissions(alice, coll)

    def test_invisible_target_is_not_found(
        self,
        listing: PermissionListing,
        make_user: Callable[..., Actor],
        make_node: Callable[..., str],
    ) -> None:
        alice = make_user("alice")
        coll = make_node("collection")
        with pytest.raises(NotFoundError):
            listing.list_direct_permissions(alice, coll)

    def test_missing_target_is_not_found_even_for_admin(
        self, listing: PermissionListing, admin: Actor
    ) -> None:
        with pytest.raises(NotFoundError):
            listing.list_direct_permissions(admin, "col_zzzzzzzzzzzzzzz")

    def test_expired_edges_hidden_from_users_only(
        self,
        listing: PermissionListing,
        make_user: Callable[..., Actor],
        make_node: Callable[..., str],
        make_edge: Callable[..., str],
        admin: Actor,
    ) -> None:
        alice = make_user("alice")
        bob = make_user("bob")
        coll = make_node("collection", owner_id=alice.node_id)
        make_edge(bob.node_id, coll, "read", expires_at=datetime.now(UTC) - timedelta(hours=1))
        assert listing.list_direct_permissions(alice, coll) == []
        assert len(listing.list_direct_permissions(admin, coll)) == 1

    def test_trashed_edges_hidden_from_users_only(
        self,
        listing: PermissionListing,
        store: GraphStore,
        make_user: Callable[..., Actor],
        make_node: Callable[..., str],
        make_edge: Callable[..., str],
        admin: Actor,
    ) -> None:
        alice = make_user("alice")
        bob = make_user("bob")
        coll = make_node("collection", owner_id=alice.node_id)
        kept = make_edge(bob.node_id, coll, "read")
        dropped = make_edge(bob.node_id, coll, "write")
        with store.transaction() as txn:
            txn.set_edge_trashed(dropped, trashed=True)
        assert [e.id for e in listing.list_direct_permissions(alice, coll)] == [kept]
        assert {e.id for e in listing.list_direct_permissions(admin, coll)} == {kept, dropped}
        assert [e.id for e in listing.list_visible_edges(alice, target_id=coll)] == [kept]


class TestVisibleEdges:
    def test_non_manager_gets_empty_list(
        self,
        listing: PermissionListing,
        make_user: Callable[..., Actor],
        make_node: Callable[..., str],
        make_edge: Callable[..., str],
    ) -> None:
        alice = make_user("alice")
        coll = make_node("collection")
        make_edge(alice.node_id, coll, "write")
        assert listing.list_visible_edges(alice, target_id=coll) == []

    def test_filters_to_managed_targets(
        self,
        listing: PermissionListing,
        make_user: Callable[..., Actor],
        make_node: Callable[..., str],
        make_edge: Callable[..., str],
    ) -> None:
        alice = make_user("alice")
        bob = make_user("bob")
        mine = make_node("collection", owner_id=alice.node_id)
        theirs = make_node("collection", owner_id=bob.node_id)
        visible = make_edge(bob.node_id, mine, "read")
        make_edge(alice.node_id, theirs, "read")

        assert [e.id for e in listing.list_visible_edges(alice)] == [visible]

    def test_level_and_subject_filters(
        self,
        listing: PermissionListing,
        make_user: Callable[..., Actor],
        make_node: Callable[..., str],
        make_edge: Callable[..., str],
        admin: Actor,
    ) -> None:
        bob = make_user("bob")
        carol = make_user("carol")
        coll = make_node("collection")
        wanted = make_edge(bob.node_id, coll, "write")
        make_edge(bob.node_id, coll, "read")
        make_edge(carol.node_id, coll, "write")

        edges = listing.list_visible_edges(admin, subject_id=bob.node_id, level=Level.WRITE)
        assert [e.id for e in edges] == [wanted]


class TestReadableNodes:
    def test_only_reachable_nodes(
        self,
        listing: PermissionListing,
        make_user: Callable[..., Actor],
        make_node: Callable[..., str],
        make_edge: Callable[..., str],
    ) -> None:
        alice = make_user("alice")
        shared = make_node("collection")
        make_node("collection")
        make_edge(alice.node_id, shared, "read")

        readable = listing.list_readable_nodes(alice, kind=NodeKind.COLLECTION)
        assert [n.id for n in readable] == [shared]

    def test_level_threshold(
        self,
        listing: PermissionListing,
        make_user: Callable[..., Actor],
        make_node: Callable[..., str],
        make_edge: Callable[..., str],
    ) -> None:
        alice = make_user("alice")
        coll = make_node("collection")
        make_edge(alice.node_id, coll, "read")
        assert listing.list_readable_nodes(alice, kind=NodeKind.COLLECTION, level=Level.WRITE) == []

    def test_includes_self(
        self, listing: PermissionListing, make_user: Callable[..., Actor]
    ) -> None:
        alice = make_user("alice")
        users = listing.list_readable_nodes(alice, kind=NodeKind.USER)
        assert [n.id for n in users] == [alice.node_id]

    def test_admin_sees_hidden(
        self,
        listing: PermissionListing,
        store: GraphStore,
        make_node: Callable[..., str],
        admin: Actor,
    ) -> None:
        coll = make_node("collection")
        with store.transaction() as txn:
            txn.set_trashed(coll, trashed=True)
        ids = [n.id for n in listing.list_readable_nodes(admin)]
        assert coll in ids
        assert SYSTEM_ROOT_ID in ids
