"""Tests for FollowSynchronizer and FollowService."""

from __future__ import annotations

import pytest

from tradelink.domain.accounts import AccountRef
from tradelink.domain.errors import SyncFailure
from tradelink.domain.lifecycle import EdgeSnapshot, EdgeStatus
from tradelink.infrastructure.network import Network
from tradelink.services.follows import FollowService, FollowSynchronizer
from tests.conftest import add_account, add_person, connect

NOW = "2025-01-01T00:00:00+00:00"


@pytest.fixture
def svc(network: Network) -> FollowService:
    return FollowService(network)


@pytest.fixture
def pair(network: Network) -> tuple[AccountRef, AccountRef]:
    return add_person(network, "ann"), add_person(network, "bob")


class TestFollowSynchronizer:
    def _accepted_edge(self, network: Network, a: AccountRef, b: AccountRef) -> EdgeSnapshot:
        with network.transaction() as txn:
            return txn.store.insert_connection(a, b, EdgeStatus.ACCEPTED, NOW)

    def test_creates_both_directions(self, network: Network, pair) -> None:
        ann, bob = pair
        edge = self._accepted_edge(network, ann, bob)
        with network.transaction() as txn:
            counts = FollowSynchronizer().ensure_mutual_follow(txn.store, edge, NOW)
        assert counts == {"created": 2, "upgraded": 0}

    def test_idempotent(self, network: Network, pair) -> None:
        ann, bob = pair
        edge = self._accepted_edge(network, ann, bob)
        sync = FollowSynchronizer()
        with network.transaction() as txn:
            sync.ensure_mutual_follow(txn.store, edge, NOW)
        with network.transaction() as txn:
            counts = sync.ensure_mutual_follow(txn.store, edge, NOW)
            assert counts == {"created": 0, "upgraded": 0}
            assert len(txn.store.follows_of(ann, role="follower")) == 1

    def test_upgrades_pending_never_downgrades(self, network: Network, pair) -> None:
        ann, bob = pair
        with network.transaction() as txn:
            txn.store.insert_follow(ann, bob, EdgeStatus.PENDING, NOW)
            txn.store.insert_follow(bob, ann, EdgeStatus.ACCEPTED, NOW)
        edge = self._accepted_edge(network, ann, bob)
        with network.transaction() as txn:
            counts = FollowSynchronizer().ensure_mutual_follow(txn.store, edge, NOW)
            assert counts == {"created": 0, "upgraded": 1}
            assert txn.store.find_follow(ann, bob).status is EdgeStatus.ACCEPTED
            assert txn.store.find_follow(bob, ann).status is EdgeStatus.ACCEPTED

    def test_refuses_non_accepted_edge(self, network: Network, pair) -> None:
        ann, bob = pair
        with network.transaction() as txn:
            edge = txn.store.insert_connection(ann, bob, EdgeStatus.PENDING, NOW)
            with pytest.raises(SyncFailure):
                FollowSynchronizer().ensure_mutual_follow(txn.store, edge, NOW)


class TestFollowService:
    def test_follow_open_account(self, svc: FollowService, pair) -> None:
        ann, bob = pair
        result = svc.follow(ann, bob)
        assert result.ok
        assert result.data["follow"]["status"] == "accepted"

    def test_follow_approval_account_is_pending(
        self, svc: FollowService, network: Network, pair
    ) -> None:
        ann, _ = pair
        acme = add_account(network, "organization:acme", follow_policy="approval")
        result = svc.follow(ann, acme)
        assert result.data["follow"]["status"] == "pending"

        pending = svc.pending_follow_requests(acme)
        assert pending.data["count"] == 1
        follow_id = pending.data["items"][0]["id"]

        accepted = svc.accept_follow(follow_id, acme)
        assert accepted.ok
        assert accepted.data["follow"]["status"] == "accepted"
        assert svc.followers(acme).data["count"] == 1

    def test_only_followed_account_answers(
        self, svc: FollowService, network: Network, pair
    ) -> None:
        ann, bob = pair
        acme = add_account(network, "organization:acme", follow_policy="approval")
        follow_id = svc.follow(ann, acme).data["follow"]["id"]
        result = svc.accept_follow(follow_id, bob)
        assert not result.ok
        assert result.error.code == "PERMISSION_DENIED"

    def test_reject_deletes_request(self, svc: FollowService, network: Network, pair) -> None:
        ann, bob = pair
        acme = add_account(network, "organization:acme", follow_policy="approval")
        follow_id = svc.follow(ann, acme).data["follow"]["id"]
        result = svc.reject_follow(follow_id, acme)
        assert result.ok
        assert result.data["removed"] is True
        # may ask again
        assert svc.follow(ann, acme).ok

    def test_answer_non_pending(self, svc: FollowService, pair) -> None:
        ann, bob = pair
        follow_id = svc.follow(ann, bob).data["follow"]["id"]
        result = svc.accept_follow(follow_id, bob)
        assert not result.ok
        assert result.error.code == "CONFLICT"

    def test_duplicate_follow(self, svc: FollowService, pair) -> None:
        ann, bob = pair
        svc.follow(ann, bob)
        result = svc.follow(ann, bob)
        assert not result.ok
        assert result.error.code == "CONFLICT"

    def test_follow_self(self, svc: FollowService, pair) -> None:
        ann, _ = pair
        assert svc.follow(ann, ann).error.code == "VALIDATION_FAILED"

    def test_follow_blocked(self, svc: FollowService, network: Network, pair) -> None:
        ann, bob = pair
        with network.transaction() as txn:
            txn.store.set_blocklist(bob, [ann])
        result = svc.follow(ann, bob)
        assert not result.ok
        assert result.error.code == "BLOCKED"

    def test_unfollow(self, svc: FollowService, pair) -> None:
        ann, bob = pair
        svc.follow(ann, bob)
        assert svc.unfollow(ann, bob).ok
        missing = svc.unfollow(ann, bob)
        assert not missing.ok
        assert missing.error.code == "NOT_FOUND"

    def test_lists_and_counts_after_connection(
        self, svc: FollowService, network: Network, pair
    ) -> None:
        ann, bob = pair
        connect(network, ann, bob)
        followers = svc.followers(ann)
        assert [i["account"]["ref"] for i in followers.data["items"]] == ["individual:bob"]
        following = svc.following(ann)
        assert [i["account"]["ref"] for i in following.data["items"]] == ["individual:bob"]
        counts = svc.follow_counts(ann)
        assert counts.data == {"account": "individual:ann", "followers": 1, "following": 1}

    def test_lists_hide_blocked_accounts(
        self, svc: FollowService, network: Network, pair
    ) -> None:
        ann, bob = pair
        svc.follow(bob, ann)
        with network.transaction() as txn:
            txn.store.set_blocklist(ann, [bob])
        assert svc.followers(ann).data["count"] == 0

    def test_unknown_account(self, svc: FollowService) -> None:
        result = svc.followers(AccountRef.individual("ghost"))
        assert not result.ok
        assert result.error.code == "NOT_FOUND"


class TestFollowStatus:
    def test_none(self, svc: FollowService, pair) -> None:
        ann, bob = pair
        result = svc.follow_status(ann, bob)
        assert result.ok
        assert result.data == {
            "account": "individual:ann",
            "other": "individual:bob",
            "status": "none",
            "following": False,
            "followed_by": False,
        }

    def test_one_way(self, svc: FollowService, pair) -> None:
        ann, bob = pair
        follow_id = svc.follow(ann, bob).data["follow"]["id"]
        mine = svc.follow_status(ann, bob).data
        assert mine["status"] == "accepted"
        assert mine["following"] is True
        assert mine["followed_by"] is False
        assert mine["follow_id"] == follow_id

        theirs = svc.follow_status(bob, ann).data
        assert theirs["status"] == "none"
        assert theirs["followed_by"] is True

    def test_pending(self, svc: FollowService, network: Network, pair) -> None:
        ann, _ = pair
        acme = add_account(network, "organization:acme", follow_policy="approval")
        svc.follow(ann, acme)
        data = svc.follow_status(ann, acme).data
        assert data["status"] == "pending"
        assert data["following"] is False

    def test_mutual_after_connection(self, svc: FollowService, network: Network, pair) -> None:
        ann, bob = pair
        connect(network, ann, bob)
        data = svc.follow_status(bob, ann).data
        assert (data["following"], data["followed_by"]) == (True, True)

    def test_block_hides_follows(self, svc: FollowService, network: Network, pair) -> None:
        ann, bob = pair
        svc.follow(ann, bob)
        with network.transaction() as txn:
            txn.store.set_blocklist(bob, [ann])
        data = svc.follow_status(ann, bob).data
        assert data["status"] == "blocked"
        assert data["following"] is False
        assert "follow_id" not in data

    def test_self_and_unknown(self, svc: FollowService, pair) -> None:
        ann, _ = pair
        assert svc.follow_status(ann, ann).error.code == "VALIDATION_FAILED"
        missing = svc.follow_status(ann, AccountRef.individual("ghost"))
        assert missing.error.code == "NOT_FOUND"
