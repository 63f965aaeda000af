"""Tests for ConnectionService: the request lifecycle end to end."""

from __future__ import annotations

from typing import Any

import pytest

from tradelink.domain.accounts import AccountRef
from tradelink.domain.lifecycle import EdgeStatus
from tradelink.infrastructure.network import Network
from tradelink.plugins import hookimpl
from tradelink.services.connections import ConnectionService
from tests.conftest import add_account, add_person, connect


@pytest.fixture
def svc(network: Network) -> ConnectionService:
    return ConnectionService(network)


@pytest.fixture
def ann(network: Network) -> AccountRef:
    return add_person(network, "ann")


@pytest.fixture
def bob(network: Network) -> AccountRef:
    return add_person(network, "bob")


class _Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def post_connection_request(self, connection_id: int, requester: str, recipient: str) -> None:
        self.calls.append(("request", {"id": connection_id, "requester": requester}))

    @hookimpl
    def post_connection_accept(self, connection_id: int, requester: str, recipient: str) -> None:
        self.calls.append(("accept", {"id": connection_id, "requester": requester}))

    @hookimpl
    def post_connection_remove(self, connection_id: int | None, account: str, other: str) -> None:
        self.calls.append(("remove", {"id": connection_id, "account": account}))


class TestSendRequest:
    def test_creates_pending_edge(self, svc: ConnectionService, ann, bob) -> None:
        result = svc.send_request(ann, bob)
        assert result.ok
        assert result.data["action"] == "create"
        edge = result.data["connection"]
        assert edge["requester"] == "individual:ann"
        assert edge["recipient"] == "individual:bob"
        assert edge["status"] == "pending"
        assert result.data["effects"] == {}

    def test_self_request(self, svc: ConnectionService, ann) -> None:
        result = svc.send_request(ann, ann)
        assert not result.ok
        assert result.error.code == "VALIDATION_FAILED"

    def test_unknown_recipient(self, svc: ConnectionService, ann) -> None:
        result = svc.send_request(ann, AccountRef.individual("ghost"))
        assert not result.ok
        assert result.error.code == "NOT_FOUND"

    def test_duplicate_same_direction(self, svc: ConnectionService, ann, bob) -> None:
        svc.send_request(ann, bob)
        result = svc.send_request(ann, bob)
        assert not result.ok
        assert result.error.code == "CONFLICT"

    def test_crossed_request_auto_accepts(
        self, svc: ConnectionService, network: Network, ann, bob
    ) -> None:
        first = svc.send_request(ann, bob)
        second = svc.send_request(bob, ann)
        assert second.ok
        assert second.data["action"] == "accept"
        edge = second.data["connection"]
        assert edge["id"] == first.data["connection"]["id"]
        assert edge["status"] == "accepted"
        assert edge["requester"] == "individual:ann"

        effects = second.data["effects"]
        assert effects["ensure_mutual_follow"] == {"created": 2, "upgraded": 0}
        assert effects["sync_contacts"] == {"created": 2, "skipped": 0}

        with network.read() as txn:
            assert len(txn.store.connections_of(ann)) == 1
            for follower, following in ((ann, bob), (bob, ann)):
                follow = txn.store.find_follow(follower, following)
                assert follow is not None
                assert follow.status is EdgeStatus.ACCEPTED
            ann_contacts = txn.store.contacts_of("ann")
            bob_contacts = txn.store.contacts_of("bob")
        assert [c["platform_user_id"] for c in ann_contacts] == ["bob"]
        assert [c["platform_user_id"] for c in bob_contacts] == ["ann"]

    def test_already_connected(self, svc: ConnectionService, network: Network, ann, bob) -> None:
        connect(network, ann, bob)
        for a, b in ((ann, bob), (bob, ann)):
            result = svc.send_request(a, b)
            assert not result.ok
            assert result.error.code == "CONFLICT"

    def test_resend_after_rejection(self, svc: ConnectionService, ann, bob) -> None:
        sent = svc.send_request(ann, bob)
        edge_id = sent.data["connection"]["id"]
        assert svc.reject_request(edge_id, bob).ok

        resent = svc.send_request(bob, ann)
        assert resent.ok
        assert resent.data["action"] == "resend"
        edge = resent.data["connection"]
        assert edge["id"] == edge_id
        assert edge["status"] == "pending"
        assert edge["requester"] == "individual:bob"

    def test_original_requester_may_resend(self, svc: ConnectionService, ann, bob) -> None:
        sent = svc.send_request(ann, bob)
        svc.reject_request(sent.data["connection"]["id"], bob)
        again = svc.send_request(ann, bob)
        assert again.ok
        assert again.data["connection"]["status"] == "pending"

    def test_blocked_pair(self, svc: ConnectionService, network: Network, ann, bob) -> None:
        with network.transaction() as txn:
            txn.store.set_blocklist(bob, [ann])
        result = svc.send_request(ann, bob)
        assert not result.ok
        assert result.error.code == "BLOCKED"

    def test_organization_pair_gets_follows_but_no_contacts(
        self, svc: ConnectionService, network: Network, ann
    ) -> None:
        acme = add_account(network, "organization:acme", first_name="Acme", email="hi@acme.io")
        sent = svc.send_request(ann, acme)
        result = svc.accept_request(sent.data["connection"]["id"], acme)
        assert result.ok
        assert result.data["effects"]["ensure_mutual_follow"]["created"] == 2
        assert result.data["effects"]["sync_contacts"] == {"created": 0, "skipped": 0}
        with network.read() as txn:
            assert txn.store.contacts_of("ann") == []
            assert txn.store.contacts_of("acme") == []


class TestAcceptReject:
    def test_accept(self, svc: ConnectionService, network: Network, ann, bob) -> None:
        sent = svc.send_request(ann, bob)
        result = svc.accept_request(sent.data["connection"]["id"], bob)
        assert result.ok
        assert result.data["connection"]["status"] == "accepted"
        with network.read() as txn:
            assert txn.store.find_follow(ann, bob) is not None
            assert txn.store.find_follow(bob, ann) is not None

    def test_requester_cannot_accept(self, svc: ConnectionService, ann, bob) -> None:
        sent = svc.send_request(ann, bob)
        result = svc.accept_request(sent.data["connection"]["id"], ann)
        assert not result.ok
        assert result.error.code == "PERMISSION_DENIED"

    def test_accept_twice(self, svc: ConnectionService, network: Network, ann, bob) -> None:
        edge = connect(network, ann, bob)
        result = svc.accept_request(edge["id"], bob)
        assert not result.ok
        assert result.error.code == "CONFLICT"

    def test_accept_missing(self, svc: ConnectionService, bob) -> None:
        result = svc.accept_request(404, bob)
        assert not result.ok
        assert result.error.code == "NOT_FOUND"

    def test_accept_when_blocked(
        self, svc: ConnectionService, network: Network, ann, bob
    ) -> None:
        sent = svc.send_request(ann, bob)
        with network.transaction() as txn:
            txn.store.set_blocklist(ann, [bob])
        result = svc.accept_request(sent.data["connection"]["id"], bob)
        assert not result.ok
        assert result.error.code == "BLOCKED"

    def test_accepted_cannot_come_from_rejected(self, svc: ConnectionService, ann, bob) -> None:
        sent = svc.send_request(ann, bob)
        edge_id = sent.data["connection"]["id"]
        svc.reject_request(edge_id, bob)
        result = svc.accept_request(edge_id, bob)
        assert not result.ok
        assert result.error.code == "CONFLICT"

    def test_reject_has_no_side_effects(
        self, svc: ConnectionService, network: Network, ann, bob
    ) -> None:
        sent = svc.send_request(ann, bob)
        result = svc.reject_request(sent.data["connection"]["id"], bob)
        assert result.ok
        assert result.data["connection"]["status"] == "rejected"
        with network.read() as txn:
            assert txn.store.find_follow(ann, bob) is None
            assert txn.store.contacts_of("bob") == []

    def test_reject_accepted(self, svc: ConnectionService, network: Network, ann, bob) -> None:
        edge = connect(network, ann, bob)
        result = svc.reject_request(edge["id"], bob)
        assert not result.ok
        assert result.error.code == "CONFLICT"


class TestRemoveAndFollowFlag:
    def test_remove_keeps_derived_records(
        self, svc: ConnectionService, network: Network, ann, bob
    ) -> None:
        edge = connect(network, ann, bob)
        result = svc.remove_connection(edge["id"], ann)
        assert result.ok
        assert result.data["removed"] is True
        with network.read() as txn:
            assert txn.store.find_connection_between(ann, bob) is None
            assert txn.store.find_follow(ann, bob) is not None
            assert len(txn.store.contacts_of("ann")) == 1

    def test_remove_pending(self, svc: ConnectionService, ann, bob) -> None:
        sent = svc.send_request(ann, bob)
        assert svc.remove_connection(sent.data["connection"]["id"], bob).ok

    def test_stranger_cannot_remove(
        self, svc: ConnectionService, network: Network, ann, bob
    ) -> None:
        cal = add_person(network, "cal")
        edge = connect(network, ann, bob)
        result = svc.remove_connection(edge["id"], cal)
        assert not result.ok
        assert result.error.code == "PERMISSION_DENIED"

    def test_unfollow_and_follow_again(
        self, svc: ConnectionService, network: Network, ann, bob
    ) -> None:
        edge = connect(network, ann, bob)
        off = svc.unfollow_connection(edge["id"], ann)
        assert off.ok
        assert off.data["connection"]["is_following"] is False
        on = svc.follow_connection(edge["id"], ann)
        assert on.data["connection"]["is_following"] is True

    def test_unfollow_requires_accepted(self, svc: ConnectionService, ann, bob) -> None:
        sent = svc.send_request(ann, bob)
        result = svc.unfollow_connection(sent.data["connection"]["id"], ann)
        assert not result.ok
        assert result.error.code == "CONFLICT"


class TestReads:
    def test_list_with_direction(
        self, svc: ConnectionService, network: Network, ann, bob
    ) -> None:
        cal = add_person(network, "cal")
        svc.send_request(ann, bob)
        svc.send_request(cal, ann)

        everything = svc.list_connections(ann)
        assert everything.data["count"] == 2
        sent = svc.list_connections(ann, direction="sent")
        assert [i["account"]["ref"] for i in sent.data["items"]] == ["individual:bob"]
        assert sent.data["items"][0]["direction"] == "sent"
        received = svc.list_connections(ann, direction="received")
        assert [i["account"]["ref"] for i in received.data["items"]] == ["individual:cal"]

    def test_list_invalid_direction(self, svc: ConnectionService, ann) -> None:
        result = svc.list_connections(ann, direction="sideways")
        assert not result.ok
        assert result.error.code == "VALIDATION_FAILED"

    def test_list_by_status(self, svc: ConnectionService, network: Network, ann, bob) -> None:
        cal = add_person(network, "cal")
        connect(network, ann, bob)
        svc.send_request(ann, cal)
        accepted = svc.list_connections(ann, status=EdgeStatus.ACCEPTED)
        assert [i["account"]["ref"] for i in accepted.data["items"]] == ["individual:bob"]

    def test_pending_requests(self, svc: ConnectionService, ann, bob) -> None:
        svc.send_request(ann, bob)
        result = svc.pending_requests(bob)
        assert result.op == "pending_requests"
        assert result.data["count"] == 1
        assert svc.pending_requests(ann).data["count"] == 0

    @pytest.mark.parametrize(
        ("viewer", "expected"), [("ann", "pending_sent"), ("bob", "pending_received")]
    )
    def test_status_pending(
        self, svc: ConnectionService, ann, bob, viewer: str, expected: str
    ) -> None:
        svc.send_request(ann, bob)
        me, other = (ann, bob) if viewer == "ann" else (bob, ann)
        result = svc.connection_status(me, other)
        assert result.data["status"] == expected
        assert "connection_id" in result.data

    def test_status_none_and_accepted(
        self, svc: ConnectionService, network: Network, ann, bob
    ) -> None:
        assert svc.connection_status(ann, bob).data["status"] == "none"
        connect(network, ann, bob)
        assert svc.connection_status(bob, ann).data["status"] == "accepted"

    def test_status_blocked_wins(
        self, svc: ConnectionService, network: Network, ann, bob
    ) -> None:
        svc.send_request(ann, bob)
        with network.transaction() as txn:
            txn.store.set_blocklist(bob, [ann])
        result = svc.connection_status(ann, bob)
        assert result.data["status"] == "blocked"
        assert "connection_id" not in result.data

    def test_status_with_self(self, svc: ConnectionService, ann) -> None:
        result = svc.connection_status(ann, ann)
        assert not result.ok
        assert result.error.code == "VALIDATION_FAILED"


class TestHooks:
    def test_request_accept_remove_dispatch(
        self, svc: ConnectionService, network: Network, ann, bob
    ) -> None:
        recorder = _Recorder()
        network.plugins.register_plugin(recorder)
        sent = svc.send_request(ann, bob)
        edge_id = sent.data["connection"]["id"]
        svc.accept_request(edge_id, bob)
        svc.remove_connection(edge_id, bob)
        assert [name for name, _ in recorder.calls] == ["request", "accept", "remove"]
        assert recorder.calls[0][1] == {"id": edge_id, "requester": "individual:ann"}
        assert recorder.calls[2][1]["account"] == "individual:bob"

    def test_failed_operation_dispatches_nothing(
        self, svc: ConnectionService, network: Network, ann
    ) -> None:
        recorder = _Recorder()
        network.plugins.register_plugin(recorder)
        svc.send_request(ann, ann)
        assert recorder.calls == []
