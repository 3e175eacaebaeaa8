from __future__ import annotations

import logging

import pytest

from igarecon.domain.model import RecordStore
from igarecon.domain.reconciliation import (
    EdgeKind,
    EdgeMatch,
    SyncPair,
    account_view,
    entitlement_view,
    pair_accounts,
    pair_entitlements,
)
from tests.helpers.records import make_account, make_entitlement, make_store

SYNC = SyncPair("AD", "AAD")


def _ad_store() -> RecordStore:
    return make_store(
        accounts=[
            make_account("alice", member_of=["G1", "G2"], counterpart="alice@corp"),
            make_account("bob", counterpart="bob@corp"),
            make_account("svc"),
        ],
        entitlements=[
            make_entitlement("G1", counterpart="H1"),
            make_entitlement("G2"),
        ],
    )


def _aad_store() -> RecordStore:
    return make_store(
        accounts=[
            make_account("alice@corp", member_of=["H1", "H9"]),
            make_account("carol@corp"),
        ],
        entitlements=[make_entitlement("H1"), make_entitlement("H9")],
    )


def test_sync_pair_rejects_identical_systems() -> None:
    with pytest.raises(ValueError, match="two different target systems"):
        SyncPair("AD", "AD")


def test_accounts_are_paired_by_counterpart_id() -> None:
    pairing = pair_accounts(
        [account_view("AD", _ad_store()), account_view("AAD", _aad_store())], SYNC
    )

    assert pairing.sync == SYNC
    paired = {entry.record.id: entry for entry in pairing.synced_pairs}
    alice_counterpart = paired["alice"].counterpart
    assert alice_counterpart is not None
    assert alice_counterpart.id == "alice@corp"
    assert paired["bob"].counterpart is None
    assert paired["svc"].counterpart is None
    assert pairing.matched_count == 1
    assert [record.id for record in pairing.unmatched_to] == ["carol@corp"]
    assert pairing.duplicate_claims == []


def test_from_records_plus_unmatched_cover_every_to_record() -> None:
    to_store = _aad_store()
    pairing = pair_accounts([account_view("AD", _ad_store()), account_view("AAD", to_store)], SYNC)

    matched = {entry.counterpart.id for entry in pairing.synced_pairs if entry.counterpart}
    unmatched = {record.id for record in pairing.unmatched_to}

    assert matched.isdisjoint(unmatched)
    assert matched | unmatched == set(to_store.accounts)


def test_direct_edges_are_flagged_on_both_sides() -> None:
    pairing = pair_accounts(
        [account_view("AD", _ad_store()), account_view("AAD", _aad_store())], SYNC
    )
    alice = next(entry for entry in pairing.synced_pairs if entry.record.id == "alice")

    assert alice.edges_for(EdgeKind.DIRECT) == (EdgeMatch("G1", "H1"), EdgeMatch("G2"))
    assert alice.counterpart_sources[EdgeKind.DIRECT] == {"H1": True, "H9": False}
    assert alice.extraneous_edges(EdgeKind.DIRECT) == ("H9",)
    assert alice.edges_for(EdgeKind.INDIRECT) == ()


def test_unmatched_record_has_unflagged_edges() -> None:
    pairing = pair_accounts(
        [account_view("AD", _ad_store()), account_view("AAD", make_store())], SYNC
    )
    alice = next(entry for entry in pairing.synced_pairs if entry.record.id == "alice")

    assert not alice.is_matched
    assert alice.edges_for(EdgeKind.DIRECT) == (EdgeMatch("G1"), EdgeMatch("G2"))
    assert alice.counterpart_sources == {}
    assert alice.extraneous_edges(EdgeKind.DIRECT) == ()


def test_record_without_sync_key_is_never_matched() -> None:
    from_store = make_store(accounts=[make_account("carol@corp")])
    to_store = make_store(accounts=[make_account("carol@corp")])

    pairing = pair_accounts([account_view("AD", from_store), account_view("AAD", to_store)], SYNC)

    assert pairing.matched_count == 0
    assert [record.id for record in pairing.unmatched_to] == ["carol@corp"]


def test_duplicate_counterpart_id_first_claim_wins(caplog: pytest.LogCaptureFixture) -> None:
    from_store = make_store(
        accounts=[
            make_account("first", counterpart="shared"),
            make_account("second", counterpart="shared"),
        ]
    )
    to_store = make_store(accounts=[make_account("shared")])

    with caplog.at_level(logging.WARNING):
        pairing = pair_accounts(
            [account_view("AD", from_store), account_view("AAD", to_store)], SYNC
        )

    first, second = pairing.synced_pairs
    assert first.is_matched
    assert not second.is_matched
    assert pairing.duplicate_claims == ["second"]
    assert pairing.unmatched_to == []
    assert "already claimed counterpart" in caplog.text


def test_records_bound_to_another_system_are_not_matched() -> None:
    from_store = make_store(
        accounts=[make_account("alice", counterpart="alice@corp", syncs_to="LDAP")]
    )
    to_store = make_store(accounts=[make_account("alice@corp")])

    pairing = pair_accounts([account_view("AD", from_store), account_view("AAD", to_store)], SYNC)

    assert pairing.matched_count == 0
    assert len(pairing.unmatched_to) == 1


def test_no_sync_pair_lists_every_system_unpaired() -> None:
    views = [account_view("AD", _ad_store()), account_view("AAD", _aad_store())]

    pairing = pair_accounts(views, None)

    assert pairing.sync is None
    assert pairing.synced_pairs == []
    assert pairing.unmatched_to == []
    assert set(pairing.pairs) == {"AD", "AAD"}
    assert all(not entry.is_matched for entries in pairing.pairs.values() for entry in entries)


def test_missing_side_skips_reconciliation() -> None:
    pairing = pair_accounts([account_view("AD", _ad_store())], SYNC)

    assert pairing.sync is None
    assert [entry.record.id for entry in pairing.pairs["AD"]] == ["alice", "bob", "svc"]


def test_other_systems_follow_the_from_system() -> None:
    views = [
        account_view("LDAP", make_store(accounts=[make_account("x")])),
        account_view("AD", _ad_store()),
        account_view("AAD", _aad_store()),
    ]

    pairing = pair_accounts(views, SYNC)

    assert list(pairing.pairs) == ["AD", "LDAP"]
    assert not pairing.pairs["LDAP"][0].is_matched


def test_view_restricted_to_some_ids() -> None:
    view = account_view("AD", _ad_store(), ["svc", "ghost", "alice"])

    assert [record.id for record in view.records] == ["svc", "alice"]


def test_split_views_of_one_store_are_merged() -> None:
    to_store = _aad_store()
    views = [
        account_view("AD", _ad_store()),
        account_view("AAD", to_store, ["alice@corp"]),
        account_view("AAD", to_store, ["carol@corp", "alice@corp"]),
    ]

    pairing = pair_accounts(views, SYNC)

    assert pairing.matched_count == 1
    assert [record.id for record in pairing.unmatched_to] == ["carol@corp"]


def test_second_view_of_another_store_is_ignored(caplog: pytest.LogCaptureFixture) -> None:
    other = make_store(accounts=[make_account("dave@corp")])
    views = [
        account_view("AD", _ad_store()),
        account_view("AAD", _aad_store()),
        account_view("AAD", other),
    ]

    with caplog.at_level(logging.WARNING):
        pairing = pair_accounts(views, SYNC)

    assert pairing.matched_count == 1
    assert [record.id for record in pairing.unmatched_to] == ["carol@corp"]
    assert "second view of AAD" in caplog.text


def test_pairing_leaves_stores_untouched() -> None:
    from_store = _ad_store()
    to_store = _aad_store()
    before = {uid: set(acct.direct_member_of) for uid, acct in to_store.accounts.items()}

    pair_accounts([account_view("AD", from_store), account_view("AAD", to_store)], SYNC)

    assert {uid: set(acct.direct_member_of) for uid, acct in to_store.accounts.items()} == before
    assert from_store.accounts["alice"].synchronization_counterpart_id == "alice@corp"


def test_entitlement_member_edges_are_compared() -> None:
    from_store = make_store(
        accounts=[
            make_account("alice", counterpart="alice@corp"),
            make_account("bob"),
        ],
        entitlements=[
            make_entitlement(
                "G1", members=["CN=alice,OU=Users,DC=corp", "bob", "G2"], counterpart="H1"
            ),
            make_entitlement("G2", counterpart="H2"),
        ],
    )
    to_store = make_store(
        accounts=[make_account("alice@corp"), make_account("mallory@corp")],
        entitlements=[
            make_entitlement("H1", members=["alice@corp", "mallory@corp", "H2", "H3"]),
            make_entitlement("H2"),
            make_entitlement("H3"),
        ],
    )

    pairing = pair_entitlements(
        [entitlement_view("AD", from_store), entitlement_view("AAD", to_store)], SYNC
    )

    g1 = next(entry for entry in pairing.synced_pairs if entry.record.id == "G1")
    assert g1.edges_for(EdgeKind.MEMBER_ACCOUNT) == (
        EdgeMatch("alice", "alice@corp"),
        EdgeMatch("bob"),
    )
    assert g1.edges_for(EdgeKind.MEMBER_ENTITLEMENT) == (EdgeMatch("G2", "H2"),)
    assert g1.extraneous_edges(EdgeKind.MEMBER_ACCOUNT) == ("mallory@corp",)
    assert g1.extraneous_edges(EdgeKind.MEMBER_ENTITLEMENT) == ("H3",)
    assert pairing.matched_count == 2
    assert [record.id for record in pairing.unmatched_to] == ["H3"]
