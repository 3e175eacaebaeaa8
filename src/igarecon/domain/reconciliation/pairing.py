"""Pair records of a synchronization pair and flag membership drift.

Pairing is exact on identifiers: a from-record claims the to-record whose id equals
its ``synchronization_counterpart_id``. A to-record is claimed at most once; the
first from-record (in view order) wins and later claimants are reported as
duplicates. Membership edges are compared the same way, one edge kind at a time.
"""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from .contracts import (
    ACCOUNT_EDGE_KINDS,
    ENTITLEMENT_EDGE_KINDS,
    EdgeKind,
    EdgeMatch,
    PairedRecord,
    Pairing,
    RecordView,
    SyncPair,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from igarecon.domain.model import Account, Entitlement, RecordStore

log = getLogger(__name__)


class _EdgeSource[TRecord: (Account, Entitlement)](Protocol):
    """Membership edges of one record plus the sync key of each edge target."""

    kinds: tuple[EdgeKind, ...]

    def edges(self, record: TRecord, store: RecordStore) -> dict[EdgeKind, set[str]]: ...

    def edge_key(self, kind: EdgeKind, edge_id: str, store: RecordStore) -> str | None: ...


class _AccountEdges:
    kinds = ACCOUNT_EDGE_KINDS

    def edges(self, record: Account, store: RecordStore) -> dict[EdgeKind, set[str]]:
        del store
        return {
            EdgeKind.DIRECT: set(record.direct_member_of),
            EdgeKind.INDIRECT: set(record.member_of_indirect),
        }

    def edge_key(self, kind: EdgeKind, edge_id: str, store: RecordStore) -> str | None:
        del kind
        entitlement = store.entitlement(edge_id)
        return entitlement.synchronization_counterpart_id if entitlement else None


class _EntitlementEdges:
    kinds = ENTITLEMENT_EDGE_KINDS

    def edges(self, record: Entitlement, store: RecordStore) -> dict[EdgeKind, set[str]]:
        return {
            EdgeKind.MEMBER_ACCOUNT: store.member_account_ids(record),
            EdgeKind.MEMBER_ENTITLEMENT: store.member_entitlement_ids(record),
        }

    def edge_key(self, kind: EdgeKind, edge_id: str, store: RecordStore) -> str | None:
        if kind is EdgeKind.MEMBER_ACCOUNT:
            account = store.account(edge_id)
            return account.synchronization_counterpart_id if account else None
        entitlement = store.entitlement(edge_id)
        return entitlement.synchronization_counterpart_id if entitlement else None


def pair_accounts(
    views: Iterable[RecordView[Account]], sync: SyncPair | None
) -> Pairing[Account]:
    """Pair accounts of ``sync.from_system`` with those of ``sync.to_system``."""

    return _pair(views, sync, _AccountEdges())


def pair_entitlements(
    views: Iterable[RecordView[Entitlement]], sync: SyncPair | None
) -> Pairing[Entitlement]:
    """Pair entitlements, comparing member-account and member-entitlement edges."""

    return _pair(views, sync, _EntitlementEdges())


def _pair[TRecord: (Account, Entitlement)](
    views: Iterable[RecordView[TRecord]],
    sync: SyncPair | None,
    edge_source: _EdgeSource[TRecord],
) -> Pairing[TRecord]:
    views_by_system = _merge_views(views)
    active = _active_pair(views_by_system, sync)
    pairing: Pairing[TRecord] = Pairing(sync=active)

    if active is not None:
        from_view = views_by_system.pop(active.from_system)
        to_view = views_by_system.pop(active.to_system)
        _pair_views(pairing, from_view, to_view, edge_source)

    for system_id, view in views_by_system.items():
        pairing.pairs[system_id] = [
            PairedRecord(record=record, edges=_unpaired_edges(record, view.store, edge_source))
            for record in view.records
        ]
    return pairing


def _merge_views[TRecord: (Account, Entitlement)](
    views: Iterable[RecordView[TRecord]],
) -> dict[str, RecordView[TRecord]]:
    """One view per system; views of the same store are merged, keeping first order."""

    views_by_system: dict[str, RecordView[TRecord]] = {}
    for view in views:
        seen = views_by_system.get(view.system_id)
        if seen is None:
            views_by_system[view.system_id] = view
        elif seen.store is view.store:
            known = {record.id for record in seen.records}
            extra = tuple(record for record in view.records if record.id not in known)
            views_by_system[view.system_id] = replace(seen, records=seen.records + extra)
        else:
            log.warning(
                "Ignoring a second view of %s backed by a different store (%s records)",
                view.system_id,
                len(view.records),
            )
    return views_by_system


def _active_pair[TRecord: (Account, Entitlement)](
    views_by_system: Mapping[str, RecordView[TRecord]], sync: SyncPair | None
) -> SyncPair | None:
    if sync is None:
        return None
    if sync.from_system not in views_by_system or sync.to_system not in views_by_system:
        log.debug(
            "Skipping reconciliation: pair %s -> %s not fully present",
            sync.from_system,
            sync.to_system,
        )
        return None
    return sync


def _pair_views[TRecord: (Account, Entitlement)](
    pairing: Pairing[TRecord],
    from_view: RecordView[TRecord],
    to_view: RecordView[TRecord],
    edge_source: _EdgeSource[TRecord],
) -> None:
    unclaimed: dict[str, TRecord] = {record.id: record for record in to_view.records}
    claimed: set[str] = set()
    paired: list[PairedRecord[TRecord]] = []

    for record in from_view.records:
        counterpart = _claim(record, to_view.system_id, unclaimed, claimed, pairing)
        paired.append(
            _compare_edges(record, counterpart, from_view.store, to_view.store, edge_source)
        )

    pairing.pairs[from_view.system_id] = paired
    pairing.unmatched_to = list(unclaimed.values())

    if pairing.duplicate_claims:
        log.warning(
            "%s records in %s share an already claimed counterpart id in %s",
            len(pairing.duplicate_claims),
            from_view.system_id,
            to_view.system_id,
        )


def _claim[TRecord: (Account, Entitlement)](
    record: TRecord,
    to_system: str,
    unclaimed: dict[str, TRecord],
    claimed: set[str],
    pairing: Pairing[TRecord],
) -> TRecord | None:
    key = record.synchronization_counterpart_id
    if key is None:
        return None
    if record.syncs_to_system is not None and record.syncs_to_system != to_system:
        return None
    if key in claimed:
        log.debug("Counterpart %s already claimed, %s left unpaired", key, record.id)
        pairing.duplicate_claims.append(record.id)
        return None
    counterpart = unclaimed.pop(key, None)
    if counterpart is not None:
        claimed.add(key)
    return counterpart


def _compare_edges[TRecord: (Account, Entitlement)](
    record: TRecord,
    counterpart: TRecord | None,
    from_store: RecordStore,
    to_store: RecordStore,
    edge_source: _EdgeSource[TRecord],
) -> PairedRecord[TRecord]:
    if counterpart is None:
        return PairedRecord(record=record, edges=_unpaired_edges(record, from_store, edge_source))

    from_edges = edge_source.edges(record, from_store)
    to_edges = edge_source.edges(counterpart, to_store)
    edges: dict[EdgeKind, tuple[EdgeMatch, ...]] = {}
    sources: dict[EdgeKind, dict[str, bool]] = {}

    for kind in edge_source.kinds:
        kind_sources = dict.fromkeys(sorted(to_edges.get(kind, ())), False)
        matches: list[EdgeMatch] = []
        for edge_id in sorted(from_edges.get(kind, ())):
            key = edge_source.edge_key(kind, edge_id, from_store)
            if key is not None and key in kind_sources:
                kind_sources[key] = True
                matches.append(EdgeMatch(edge_id, key))
            else:
                matches.append(EdgeMatch(edge_id))
        edges[kind] = tuple(matches)
        sources[kind] = kind_sources

    return PairedRecord(
        record=record, counterpart=counterpart, edges=edges, counterpart_sources=sources
    )


def _unpaired_edges[TRecord: (Account, Entitlement)](
    record: TRecord, store: RecordStore, edge_source: _EdgeSource[TRecord]
) -> dict[EdgeKind, tuple[EdgeMatch, ...]]:
    edges = edge_source.edges(record, store)
    return {
        kind: tuple(EdgeMatch(edge_id) for edge_id in sorted(edges.get(kind, ())))
        for kind in edge_source.kinds
    }


__all__ = ["pair_accounts", "pair_entitlements"]
