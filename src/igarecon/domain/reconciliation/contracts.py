"""Value types shared by the reconciliation pairer and its consumers.

Pairing results are ephemeral: they are rebuilt for every report and never
written back into a :class:`~igarecon.domain.model.RecordStore`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from igarecon.domain.model import Account, Entitlement, RecordStore


@dataclass(frozen=True, slots=True)
class SyncPair:
    """The configured (from, to) target-system pair."""

    from_system: str
    to_system: str

    def __post_init__(self) -> None:
        if self.from_system == self.to_system:
            raise ValueError("Synchronization pair must name two different target systems")


class EdgeKind(StrEnum):
    DIRECT = "direct"
    INDIRECT = "indirect"
    MEMBER_ACCOUNT = "member_account"
    MEMBER_ENTITLEMENT = "member_entitlement"


ACCOUNT_EDGE_KINDS = (EdgeKind.DIRECT, EdgeKind.INDIRECT)
ENTITLEMENT_EDGE_KINDS = (EdgeKind.MEMBER_ACCOUNT, EdgeKind.MEMBER_ENTITLEMENT)


@dataclass(frozen=True, slots=True)
class EdgeMatch:
    """One from-side membership edge and the to-side edge it maps onto, if any."""

    edge_id: str
    counterpart_edge_id: str | None = None

    @property
    def matched(self) -> bool:
        return self.counterpart_edge_id is not None


@dataclass(frozen=True, slots=True)
class RecordView[TRecord: (Account, Entitlement)]:
    """Borrowed, read-only view of some records of one target system."""

    system_id: str
    store: RecordStore
    records: tuple[TRecord, ...]


def account_view(
    system_id: str, store: RecordStore, ids: Iterable[str] | None = None
) -> RecordView[Account]:
    records = store.accounts_for(ids) if ids is not None else tuple(store.accounts.values())
    return RecordView(system_id=system_id, store=store, records=records)


def entitlement_view(
    system_id: str, store: RecordStore, ids: Iterable[str] | None = None
) -> RecordView[Entitlement]:
    records = (
        store.entitlements_for(ids) if ids is not None else tuple(store.entitlements.values())
    )
    return RecordView(system_id=system_id, store=store, records=records)


@dataclass(slots=True, kw_only=True)
class PairedRecord[TRecord: (Account, Entitlement)]:
    record: TRecord
    counterpart: TRecord | None = None
    edges: dict[EdgeKind, tuple[EdgeMatch, ...]] = field(
        default_factory=dict["EdgeKind", "tuple[EdgeMatch, ...]"]
    )
    # to-side edge id -> "has a from-side source", only filled for matched pairs
    counterpart_sources: dict[EdgeKind, dict[str, bool]] = field(
        default_factory=dict["EdgeKind", "dict[str, bool]"]
    )

    @property
    def is_matched(self) -> bool:
        return self.counterpart is not None

    def edges_for(self, kind: EdgeKind) -> tuple[EdgeMatch, ...]:
        return self.edges.get(kind, ())

    def extraneous_edges(self, kind: EdgeKind) -> tuple[str, ...]:
        """To-side edges of ``kind`` that no from-side edge accounts for."""

        sources = self.counterpart_sources.get(kind, {})
        return tuple(sorted(edge_id for edge_id, has_source in sources.items() if not has_source))


@dataclass(slots=True, kw_only=True)
class Pairing[TRecord: (Account, Entitlement)]:
    """Result of one reconciliation run.

    ``sync`` is ``None`` when no pair was configured or one of its systems was absent
    from the supplied views; every record is then listed unpaired.
    """

    sync: SyncPair | None = None
    pairs: dict[str, list[PairedRecord[TRecord]]] = field(
        default_factory=dict["str", "list[PairedRecord[TRecord]]"]
    )
    unmatched_to: list[TRecord] = field(default_factory=list["TRecord"])
    duplicate_claims: list[str] = field(default_factory=list["str"])

    @property
    def synced_pairs(self) -> list[PairedRecord[TRecord]]:
        if self.sync is None:
            return []
        return self.pairs.get(self.sync.from_system, [])

    @property
    def matched_count(self) -> int:
        return sum(1 for paired in self.synced_pairs if paired.is_matched)
