"""Cross-system reconciliation of a configured synchronization pair.

Flow per report:
1) wrap each target system's records in a borrowed :class:`RecordView`
2) pair from-records with to-records on ``synchronization_counterpart_id``
3) compare membership edges of every matched pair, kind by kind
4) keep unclaimed to-records as the unmatched remainder
"""

from __future__ import annotations

from .contracts import (
    ACCOUNT_EDGE_KINDS,
    ENTITLEMENT_EDGE_KINDS,
    EdgeKind,
    EdgeMatch,
    PairedRecord,
    Pairing,
    RecordView,
    SyncPair,
    account_view,
    entitlement_view,
)
from .pairing import pair_accounts, pair_entitlements

__all__ = [
    "ACCOUNT_EDGE_KINDS",
    "ENTITLEMENT_EDGE_KINDS",
    "EdgeKind",
    "EdgeMatch",
    "PairedRecord",
    "Pairing",
    "RecordView",
    "SyncPair",
    "account_view",
    "entitlement_view",
    "pair_accounts",
    "pair_entitlements",
]
