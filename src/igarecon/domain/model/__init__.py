"""Public domain model surface."""

from __future__ import annotations

from igarecon.domain.model.identity import Identity, MatchesBySystem
from igarecon.domain.model.records import Account, Entitlement, HistoryRecord
from igarecon.domain.model.store import RecordStore, member_key
from igarecon.domain.model.target_system import HistoryFeed, TargetSystem, TargetSystemConfig

__all__ = [  # noqa: RUF022
    # records
    "Account",
    "Entitlement",
    "HistoryFeed",
    "HistoryRecord",
    # identities
    "Identity",
    "MatchesBySystem",
    # stores
    "RecordStore",
    "member_key",
    "TargetSystem",
    "TargetSystemConfig",
]
