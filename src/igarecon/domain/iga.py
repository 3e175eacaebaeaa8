"""Identities plus every loaded target system, and the queries spanning them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from logging import getLogger
from typing import TYPE_CHECKING

from igarecon.domain import reporting
from igarecon.domain.errors import (
    IdentitySourceError,
    IgaLoadError,
    TargetSystemLoadError,
    TargetSystemNotFoundError,
)
from igarecon.domain.model import Identity, TargetSystem
from igarecon.domain.reconciliation import account_view, entitlement_view

if TYPE_CHECKING:
    from collections.abc import Callable

    from igarecon.domain.model import (
        Account,
        Entitlement,
        HistoryFeed,
        MatchesBySystem,
        TargetSystemConfig,
    )
    from igarecon.domain.ports import IdentitySource
    from igarecon.domain.reconciliation import RecordView, SyncPair

log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class IgaConfig:
    identity_source: IdentitySource
    target_systems: list[TargetSystemConfig] = field(
        default_factory=list["TargetSystemConfig"]
    )
    sync_pair: SyncPair | None = None

    def add_target_system(self, config: TargetSystemConfig) -> None:
        self.target_systems.append(config)


@dataclass(slots=True, kw_only=True)
class IdentityAccess:
    """What one identity holds or owns, grouped by target system."""

    identity: Identity
    personal_accounts: dict[str, tuple[Account, ...]]
    owned_accounts: dict[str, tuple[Account, ...]]
    owned_entitlements: dict[str, tuple[Entitlement, ...]]


class Iga:
    def __init__(self, config: IgaConfig) -> None:
        self.config = config
        self.identities: dict[str, Identity] = {}
        self.target_systems: dict[str, TargetSystem] = {}

    @property
    def sync_pair(self) -> SyncPair | None:
        return self.config.sync_pair

    def load_all(self) -> None:
        self.load_identities()
        self.load_target_systems()

    def load_identities(self) -> None:
        try:
            records = self.config.identity_source.read_identities()
        except IdentitySourceError:
            raise
        except (OSError, ValueError) as exc:
            raise IdentitySourceError(f"Failed to read identities: {exc}") from exc

        identities: dict[str, Identity] = {}
        for record in records:
            identity = Identity.from_record(record)
            identities[identity.id] = identity
        self.identities = identities
        log.info("Loaded %s identities", len(identities))

    def load_target_systems(self) -> None:
        for ts_config in self.config.target_systems:
            target_system = TargetSystem(ts_config)
            try:
                target_system.load()
            except (IgaLoadError, OSError, ValueError) as exc:
                raise TargetSystemLoadError(ts_config.unique_id, exc) from exc

            ts_config.account_matching_rules(self, target_system)
            ts_config.entitlement_ownership_rules(self, target_system)
            self.target_systems[ts_config.unique_id] = target_system

    def target_system(self, system_id: str) -> TargetSystem:
        try:
            return self.target_systems[system_id]
        except KeyError:
            raise TargetSystemNotFoundError(system_id) from None

    def add_account_history(self, system_id: str, records: HistoryFeed) -> None:
        self.target_system(system_id).add_account_history(records)

    def add_entitlement_history(self, system_id: str, records: HistoryFeed) -> None:
        self.target_system(system_id).add_entitlement_history(records)

    def account_views(self) -> list[RecordView[Account]]:
        return [
            account_view(system_id, ts.store) for system_id, ts in self.target_systems.items()
        ]

    def entitlement_views(self) -> list[RecordView[Entitlement]]:
        return [
            entitlement_view(system_id, ts.store)
            for system_id, ts in self.target_systems.items()
        ]

    def identity_access(self, identity_id: str) -> IdentityAccess | None:
        identity = self.identities.get(identity_id)
        if identity is None:
            return None
        return IdentityAccess(
            identity=identity,
            personal_accounts=self._accounts_by_system(identity.personal_accounts),
            owned_accounts=self._accounts_by_system(identity.owned_accounts),
            owned_entitlements=self._entitlements_by_system(identity.owned_entitlements),
        )

    def _accounts_by_system(self, matches: MatchesBySystem) -> dict[str, tuple[Account, ...]]:
        return {
            system_id: ts.store.accounts_for(ids)
            for system_id, ids in matches.items()
            if (ts := self.target_systems.get(system_id)) is not None
        }

    def _entitlements_by_system(
        self, matches: MatchesBySystem
    ) -> dict[str, tuple[Entitlement, ...]]:
        return {
            system_id: ts.store.entitlements_for(ids)
            for system_id, ids in matches.items()
            if (ts := self.target_systems.get(system_id)) is not None
        }

    # Iga-wide report queries

    def orphan_accounts(self) -> dict[str, list[Account]]:
        return self._per_system(reporting.orphan_accounts)

    def persistent_leaver_accounts(self, *, today: date | None = None) -> dict[str, list[Account]]:
        effective_today = today or date.today()
        return self._per_system(
            lambda ts: reporting.persistent_leaver_accounts(
                ts, self.identities, today=effective_today
            )
        )

    def account_type_totals(self) -> list[reporting.CategoryTotals]:
        return [reporting.account_type_totals(ts) for ts in self.target_systems.values()]

    def entitlement_type_totals(self) -> list[reporting.CategoryTotals]:
        return [reporting.entitlement_type_totals(ts) for ts in self.target_systems.values()]

    def entitlement_count_per_ou(self) -> list[reporting.CategoryTotals]:
        return [reporting.entitlement_count_per_ou(ts) for ts in self.target_systems.values()]

    def accounts_per_type(self) -> list[reporting.CategorizedRecords[Account]]:
        return [
            reporting.categorize(system_id, ts.accounts.values(), reporting.account_type_of)
            for system_id, ts in self.target_systems.items()
        ]

    def entitlements_per_type(self) -> list[reporting.CategorizedRecords[Entitlement]]:
        return [
            reporting.categorize(
                system_id, ts.entitlements.values(), reporting.entitlement_type_of
            )
            for system_id, ts in self.target_systems.items()
        ]

    def _per_system[T](self, query: Callable[[TargetSystem], T]) -> dict[str, T]:
        return {system_id: query(ts) for system_id, ts in self.target_systems.items()}
