"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from igarecon.adapters.ad import ADJsonConnector
from igarecon.adapters.history_csv import HistoryCsvConnector
from igarecon.adapters.identity_roster import IdentityRosterConnector
from igarecon.adapters.json_report import (
    accounts_by_system_payload,
    identity_access_payload,
    pairing_payload,
    totals_payload,
    write_report,
)
from igarecon.domain.iga import Iga, IgaConfig
from igarecon.domain.model import TargetSystemConfig
from igarecon.domain.ownership import (
    assign_entitlement_owners_by_attribute,
    classify_by_attribute,
    compose_rules,
    link_counterparts_by_attribute,
    match_accounts_by_attribute,
)
from igarecon.domain.ports import no_rules
from igarecon.domain.reconciliation import (
    ACCOUNT_EDGE_KINDS,
    ENTITLEMENT_EDGE_KINDS,
    SyncPair,
    pair_accounts,
    pair_entitlements,
)

if TYPE_CHECKING:
    from datetime import date
    from pathlib import Path

    from igarecon.config import (
        HistorySourceSettings,
        IdentitySourceSettings,
        Settings,
        TargetSystemSettings,
    )
    from igarecon.domain.ports import OwnershipRules

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReportResult:
    name: str
    path: Path
    count: int


def build_identity_source(settings: IdentitySourceSettings) -> IdentityRosterConnector:
    return IdentityRosterConnector(
        path=settings.path,
        columns=settings.columns,
        enabled_codes=frozenset(settings.enabled_codes),
        disabled_codes=frozenset(settings.disabled_codes),
        sheet=settings.sheet,
        delimiter=settings.delimiter,
    )


def build_history_source(settings: HistorySourceSettings) -> HistoryCsvConnector:
    return HistoryCsvConnector(
        path=settings.path,
        columns=settings.columns,
        source=settings.source,
        delimiter=settings.delimiter,
    )


def _account_rules(settings: TargetSystemSettings) -> OwnershipRules:
    rules: list[OwnershipRules] = []
    if settings.account_matching is not None:
        matching = settings.account_matching
        rules.append(
            match_accounts_by_attribute(
                matching.attribute, matching.identity_field, personal=matching.personal
            )
        )
    if settings.counterpart is not None:
        rules.append(
            link_counterparts_by_attribute(
                settings.counterpart.to_system, settings.counterpart.attribute
            )
        )
    if settings.classification is not None:
        classification = settings.classification
        rules.append(
            classify_by_attribute(
                classification.account_attribute,
                classification.entitlement_attribute,
                default=classification.default,
            )
        )
    return compose_rules(*rules) if rules else no_rules


def _entitlement_rules(settings: TargetSystemSettings) -> OwnershipRules:
    ownership = settings.entitlement_ownership
    if ownership is None:
        return no_rules
    return assign_entitlement_owners_by_attribute(ownership.attribute, ownership.identity_field)


def build_target_system_config(settings: TargetSystemSettings) -> TargetSystemConfig:
    connector = ADJsonConnector(
        users_path=settings.users_path,
        groups_path=settings.groups_path,
        user_attributes=settings.users,
        group_attributes=settings.groups,
    )
    return TargetSystemConfig(
        unique_id=settings.unique_id,
        connector=connector,
        account_matching_rules=_account_rules(settings),
        entitlement_ownership_rules=_entitlement_rules(settings),
        other_attributes=dict(settings.other_attributes),
    )


def build_iga_config(settings: Settings) -> IgaConfig:
    config = IgaConfig(
        identity_source=build_identity_source(settings.identity_source),
        sync_pair=(
            SyncPair(settings.sync.from_system, settings.sync.to_system)
            if settings.sync is not None
            else None
        ),
    )
    for target_system in settings.target_systems:
        config.add_target_system(build_target_system_config(target_system))
    return config


def load_iga(settings: Settings) -> Iga:
    """Build and fully load the aggregate described by ``settings``."""

    iga = Iga(build_iga_config(settings))
    log.info(
        "Loading IGA: identities=%s, target_systems=%s",
        settings.identity_source.path,
        [ts.unique_id for ts in settings.target_systems],
    )
    iga.load_all()
    load_history(iga, settings)
    return iga


def load_history(iga: Iga, settings: Settings) -> None:
    """Attach every configured history file to the loaded target systems."""

    for target_system in settings.target_systems:
        for source in target_system.account_history:
            events = build_history_source(source).read_history()
            iga.add_account_history(target_system.unique_id, events)
        for source in target_system.entitlement_history:
            events = build_history_source(source).read_history()
            iga.add_entitlement_history(target_system.unique_id, events)


def report_totals(iga: Iga, output_dir: Path) -> ReportResult:
    payload = {
        "account_types": totals_payload(iga.account_type_totals()),
        "entitlement_types": totals_payload(iga.entitlement_type_totals()),
        "entitlements_per_ou": totals_payload(iga.entitlement_count_per_ou()),
    }
    count = sum(len(ts.accounts) + len(ts.entitlements) for ts in iga.target_systems.values())
    return ReportResult("totals", write_report(output_dir, "totals", payload), count)


def report_orphans(iga: Iga, output_dir: Path) -> ReportResult:
    orphans = iga.orphan_accounts()
    path = write_report(output_dir, "orphans", accounts_by_system_payload(orphans))
    return ReportResult("orphans", path, sum(len(accounts) for accounts in orphans.values()))


def report_leavers(iga: Iga, output_dir: Path, *, today: date | None = None) -> ReportResult:
    leavers = iga.persistent_leaver_accounts(today=today)
    path = write_report(output_dir, "leavers", accounts_by_system_payload(leavers))
    return ReportResult("leavers", path, sum(len(accounts) for accounts in leavers.values()))


def report_identity(iga: Iga, output_dir: Path, uid: str) -> ReportResult:
    access = iga.identity_access(uid.strip().upper())
    if access is None:
        raise LookupError(f"Identity not found for UID: {uid}")
    count = sum(len(accounts) for accounts in access.personal_accounts.values())
    name = f"identity_{access.identity.id}"
    path = write_report(output_dir, name, identity_access_payload(access))
    return ReportResult(name, path, count)


def report_drift(iga: Iga, output_dir: Path) -> ReportResult:
    """Pair both systems of the configured sync pair and report membership drift."""

    if iga.sync_pair is None:
        log.warning("No synchronization pair configured; every record is listed unpaired")
    accounts = pair_accounts(iga.account_views(), iga.sync_pair)
    entitlements = pair_entitlements(iga.entitlement_views(), iga.sync_pair)
    payload = {
        "accounts": pairing_payload(accounts, ACCOUNT_EDGE_KINDS),
        "entitlements": pairing_payload(entitlements, ENTITLEMENT_EDGE_KINDS),
    }
    count = accounts.matched_count + entitlements.matched_count
    return ReportResult("drift", write_report(output_dir, "drift", payload), count)
