"""Read-only projections over loaded target systems.

Every query is a single scan returning a fresh snapshot; nothing is cached.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from datetime import date

    from igarecon.domain.model import Account, Entitlement, Identity, TargetSystem

NO_OU = "No OU"


@dataclass(slots=True, kw_only=True)
class CategoryTotals:
    system_id: str
    label: str
    totals: dict[str, int] = field(default_factory=dict["str", "int"])

    @property
    def grand_total(self) -> int:
        return sum(self.totals.values())


@dataclass(slots=True, kw_only=True)
class CategorizedRecords[TRecord: (Account, Entitlement)]:
    system_id: str
    by_category: dict[str, list[TRecord]] = field(
        default_factory=dict["str", "list[TRecord]"]
    )


def category_totals[TRecord: (Account, Entitlement)](
    system_id: str,
    records: Iterable[TRecord],
    classify: Callable[[TRecord], str],
    *,
    label: str,
) -> CategoryTotals:
    counter = Counter(classify(record) for record in records)
    return CategoryTotals(system_id=system_id, label=label, totals=dict(counter))


def categorize[TRecord: (Account, Entitlement)](
    system_id: str,
    records: Iterable[TRecord],
    classify: Callable[[TRecord], str],
) -> CategorizedRecords[TRecord]:
    result: CategorizedRecords[TRecord] = CategorizedRecords(system_id=system_id)
    for record in records:
        result.by_category.setdefault(classify(record), []).append(record)
    for bucket in result.by_category.values():
        bucket.sort(key=lambda rec: rec.display_label.lower())
    return result


def account_type_of(account: Account) -> str:
    return account.account_type


def entitlement_type_of(entitlement: Entitlement) -> str:
    return entitlement.entitlement_type


def ou_of(entitlement: Entitlement) -> str:
    return entitlement.ou or NO_OU


def account_type_totals(target_system: TargetSystem) -> CategoryTotals:
    return category_totals(
        target_system.unique_id,
        target_system.accounts.values(),
        account_type_of,
        label="Account type",
    )


def entitlement_type_totals(target_system: TargetSystem) -> CategoryTotals:
    return category_totals(
        target_system.unique_id,
        target_system.entitlements.values(),
        entitlement_type_of,
        label="Entitlement type",
    )


def entitlement_count_per_ou(target_system: TargetSystem) -> CategoryTotals:
    return category_totals(
        target_system.unique_id,
        target_system.entitlements.values(),
        ou_of,
        label="Count of entitlements in OU",
    )


def orphan_accounts(target_system: TargetSystem) -> list[Account]:
    """Enabled accounts with no identity owner."""

    return _sorted(acct for acct in target_system.accounts.values() if acct.is_orphan())


def persistent_leaver_accounts(
    target_system: TargetSystem,
    identities: Mapping[str, Identity],
    *,
    today: date,
) -> list[Account]:
    """Enabled accounts whose every owner is an inactive identity terminated before ``today``."""

    return _sorted(
        acct
        for acct in target_system.accounts.values()
        if acct.is_persistent_leaver(identities, today=today)
    )


def _sorted(accounts: Iterable[Account]) -> list[Account]:
    return sorted(accounts, key=lambda acct: acct.display_label.lower())


__all__ = [
    "NO_OU",
    "CategorizedRecords",
    "CategoryTotals",
    "account_type_of",
    "account_type_totals",
    "categorize",
    "category_totals",
    "entitlement_count_per_ou",
    "entitlement_type_of",
    "entitlement_type_totals",
    "orphan_accounts",
    "ou_of",
    "persistent_leaver_accounts",
]
