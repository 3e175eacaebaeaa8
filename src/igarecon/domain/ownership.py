"""Stock ownership and synchronization-key strategies.

Each factory returns an :data:`~igarecon.domain.ports.OwnershipRules` callable. The
callables only write identity match maps, record owners, category labels and
sync-key fields.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from igarecon.domain.iga import Iga
    from igarecon.domain.model import Account, Entitlement, Identity, TargetSystem
    from igarecon.domain.ports import OwnershipRules

log = getLogger(__name__)


def _record_key(record: Account | Entitlement, attribute: str | None) -> str | None:
    if attribute is None:
        return record.id
    value = record.other_attributes.get(attribute)
    return value.strip() if value and value.strip() else None


def _identity_index(identities: Iterable[Identity], identity_field: str) -> dict[str, Identity]:
    index: dict[str, Identity] = {}
    for identity in identities:
        value = identity.field_value(identity_field)
        if value is None:
            continue
        key = value.strip().casefold()
        if key in index:
            log.warning(
                "Identities %s and %s share %s=%s, keeping the first",
                index[key].id,
                identity.id,
                identity_field,
                value,
            )
            continue
        index[key] = identity
    return index


def match_accounts_by_attribute(
    attribute: str | None, identity_field: str, *, personal: bool = True
) -> OwnershipRules:
    """Own accounts whose ``attribute`` (or id) equals an identity field, ignoring case."""

    def rules(iga: Iga, target_system: TargetSystem) -> None:
        index = _identity_index(iga.identities.values(), identity_field)
        matched = 0
        for account in target_system.accounts.values():
            key = _record_key(account, attribute)
            identity = index.get(key.casefold()) if key else None
            if identity is None:
                continue
            if identity.id not in account.identity_owners:
                account.identity_owners.append(identity.id)
            matches = identity.personal_accounts if personal else identity.owned_accounts
            identity.record_match(matches, target_system.unique_id, account.id)
            matched += 1
        log.info(
            "Matched %s of %s accounts in %s",
            matched,
            len(target_system.accounts),
            target_system.unique_id,
        )

    return rules


def assign_entitlement_owners_by_attribute(
    attribute: str, identity_field: str
) -> OwnershipRules:
    """Own entitlements whose ``attribute`` equals an identity field, ignoring case."""

    def rules(iga: Iga, target_system: TargetSystem) -> None:
        index = _identity_index(iga.identities.values(), identity_field)
        for entitlement in target_system.entitlements.values():
            key = _record_key(entitlement, attribute)
            identity = index.get(key.casefold()) if key else None
            if identity is None:
                continue
            if identity.id not in entitlement.identity_owners:
                entitlement.identity_owners.append(identity.id)
            identity.record_match(
                identity.owned_entitlements, target_system.unique_id, entitlement.id
            )

    return rules


def link_counterparts_by_attribute(to_system: str, attribute: str | None = None) -> OwnershipRules:
    """Set every record's counterpart id in ``to_system`` from ``attribute`` (or its id)."""

    def rules(_iga: Iga, target_system: TargetSystem) -> None:
        records: list[Account | Entitlement] = [
            *target_system.accounts.values(),
            *target_system.entitlements.values(),
        ]
        for record in records:
            key = _record_key(record, attribute)
            if key is None:
                continue
            record.synchronization_counterpart_id = key
            record.syncs_to_system = to_system

    return rules


def classify_by_attribute(
    account_attribute: str | None = None,
    entitlement_attribute: str | None = None,
    *,
    default: str = "",
) -> OwnershipRules:
    """Set account/entitlement category labels from an extra attribute."""

    def rules(_iga: Iga, target_system: TargetSystem) -> None:
        if account_attribute is not None:
            for account in target_system.accounts.values():
                account.account_type = _record_key(account, account_attribute) or default
        if entitlement_attribute is not None:
            for entitlement in target_system.entitlements.values():
                entitlement.entitlement_type = (
                    _record_key(entitlement, entitlement_attribute) or default
                )

    return rules


def compose_rules(*rules: OwnershipRules) -> OwnershipRules:
    def composed(iga: Iga, target_system: TargetSystem) -> None:
        for rule in rules:
            rule(iga, target_system)

    return composed


__all__ = [
    "assign_entitlement_owners_by_attribute",
    "classify_by_attribute",
    "compose_rules",
    "link_counterparts_by_attribute",
    "match_accounts_by_attribute",
]
