"""Per-target-system record index."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from igarecon.domain.model.records import Account, Entitlement

if TYPE_CHECKING:
    from collections.abc import Iterable

log = getLogger(__name__)

_CN_PREFIX = "CN="


def member_key(member: str) -> str:
    """Reduce an LDAP distinguished name to its leading common name.

    ``CN=jdoe,OU=Users,DC=corp`` becomes ``jdoe``; anything else is returned as-is.
    """

    first = member.split(",", 1)[0]
    if first.startswith(_CN_PREFIX):
        return first[len(_CN_PREFIX) :]
    return member


@dataclass(slots=True)
class RecordStore:
    """Accounts and entitlements of one target system, keyed by identifier."""

    accounts: dict[str, Account] = field(default_factory=dict["str", "Account"])
    entitlements: dict[str, Entitlement] = field(default_factory=dict["str", "Entitlement"])

    def add_account(self, account: Account) -> None:
        if account.id in self.accounts:
            log.warning("Duplicate account id %s, keeping the last one loaded", account.id)
        self.accounts[account.id] = account

    def add_entitlement(self, entitlement: Entitlement) -> None:
        if entitlement.id in self.entitlements:
            log.warning(
                "Duplicate entitlement id %s, keeping the last one loaded", entitlement.id
            )
        self.entitlements[entitlement.id] = entitlement

    def account(self, account_id: str) -> Account | None:
        return self.accounts.get(account_id)

    def entitlement(self, entitlement_id: str) -> Entitlement | None:
        return self.entitlements.get(entitlement_id)

    def accounts_for(self, ids: Iterable[str]) -> tuple[Account, ...]:
        return tuple(acct for uid in ids if (acct := self.accounts.get(uid)) is not None)

    def entitlements_for(self, ids: Iterable[str]) -> tuple[Entitlement, ...]:
        return tuple(ent for uid in ids if (ent := self.entitlements.get(uid)) is not None)

    def member_account_ids(self, entitlement: Entitlement) -> set[str]:
        resolved: set[str] = set()
        for member in entitlement.members or ():
            key = member_key(member)
            if key in self.accounts:
                resolved.add(key)
        return resolved

    def member_entitlement_ids(self, entitlement: Entitlement) -> set[str]:
        resolved: set[str] = set()
        for member in entitlement.members or ():
            if member == entitlement.id:
                continue
            if member in self.entitlements:
                resolved.add(member)
            elif (key := member_key(member)) in self.entitlements and key != entitlement.id:
                resolved.add(key)
        return resolved

    def member_accounts(self, entitlement: Entitlement) -> tuple[Account, ...]:
        return self.accounts_for(sorted(self.member_account_ids(entitlement)))

    def member_entitlements(self, entitlement: Entitlement) -> tuple[Entitlement, ...]:
        return self.entitlements_for(sorted(self.member_entitlement_ids(entitlement)))
