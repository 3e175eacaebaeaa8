"""One external directory and the records loaded from it."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from igarecon.domain.membership import compute_memberships
from igarecon.domain.model.records import Account, Entitlement
from igarecon.domain.model.store import RecordStore
from igarecon.domain.ports.rules import no_rules

if TYPE_CHECKING:
    from collections.abc import Iterable

    from igarecon.domain.model.records import HistoryRecord
    from igarecon.domain.ports.connectors import TargetSystemConnector
    from igarecon.domain.ports.rules import OwnershipRules

log = getLogger(__name__)

# One event per id, or (id, event) pairs when an id has several
type HistoryFeed = Mapping[str, HistoryRecord] | Iterable[tuple[str, HistoryRecord]]


@dataclass(frozen=True, slots=True, kw_only=True)
class TargetSystemConfig:
    unique_id: str
    connector: TargetSystemConnector
    account_matching_rules: OwnershipRules = no_rules
    entitlement_ownership_rules: OwnershipRules = no_rules
    other_attributes: Mapping[str, str] = field(default_factory=dict["str", "str"])


@dataclass(slots=True)
class TargetSystem:
    """Exclusive owner of one :class:`RecordStore`."""

    config: TargetSystemConfig
    store: RecordStore = field(default_factory=RecordStore)
    loaded: bool = False

    @property
    def unique_id(self) -> str:
        return self.config.unique_id

    @property
    def accounts(self) -> dict[str, Account]:
        return self.store.accounts

    @property
    def entitlements(self) -> dict[str, Entitlement]:
        return self.store.entitlements

    def load(self) -> None:
        """Populate the store from the connector and compute memberships.

        Connector failures propagate unchanged; the caller decides how fatal they are.
        """

        connector = self.config.connector
        store = RecordStore()
        for account_record in connector.load_accounts():
            store.add_account(Account.from_record(account_record))
        for entitlement_record in connector.load_entitlements():
            store.add_entitlement(Entitlement.from_record(entitlement_record))

        compute_memberships(store, reverse_membership=connector.reverse_membership)

        self.store = store
        self.loaded = True
        log.info(
            "Loaded target system %s: accounts=%s, entitlements=%s",
            self.unique_id,
            len(store.accounts),
            len(store.entitlements),
        )

    def add_account_history(self, records: HistoryFeed) -> None:
        for account_id, record in _history_items(records):
            account = self.store.accounts.get(account_id)
            if account is not None:
                account.history.append(record)

    def add_entitlement_history(self, records: HistoryFeed) -> None:
        for entitlement_id, record in _history_items(records):
            entitlement = self.store.entitlements.get(entitlement_id)
            if entitlement is not None:
                entitlement.history.append(record)


def _history_items(records: HistoryFeed) -> Iterable[tuple[str, HistoryRecord]]:
    if isinstance(records, Mapping):
        return records.items()
    return records
